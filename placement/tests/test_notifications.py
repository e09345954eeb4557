"""
Tests for the email notifier used by the placement routes.
"""

from utils.notifications import EmailNotifier


def test_notifier_emails_the_recipient():
    sent = []

    def sender(to_email, subject, message):
        sent.append((to_email, subject, message))
        return True

    notifier = EmailNotifier({"stu-1": "student@example.com"}.get, sender=sender)
    notifier.notify("stu-1", "job_ready_approved", "You are job ready", "Congratulations.")

    assert len(sent) == 1
    to_email, subject, message = sent[0]
    assert to_email == "student@example.com"
    assert subject.endswith("You are job ready")
    assert "Congratulations." in message


def test_users_without_email_are_skipped():
    sent = []
    notifier = EmailNotifier(lambda user_id: None, sender=lambda *args: sent.append(args) or True)
    notifier.notify("stu-1", "skill_approved", "Skill approved", "SQL")
    assert sent == []


def test_undelivered_email_does_not_raise():
    notifier = EmailNotifier(lambda user_id: "a@example.com", sender=lambda *args: False)
    notifier.notify("stu-1", "skill_approved", "Skill approved", "SQL")

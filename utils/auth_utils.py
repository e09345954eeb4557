import os, jwt
from datetime import datetime, timedelta, timezone

JWT_SECRET = os.getenv("JWT_SECRET", "dev_secret_change_me")
JWT_ALG = os.getenv("JWT_ALG", "HS256")

def create_token(sub: str, expires_delta: timedelta = timedelta(days=7)) -> str:
    # Identity only: the caller's role is always looked up server-side
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": sub,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALG)

def decode_token(token: str) -> dict:
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])

# Re-export the main Base class from db.py for placement models
# This ensures all models share the same metadata for create_all
from db import Base

__all__ = ["Base"]

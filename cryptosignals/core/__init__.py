"""Core package initialization."""
from cryptosignals.core.config import settings
from cryptosignals.core.database import Base, get_db, init_db

__all__ = ["settings", "Base", "get_db", "init_db"]

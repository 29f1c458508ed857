"""Database helpers for the captcha gateway."""
from __future__ import annotations

from .base import Base, create_all, create_engine, create_session, dispose_engine
from .models import Option

__all__ = [
    "Base",
    "Option",
    "create_all",
    "create_engine",
    "create_session",
    "dispose_engine",
]

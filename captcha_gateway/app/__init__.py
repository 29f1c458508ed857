"""FastAPI application package for the Private Captcha gateway."""

from .logging import setup_logging

__all__ = ["setup_logging"]

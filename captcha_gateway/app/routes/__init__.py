"""Router modules exposed by the gateway API."""
from . import forms, settings

__all__ = [
    "forms",
    "settings",
]

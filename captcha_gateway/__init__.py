"""Private Captcha configuration gateway."""

__version__ = "1.0.0"

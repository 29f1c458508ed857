"""Command line tools shipped with the captcha gateway."""

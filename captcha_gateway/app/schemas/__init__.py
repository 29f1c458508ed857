"""Request and response schemas exposed by the gateway API."""

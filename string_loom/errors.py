# string_loom/errors.py


class InvalidInput(ValueError):
    """Raised when an image or solve parameter cannot produce string art."""

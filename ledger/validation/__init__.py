"""Input validation package."""

from ledger.validation.validator import EMAIL_PATTERN, InputValidator, hash_password

__all__ = ["EMAIL_PATTERN", "InputValidator", "hash_password"]

"""Errors raised by the combo store and repository."""


class ComboError(Exception):
    """Base class for combo persistence failures."""


class ValidationError(ComboError):
    """A required combo field is missing."""


class StoreError(ComboError):
    """The combo store is unreachable or rejected the operation."""

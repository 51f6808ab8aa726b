"""
Cursor-specific exception classes.
"""


class CursorError(Exception):
    """Base class for all objcursor errors.
    """


class InvalidStateError(CursorError):
    """Operation attempted on a closed cursor or with no current row.
    """


class TypeMismatchError(CursorError, TypeError):
    """Column value cannot be narrowed to the requested representation.
    """


class InvalidArgumentError(CursorError, ValueError):
    """Caller-supplied argument is missing, undersized or out of range.
    """


class UnsupportedMemberError(CursorError):
    """Type introspection met a member that is neither a property nor a field.

    This signals a defect in column discovery, not a recoverable condition.
    """


UsageError = (
    InvalidStateError,
    InvalidArgumentError,
    )

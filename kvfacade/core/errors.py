"""
kvfacade exception hierarchy.

Every error raised by the package inherits from KVFacadeError.
Each layer has its own error class for targeted catching.

Usage:
    try:
        await store.get_object("user:1")
    except ParseError as e:
        # Stored text is not valid JSON
    except StoreCommandError as e:
        # Redis rejected the command; original error is e.__cause__
    except KVFacadeError as e:
        # Anything else from kvfacade

Absent keys are never errors: get-style operations return None.
"""


class KVFacadeError(Exception):
    """Base exception for all kvfacade errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ━━━ Configuration ━━━


class ConfigError(KVFacadeError):
    """Configuration is invalid, missing, or malformed."""

    pass


# ━━━ Store ━━━


class StoreConnectionError(KVFacadeError):
    """Connecting to, disconnecting from, or using an unopened store failed."""

    def __init__(
        self,
        message: str,
        url: str = "",
        db_index: int | None = None,
        details: dict | None = None,
    ):
        self.url = url
        self.db_index = db_index
        super().__init__(message, details)


class StoreCommandError(KVFacadeError):
    """The store reported a failure for a command. Never retried."""

    def __init__(
        self,
        message: str,
        command: str = "",
        details: dict | None = None,
    ):
        self.command = command
        super().__init__(message, details)


# ━━━ Codec ━━━


class CodecError(KVFacadeError):
    """Wire-form conversion failure."""

    pass


class ParseError(CodecError):
    """Text could not be decoded as JSON."""

    pass


class SerializationError(CodecError):
    """Value tree could not be encoded as JSON."""

    pass

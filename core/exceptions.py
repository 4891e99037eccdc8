"""
Core block exceptions.

Every failure carries an ErrorKind so callers assembling a bar can report
why a block could not be built without matching on class names.
"""

from enum import Enum

from config.defaults import BLOCK_NAME


class ErrorKind(str, Enum):
    """Failure categories."""

    MISSING_ENV = "MissingEnv"
    IO_ERROR = "IoError"
    MALFORMED_INPUT = "MalformedInput"
    CONNECTION_ERROR = "ConnectionError"
    QUERY_ERROR = "QueryError"
    LOCK_ERROR = "LockError"


class BlockError(Exception):
    """Base exception for all block errors."""

    kind: ErrorKind

    def __init__(self, message: str, block: str = BLOCK_NAME):
        self.block = block
        self.message = message
        super().__init__(f"[{block}] {message}")


class MissingEnvError(BlockError):
    """Raised when a required environment variable is not set."""

    kind = ErrorKind.MISSING_ENV

    def __init__(self, variable: str, hint: str = ""):
        self.variable = variable
        message = f"${variable} not set"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class DiscoveryIOError(BlockError):
    """Raised when a discovery input file cannot be opened or read."""

    kind = ErrorKind.IO_ERROR

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Could not read {path}: {reason}")


class MalformedInputError(BlockError):
    """Raised when an input does not match its expected pattern."""

    kind = ErrorKind.MALFORMED_INPUT


class BusConnectionError(BlockError):
    """Raised when the bus cannot be reached or the connection drops."""

    kind = ErrorKind.CONNECTION_ERROR


class QueryError(BlockError):
    """Raised when the bus answers but the property is absent or malformed."""

    kind = ErrorKind.QUERY_ERROR


class LockError(BlockError):
    """Raised when the engine state cannot be locked in time."""

    kind = ErrorKind.LOCK_ERROR

"""Exceptions raised by the Solidity parser."""

from typing import Any, Optional


class ParserError(Exception):
    """
    A parse failure with no usable tree.

    Attributes:
        message: Human readable description of the failure.
        offset: Character offset in the source where parsing failed.
    """

    def __init__(self, message: str, offset: int = 0):
        super().__init__(f"{message} (offset {offset})")
        self.message = message
        self.offset = offset


class SolidityParseError(ParserError):
    """
    A syntax error the parser recovered from.

    `result` holds the best-effort tree built around the error. Callers that
    can work with partial trees should use it instead of giving up.
    """

    def __init__(self, message: str, offset: int = 0, result: Optional[Any] = None):
        super().__init__(message, offset)
        self.result = result

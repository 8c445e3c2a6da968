"""
Exceptions for climvar operations.
"""


class ClimvarError(Exception):
    """Base exception for climvar errors."""

    pass


class InvalidArgumentError(ClimvarError, ValueError):
    """Argument outside the accepted set, or inputs that do not line up."""

    pass


class FetchError(ClimvarError):
    """Error reaching a remote service or reading a source location."""

    pass


class ParseError(ClimvarError, ValueError):
    """Response or file content that does not match the expected format."""

    pass

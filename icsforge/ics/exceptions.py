"""ICS-specific exceptions for error handling."""

from typing import Optional


class ICSError(Exception):
    """Base exception for ICS-related errors."""

    def __init__(self, message: str, value: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.value = value


class ICSParseError(ICSError):
    """Exception raised when user input cannot be parsed."""



class DurationFormatError(ICSParseError):
    """Exception raised when a duration string is not recognized."""



class DateTimeFormatError(ICSParseError):
    """Exception raised when a timestamp string is not recognized."""



class AlarmSpecError(ICSParseError):
    """Exception raised when an alarm specification is malformed."""



class ICSValidationError(ICSError):
    """Exception raised when parsed input violates a semantic rule."""



class AlarmValidationError(ICSValidationError, AlarmSpecError):
    """Exception raised when an alarm specification is well-formed but invalid."""


"""
Sheetboard Exceptions and Error Utilities

File Purpose: Centralized exception types and simple error handling helpers
Primary Classes/Functions: SheetboardError, AcquisitionError, HTTPStatusError, SettingsError, handle_error
Inputs and Outputs (I/O): Accepts exceptions and console; prints user-friendly messages
"""

from typing import List, Optional

from rich.console import Console


class SheetboardError(Exception):
    """Base exception for all Sheetboard-specific errors."""

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.details = details
        self.original_error = original_error
        super().__init__(message)


class AcquisitionError(SheetboardError):
    """Raised when every fetch strategy is exhausted without usable data."""

    def __init__(
        self,
        message: str = "data unavailable",
        details: Optional[str] = None,
        original_error: Optional[Exception] = None,
        attempted: Optional[List[str]] = None,
    ):
        super().__init__(message, details=details, original_error=original_error)
        self.attempted = list(attempted or [])


class HTTPStatusError(SheetboardError):
    """Raised when a fetch strategy answers with a non-success status."""

    def __init__(self, status: int, url: str = ""):
        super().__init__(f"HTTP error! status: {status}", details=url or None)
        self.status = status


class SettingsError(SheetboardError):
    """Raised when a configuration value fails validation."""

    pass


def handle_error(
    console: Console,
    error: Exception,
    operation: str,
    show_details: bool = False,
    reraise: bool = False,
) -> None:
    """
    Standardized error handling function.

    Args:
        console: Rich console for output
        error: The exception that occurred
        operation: Description of the operation that failed
        show_details: Whether to show detailed error information
        reraise: Whether to re-raise the exception after handling
    """
    if isinstance(error, SheetboardError):
        console.print(f"[red]{operation} failed: {error.message}[/]")
        if show_details and error.details:
            console.print(f"[dim]   Details: {error.details}[/]")
        if show_details and error.original_error:
            console.print(f"[dim]   Original error: {error.original_error}[/]")
    else:
        console.print(f"[red]{operation} failed: {str(error)}[/]")
        if show_details:
            console.print(f"[dim]   Error type: {type(error).__name__}[/]")

    if reraise:
        raise error

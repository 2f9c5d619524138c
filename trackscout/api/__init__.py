"""HTTP request layer for trackscout."""

from .app import create_app
from .responses import error_from_exception, error_response, status_for, success_response

__all__ = [
    "create_app",
    "success_response",
    "error_response",
    "status_for",
    "error_from_exception",
]

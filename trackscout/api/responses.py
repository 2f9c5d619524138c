"""
JSON response envelope.

Success: ``{"success": true, "data": ..., "message": ..., "timestamp": ...}``
Error:   ``{"success": false, "error": {"code": ..., "message": ...}, "timestamp": ...}``
"""
import logging
import time
from typing import Any, Dict, Optional, Tuple

from ..errors import DiscoveryError, InternalFault

logger = logging.getLogger(__name__)


def _timestamp() -> int:
    return int(time.time() * 1000)


def success_response(data: Any, message: Optional[str] = None) -> Dict[str, Any]:
    """Wrap a payload in the success envelope."""
    response = {"success": True, "data": data, "timestamp": _timestamp()}
    if message is not None:
        response["message"] = message
    return response


def error_response(code: str, message: str) -> Dict[str, Any]:
    """Build the error envelope."""
    return {
        "success": False,
        "error": {"code": code, "message": message},
        "timestamp": _timestamp(),
    }


def status_for(exc: BaseException) -> int:
    """HTTP status for an exception; anything outside the taxonomy is a 500."""
    if isinstance(exc, DiscoveryError):
        return exc.status_code
    return InternalFault.status_code


def error_from_exception(exc: BaseException) -> Tuple[Dict[str, Any], int]:
    """
    Map an exception onto ``(envelope, status)``.

    Upstream and unexpected faults are logged with their cause and answered
    with a generic message.
    """
    if not isinstance(exc, DiscoveryError):
        logger.error(f"Unhandled error: {type(exc).__name__}: {exc}", exc_info=exc)
        exc = InternalFault(str(exc))
    elif exc.status_code >= 500:
        cause = exc.__cause__ or exc
        logger.error(f"{exc.code}: {exc} (cause: {type(cause).__name__}: {cause})")

    return error_response(exc.code, exc.public_message), exc.status_code

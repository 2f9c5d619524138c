"""
Error taxonomy for track discovery.

Every error carries a stable ``code`` and an HTTP-style ``status_code`` so the
request layer can map it onto the response envelope without string matching.
Upstream and internal faults expose only a generic ``public_message``; the
underlying cause stays available through exception chaining for logging.
"""


class DiscoveryError(Exception):
    """Base class for all caller-visible discovery errors."""

    code = "INTERNAL_ERROR"
    status_code = 500
    generic_message = None

    @property
    def public_message(self) -> str:
        """Message that is safe to return to a client."""
        if self.generic_message is not None:
            return self.generic_message
        return str(self)


class MissingParameter(DiscoveryError, ValueError):
    """A required input (e.g. the track identifier) was absent."""

    code = "MISSING_PARAM"
    status_code = 400


class InvalidArgument(DiscoveryError, ValueError):
    """Malformed query parameters: bad numbers, unknown metric, bad limit."""

    code = "INVALID_ARGUMENT"
    status_code = 400


class NotFound(DiscoveryError, LookupError):
    """The referenced track, artist or playlist does not exist upstream."""

    code = "NOT_FOUND"
    status_code = 404


class UpstreamFailure(DiscoveryError):
    """The catalog or embedding source failed (timeout, transport error)."""

    code = "UPSTREAM_FAILURE"
    status_code = 502
    generic_message = "Upstream service unavailable"


class InternalFault(DiscoveryError):
    """Unexpected failure, fatal to the current request only."""

    code = "INTERNAL_ERROR"
    status_code = 500
    generic_message = "Internal server error"

"""Exception types for the scanner.

Only two of these ever reach a caller of SiteScanner.scan():
InvalidTargetError (bad input, nothing was probed) and AggregationError
(something broke while assembling the report). Transport errors are
caught inside each probe and turned into verdicts.
"""


class ScanError(Exception):
    """Base class for everything the scanner raises."""


class InvalidTargetError(ScanError):
    """Target URL is missing or malformed. Raised before any probe runs."""


class AggregationError(ScanError):
    """Report assembly failed. Surfaced as a generic internal error."""


class TransportError(ScanError):
    """A request to a probed service failed.

    tls_failure is set when the failure happened in the TLS layer
    (bad certificate, handshake failure) rather than plain connectivity.
    """

    def __init__(self, message: str, tls_failure: bool = False):
        super().__init__(message)
        self.message = message
        self.tls_failure = tls_failure


class ProbeAborted(TransportError):
    """The per-call deadline expired and the request was cancelled."""

    def __init__(self, timeout: float):
        super().__init__(f"Timeout after {timeout:g} seconds")
        self.timeout = timeout

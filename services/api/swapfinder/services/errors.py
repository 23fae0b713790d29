"""Service-level exceptions.

- ProductNotFoundError is terminal and surfaced to the caller (HTTP 404).
- SourceUnavailableError and DiscoveryError are always caught inside the
  swap pipeline and degrade to an empty contribution.
"""


class SwapFinderError(RuntimeError):
    pass


class ProductNotFoundError(SwapFinderError):
    def __init__(self, upc: str):
        super().__init__(f"Product {upc} not found")
        self.upc = upc


class SourceUnavailableError(SwapFinderError):
    """A backing store call (catalog or availability source) failed."""

    def __init__(self, source: str, message: str = ""):
        super().__init__(f"{source} unavailable" + (f": {message}" if message else ""))
        self.source = source


class DiscoveryError(SwapFinderError):
    """The external discovery service failed (HTTP/transport/payload)."""

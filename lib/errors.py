"""Exceptions raised inside fetchers; converted to failure records before leaving them."""


class MetricsError(Exception):
    """Base class for metric fetch failures."""


class InvalidUrlError(MetricsError):
    """URL does not match the expected pattern for its platform."""


class UpstreamError(MetricsError):
    """Upstream service answered with a non-2xx status or was unreachable."""


class PayloadError(MetricsError):
    """Upstream response is missing the fields we need."""


class SearchProxyError(UpstreamError):
    """Search proxy call failed or is not configured."""

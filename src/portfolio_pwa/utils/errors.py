"""
Custom exceptions for the portfolio PWA caching layer
"""


class PortfolioPWAError(Exception):
    """Base exception for portfolio_pwa"""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message)
        self.error_code = error_code or "UNKNOWN_ERROR"
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert exception to dictionary for JSON serialization"""
        return {
            "error": {
                "code": self.error_code,
                "message": str(self),
                "details": self.details
            }
        }


class ConfigurationError(PortfolioPWAError):
    """Configuration-related errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "CONFIGURATION_ERROR", details)


class ValidationError(PortfolioPWAError):
    """Input validation errors"""

    def __init__(self, message: str, field: str = None, details: dict = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message, "VALIDATION_ERROR", error_details)


class NetworkError(PortfolioPWAError):
    """Network connectivity errors"""

    def __init__(self, message: str, details: dict = None, error_code: str = "NETWORK_ERROR"):
        super().__init__(message, error_code, details)


class FetchTimeoutError(NetworkError):
    """A single fetch attempt exceeded its timeout"""

    def __init__(self, message: str, timeout: float = None, details: dict = None):
        error_details = details or {}
        if timeout is not None:
            error_details["timeout_seconds"] = timeout
        super().__init__(message, error_details, "FETCH_TIMEOUT")


class UpstreamError(PortfolioPWAError):
    """Upstream API answered with a non-success status"""

    def __init__(self, message: str, status_code: int = None, details: dict = None):
        error_details = details or {}
        if status_code:
            error_details["status_code"] = status_code
        super().__init__(message, "UPSTREAM_ERROR", error_details)
        self.status_code = status_code


class RetryExhaustedError(PortfolioPWAError):
    """Transient failures persisted through every retry"""

    def __init__(self, message: str, attempts: int, last_status: int = None, details: dict = None):
        error_details = details or {}
        error_details["attempts"] = attempts
        if last_status is not None:
            error_details["last_status"] = last_status
        super().__init__(message, "RETRY_EXHAUSTED", error_details)
        self.attempts = attempts
        self.last_status = last_status


class CacheError(PortfolioPWAError):
    """Cache-related errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "CACHE_ERROR", details)


class InstallError(PortfolioPWAError):
    """Pre-population of a new cache version failed"""

    def __init__(self, message: str, url: str = None, details: dict = None):
        error_details = details or {}
        if url:
            error_details["url"] = url
        super().__init__(message, "INSTALL_ERROR", error_details)


class LifecycleError(PortfolioPWAError):
    """Invalid service worker state transition"""

    def __init__(self, message: str, state: str = None, details: dict = None):
        error_details = details or {}
        if state:
            error_details["state"] = state
        super().__init__(message, "LIFECYCLE_ERROR", error_details)

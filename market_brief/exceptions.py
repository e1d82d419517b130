class MarketBriefError(Exception):
    """Base exception for the market brief bot."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(MarketBriefError):
    pass


class ProviderError(MarketBriefError):
    """An upstream quote provider answered with an error or unusable payload."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        super().__init__(message, {'provider': provider, 'status_code': status_code})
        self.provider = provider
        self.status_code = status_code

    def __str__(self):
        if self.status_code is not None:
            return f"{self.provider} HTTP {self.status_code}: {self.message}"
        return f"{self.provider}: {self.message}"


class RateLimitedError(ProviderError):
    pass


class SymbolNotFoundError(MarketBriefError):
    def __init__(self, symbol: str):
        super().__init__(f"symbol not found: {symbol}")
        self.symbol = symbol


class ChatApiError(MarketBriefError):
    def __init__(self, method: str, description: str | None = None):
        super().__init__(f"{method} failed: {description or 'unknown error'}")
        self.method = method
        self.description = description

"""Exceptions raised by external provider clients."""

from typing import Optional


class ProviderError(RuntimeError):
    """Raised when a provider returns a non-successful response."""

    provider = "provider"

    def __init__(self, message: str, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is None:
            return base
        return f"{base} (status={self.status}) :: {self.body[:300] or 'no body'}"


class KakaoLocalError(ProviderError):
    provider = "kakao"


class GooglePlacesError(ProviderError):
    provider = "google"


class GenerationError(ProviderError):
    provider = "openai"

"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes"}


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    database_url: str
    kakao_api_key: str = ""
    google_api_key: str = ""
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini-2024-07-18"
    skip_kakao: bool = False
    skip_google: bool = False
    force_summary: bool = False
    force_classify: bool = False
    force_rating: bool = False
    only_flagged: bool = False
    batch_limit: int = 50
    default_locality: str = "Yongsan-gu"
    bias_lat: float = 37.5326
    bias_lng: float = 126.9905
    radius_m: int = 3000
    language: str = "ko"
    verbose: bool = False

    @property
    def any_force(self) -> bool:
        return self.force_summary or self.force_classify or self.force_rating


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in _TRUTHY


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "")
    kakao_api_key = os.getenv("KAKAO_REST_API_KEY") or os.getenv("KAKAO_REST_API") or ""
    google_api_key = os.getenv("GOOGLE_API_KEY", "")
    openai_api_key = os.getenv("OPENAI_API_KEY", "")
    skip_kakao = _env_flag("SKIP_KAKAO")
    skip_google = _env_flag("SKIP_GOOGLE")

    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if not kakao_api_key and not skip_kakao:
        logger.warning("KAKAO_REST_API_KEY is not configured; keyword search requests will fail.")
    if not google_api_key and not skip_google:
        logger.warning("GOOGLE_API_KEY is not configured; Google Places enrichment will be skipped.")
    if not openai_api_key:
        logger.warning("OPENAI_API_KEY is not configured; summaries and tags will use fallbacks.")

    return Settings(
        database_url=database_url,
        kakao_api_key=kakao_api_key,
        google_api_key=google_api_key,
        openai_api_key=openai_api_key,
        openai_model=os.getenv("OPENAI_MODEL") or "gpt-4o-mini-2024-07-18",
        skip_kakao=skip_kakao,
        skip_google=skip_google,
        force_summary=_env_flag("FORCE_SUMMARY"),
        force_classify=_env_flag("FORCE_CLASSIFY"),
        force_rating=_env_flag("FORCE_RATING"),
        only_flagged=_env_flag("SYNC_ONLY_FLAGGED"),
        batch_limit=int(os.getenv("SYNC_BATCH_LIMIT", "50")),
        default_locality=os.getenv("DEFAULT_LOCALITY") or "Yongsan-gu",
        bias_lat=float(os.getenv("PLACES_BIAS_LAT", "37.5326")),
        bias_lng=float(os.getenv("PLACES_BIAS_LNG", "126.9905")),
        radius_m=int(os.getenv("PLACES_RADIUS_M", "3000")),
        language=os.getenv("PLACES_LANGUAGE") or "ko",
        verbose=_env_flag("VERBOSE"),
    )


def validate_settings(settings: Settings) -> Settings:
    """Fail fast when credentials required for a batch run are missing."""
    if not settings.database_url:
        raise ConfigError("DATABASE_URL must be set in the environment for the sync job to run.")
    if not settings.skip_kakao and not settings.kakao_api_key:
        raise ConfigError("KAKAO_REST_API_KEY (or KAKAO_REST_API) is required unless SKIP_KAKAO=true.")
    return settings

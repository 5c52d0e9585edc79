"""Runtime configuration read from the environment (``.env`` is loaded by the app)."""

import os
from dataclasses import dataclass

from solarsymmetry.models import NavigationPolicy
from solarsymmetry.pipeline import PipelineOptions

APP_VERSION = "1.0.3"

_NOMINATIM_URL = "https://nominatim.openstreetmap.org"
_TWILIGHT_URL = "https://api.sunrise-sunset.org/json"
USER_AGENT = f"SolarSymmetry/{APP_VERSION}"


@dataclass(frozen=True)
class Config:
    user_agent: str = USER_AGENT
    nominatim_url: str = _NOMINATIM_URL
    twilight_url: str = _TWILIGHT_URL
    request_timeout: float = 10.0  # seconds, per upstream call
    cache_hours: float = 24.0

    # Upstream politeness
    batch_size: int = 2
    batch_pause: float = 0.2  # seconds between lookup batches
    chunk_pause: float = 0.1  # seconds between rendered chunks

    navigation_policy: NavigationPolicy = NavigationPolicy.SINGLE_YEAR
    log_level: str = "INFO"

    def pipeline_options(self) -> PipelineOptions:
        return PipelineOptions(
            batch_size=self.batch_size,
            batch_pause=self.batch_pause,
            chunk_pause=self.chunk_pause,
            navigation=self.navigation_policy,
        )


def load_config() -> Config:
    return Config(
        user_agent=os.getenv("SOLARSYMMETRY_USER_AGENT", USER_AGENT),
        nominatim_url=os.getenv("SOLARSYMMETRY_NOMINATIM_URL", _NOMINATIM_URL),
        twilight_url=os.getenv("SOLARSYMMETRY_TWILIGHT_URL", _TWILIGHT_URL),
        request_timeout=float(os.getenv("SOLARSYMMETRY_REQUEST_TIMEOUT", "10")),
        cache_hours=float(os.getenv("SOLARSYMMETRY_CACHE_HOURS", "24")),
        batch_size=int(os.getenv("SOLARSYMMETRY_BATCH_SIZE", "2")),
        batch_pause=float(os.getenv("SOLARSYMMETRY_BATCH_PAUSE", "0.2")),
        chunk_pause=float(os.getenv("SOLARSYMMETRY_CHUNK_PAUSE", "0.1")),
        navigation_policy=NavigationPolicy(
            os.getenv("SOLARSYMMETRY_NAVIGATION", NavigationPolicy.SINGLE_YEAR.value)
        ),
        log_level=os.getenv("SOLARSYMMETRY_LOG_LEVEL", "INFO").upper(),
    )

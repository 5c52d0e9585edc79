"""Data model definitions — explicit boundaries between date math, fetch, and render layers."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class ViewMode(str, Enum):
    """Which month layout is requested."""

    SYMMETRY = "symmetry"  # one location, each day paired with its mirror date
    CITIES = "cities"  # two locations side by side, no mirroring


class NavigationPolicy(str, Enum):
    """How far previous/next month navigation may go."""

    SINGLE_YEAR = "single_year"  # January..December of the starting year only
    UNBOUNDED = "unbounded"  # crosses year boundaries freely


class PipelineState(str, Enum):
    IDLE = "idle"
    ASSEMBLING = "assembling"
    FETCHING = "fetching"
    RENDERING = "rendering"
    FAILED = "failed"
    SETTLED = "settled"


@dataclass(frozen=True)
class LocationPoint:
    """A chosen place. Only lat/lng matter to the pipeline; name is for display."""

    lat: float  # Latitude (decimal degrees)
    lng: float  # Longitude (decimal degrees)
    name: str  # Display name ("Montreal, Quebec, Canada")

    @property
    def key(self) -> str:
        """Coordinates rounded to 4 decimals — stable cache/request key component."""
        return f"{self.lat:.4f},{self.lng:.4f}"


@dataclass(frozen=True)
class TwilightRecord:
    """Civil twilight and sun times for one (date, lat, lng). May represent a failure."""

    dawn: str  # Civil twilight begin, local "HH:MM" (or sentinel)
    sunrise: str
    sunset: str
    dusk: str  # Civil twilight end
    golden_hour_morning_start: str | None = None
    golden_hour_morning_end: str | None = None
    golden_hour_evening_start: str | None = None
    golden_hour_evening_end: str | None = None
    dawn_iso: str | None = None  # UTC instants as returned upstream
    sunrise_iso: str | None = None
    sunset_iso: str | None = None
    dusk_iso: str | None = None
    timezone: str | None = None  # IANA zone used for the local times
    error: str | None = None
    fallback: bool = False

    @property
    def available(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: str, sentinel: str = "API Error") -> "TwilightRecord":
        return cls(
            dawn=sentinel,
            sunrise=sentinel,
            sunset=sentinel,
            dusk=sentinel,
            error=error,
            fallback=True,
        )


@dataclass(frozen=True)
class MirrorPair:
    """A day of the requested month and its reflection across the nearest solstice."""

    current: date
    mirrored: date
    is_today: bool
    current_twilight: TwilightRecord | None = None  # None = still loading
    mirrored_twilight: TwilightRecord | None = None


@dataclass(frozen=True)
class ComparisonDay:
    """A day of the requested month, annotated for two locations."""

    day: date
    is_today: bool
    city1_twilight: TwilightRecord | None = None
    city2_twilight: TwilightRecord | None = None


@dataclass(frozen=True)
class MonthRequest:
    """Immutable description of what the user asked for. Generation orders requests."""

    year: int
    month: int  # 1-12
    mode: ViewMode
    locations: tuple[LocationPoint, ...]
    generation: int = 0


@dataclass(frozen=True)
class MonthDataset:
    """A snapshot handed to renderers. Each progressive render gets a new one."""

    request: MonthRequest
    rows: tuple[MirrorPair, ...] | tuple[ComparisonDay, ...]
    state: PipelineState = PipelineState.ASSEMBLING
    chunks_done: int = 0
    chunks_total: int = 0
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def settled(self) -> bool:
        """No further renders will follow for this request."""
        return self.state in (PipelineState.SETTLED, PipelineState.FAILED)

    @property
    def failed(self) -> bool:
        return self.state is PipelineState.FAILED

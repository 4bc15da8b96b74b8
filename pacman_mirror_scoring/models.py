"""Data models for pacman-mirror-scoring."""

import enum
import math
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse


class TargetRepository(enum.Enum):
    """Package database fetched from each mirror to measure its transfer rate."""

    CORE = "core"
    EXTRA = "extra"
    COMMUNITY = "community"

    @property
    def db_path(self) -> str:
        """Path of the database file relative to a mirror's base URL."""
        return f"{self.value}/os/x86_64/{self.value}.db"

    @classmethod
    def from_name(cls, name: str) -> "TargetRepository":
        """Look up a repository by name, ignoring case."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            choices = ", ".join(r.value for r in cls)
            raise ValueError(f"Unknown target repository {name!r}. Must be one of: {choices}") from None


class RuleKind(enum.Enum):
    DOMAIN = "domain"
    COUNTRY = "country"
    COUNTRY_CODE = "country_code"


@dataclass(frozen=True)
class ExclusionRule:
    """A single exclusion rule. Values are always lowercase."""

    kind: RuleKind
    value: str
    negate: bool = False


@dataclass
class MirrorRecord:
    """One entry of the mirror status document.

    Field names follow the upstream mirror-status schema. ``transfer_rate``
    (bytes/second) and ``weighted_score`` (higher is better) are filled in by
    the probe and scoring stages.
    """

    url: str
    protocol: str
    last_sync: str | None = None
    completion_pct: float | None = None
    delay: int | None = None
    duration_avg: float | None = None
    duration_stddev: float | None = None
    score: float | None = None  # upstream score, lower is better
    active: bool = False
    country: str = ""
    country_code: str = ""
    isos: bool = False
    ipv4: bool = False
    ipv6: bool = False
    details: str = ""

    transfer_rate: float | None = None
    weighted_score: float | None = None

    @property
    def domain(self) -> str:
        """Lowercase host portion of the mirror URL."""
        return (urlparse(self.url).hostname or "").lower()

    @property
    def has_weighted_score(self) -> bool:
        return self.weighted_score is not None and not math.isnan(self.weighted_score)


# Upstream fields in schema order, used for CSV output and parsing.
SOURCE_FIELDS = (
    "url", "protocol", "last_sync", "completion_pct", "delay",
    "duration_avg", "duration_stddev", "score", "active",
    "country", "country_code", "isos", "ipv4", "ipv6", "details",
)
COMPUTED_FIELDS = ("transfer_rate", "weighted_score")


@dataclass
class MirrorCatalog:
    """Parsed mirror status document.

    The metadata fields are informational only and never used for ranking.
    """

    urls: list[MirrorRecord] = field(default_factory=list)
    cutoff: int | None = None
    last_check: str | None = None
    num_checks: int | None = None
    check_frequency: int | None = None
    version: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class RankingSummary:
    """Aggregate statistics over a ranked list of mirrors."""

    total_mirrors: int
    measured_mirrors: int
    unmeasured_mirrors: int
    mean_rate_mbps: float
    median_rate_mbps: float
    min_rate_mbps: float
    max_rate_mbps: float
    countries: dict[str, int] = field(default_factory=dict)
    rate_histogram: dict[str, int] = field(default_factory=dict)

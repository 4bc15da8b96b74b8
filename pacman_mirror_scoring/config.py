"""YAML ranking profile loading and validation."""

import importlib.resources
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .models import TargetRepository
from .status import DEFAULT_SOURCE_URL


@dataclass
class FetchConfig:
    """Retry and timeout settings for downloading the mirror status."""

    attempts: int = 5
    base_delay: float = 1.0
    timeout: float = 30.0


@dataclass
class RankingProfile:
    """Complete ranking profile loaded from YAML."""

    source_url: str = DEFAULT_SOURCE_URL
    target_db: TargetRepository = TargetRepository.CORE
    max_check: int = 100  # 0 = unlimited
    mirrors: int = 10
    threads: int = 5
    fetch: FetchConfig = field(default_factory=FetchConfig)
    exclude: list[str] = field(default_factory=list)


VALID_KEYS = {"source_url", "target_db", "max_check", "mirrors", "threads", "fetch", "exclude"}
VALID_FETCH_KEYS = {"attempts", "base_delay", "timeout"}


def load_profile(path: str | Path) -> RankingProfile:
    """Load a ranking profile from a YAML file."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Could not read profile {str(path)!r}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Profile {str(path)!r} is not valid YAML: {e}") from e
    return _build_profile(data)


def load_default_profile() -> RankingProfile:
    """Load the bundled default ranking profile."""
    pkg = importlib.resources.files("pacman_mirror_scoring") / "profiles" / "default.yaml"
    text = pkg.read_text(encoding="utf-8")
    return _build_profile(yaml.safe_load(text))


def _build_profile(data: Any) -> RankingProfile:
    """Build a RankingProfile from parsed YAML data."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Profile must be a mapping")
    unknown = set(data) - VALID_KEYS
    if unknown:
        raise ConfigError(f"Unknown profile keys: {sorted(unknown)}")

    defaults = RankingProfile()
    try:
        target_db = TargetRepository.from_name(str(data.get("target_db", defaults.target_db.value)))
    except ValueError as e:
        raise ConfigError(str(e)) from None

    profile = RankingProfile(
        source_url=_typed(data, "source_url", str, defaults.source_url),
        target_db=target_db,
        max_check=_typed(data, "max_check", int, defaults.max_check),
        mirrors=_typed(data, "mirrors", int, defaults.mirrors),
        threads=_typed(data, "threads", int, defaults.threads),
        fetch=_parse_fetch(data["fetch"] if data.get("fetch") is not None else {}),
        exclude=_parse_exclude(data["exclude"] if data.get("exclude") is not None else []),
    )
    validate_profile(profile)
    return profile


def _typed(data: dict, key: str, kind: type, default: Any) -> Any:
    """Fetch ``data[key]`` checking its type; bools are never numbers."""
    value = data.get(key, default)
    if value is None:
        return default
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, bool) and kind is not bool:
        raise ConfigError(f"Profile key {key!r} must be {kind.__name__}, got {value!r}")
    if not isinstance(value, kind):
        raise ConfigError(f"Profile key {key!r} must be {kind.__name__}, got {value!r}")
    return value


def _parse_fetch(data: Any) -> FetchConfig:
    """Parse the fetch configuration block."""
    if not isinstance(data, dict):
        raise ConfigError("Profile key 'fetch' must be a mapping")
    unknown = set(data) - VALID_FETCH_KEYS
    if unknown:
        raise ConfigError(f"Unknown fetch keys: {sorted(unknown)}")
    defaults = FetchConfig()
    return FetchConfig(
        attempts=_typed(data, "attempts", int, defaults.attempts),
        base_delay=_typed(data, "base_delay", float, defaults.base_delay),
        timeout=_typed(data, "timeout", float, defaults.timeout),
    )


def _parse_exclude(data: Any) -> list[str]:
    if not isinstance(data, list) or not all(isinstance(r, str) for r in data):
        raise ConfigError("Profile key 'exclude' must be a list of rule strings")
    return list(data)


def validate_profile(profile: RankingProfile) -> None:
    """Validate value ranges of a ranking profile."""
    if not profile.source_url:
        raise ConfigError("source_url must not be empty")
    if profile.max_check < 0:
        raise ConfigError(f"max_check must be >= 0 (0 = unlimited), got {profile.max_check}")
    if profile.mirrors < 1:
        raise ConfigError(f"mirrors must be >= 1, got {profile.mirrors}")
    if profile.threads < 1:
        raise ConfigError(f"threads must be >= 1, got {profile.threads}")
    if profile.fetch.attempts < 1:
        raise ConfigError(f"fetch.attempts must be >= 1, got {profile.fetch.attempts}")
    if profile.fetch.base_delay < 0:
        raise ConfigError(f"fetch.base_delay must be >= 0, got {profile.fetch.base_delay}")
    if profile.fetch.timeout <= 0:
        raise ConfigError(f"fetch.timeout must be > 0, got {profile.fetch.timeout}")

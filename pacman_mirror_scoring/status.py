"""Fetching and parsing the upstream mirror status document."""

import logging
import math
import time
from typing import Any, Callable

import requests

from . import __version__
from .errors import FetchFailure, ParseFailure
from .models import SOURCE_FIELDS, MirrorCatalog, MirrorRecord

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_URL = "https://archlinux.org/mirrors/status/json/"
USER_AGENT = f"pacman-mirror-scoring/{__version__}"

CATALOG_METADATA = ("cutoff", "last_check", "num_checks", "check_frequency", "version")

_FLOAT_FIELDS = {"completion_pct", "duration_avg", "duration_stddev", "score"}
_BOOL_FIELDS = {"active", "isos", "ipv4", "ipv6"}
_STR_FIELDS = {"country", "country_code", "details"}


def fetch_status(
    url: str,
    attempts: int = 5,
    base_delay: float = 1.0,
    timeout: float = 30,
    http_get: Callable[..., requests.Response] = requests.get,
    sleep: Callable[[float], None] = time.sleep,
) -> MirrorCatalog:
    """Download and parse the mirror status document.

    Transport errors and non-success responses are retried up to ``attempts``
    times, sleeping ``base_delay`` seconds after the first failure and doubling
    the delay after each further one. A body that is not a valid status
    document fails immediately with ParseFailure.
    """
    delay = base_delay
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            response = http_get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            last_error = e
            if attempt == attempts:
                break
            logger.warning(
                f"Fetching {url} failed (attempt {attempt}/{attempts}): {e}. "
                f"Retrying in {delay:.1f}s"
            )
            sleep(delay)
            delay *= 2
            continue

        try:
            data = response.json()
        except ValueError as e:
            raise ParseFailure(f"Mirror status from {url} is not valid JSON: {e}") from e
        catalog = parse_status(data)
        logger.info(f"Fetched {len(catalog.urls)} mirrors from {url}")
        return catalog

    raise FetchFailure(f"Could not fetch mirror status from {url} after {attempts} attempts: {last_error}")


def parse_status(data: Any) -> MirrorCatalog:
    """Build a MirrorCatalog from a decoded status document."""
    if not isinstance(data, dict):
        raise ParseFailure(f"Mirror status must be a JSON object, got {type(data).__name__}")
    urls = data.get("urls")
    if not isinstance(urls, list):
        raise ParseFailure("Mirror status has no 'urls' list")

    records = [_parse_record(i, entry) for i, entry in enumerate(urls)]
    return MirrorCatalog(
        urls=records,
        extra={k: v for k, v in data.items() if k not in CATALOG_METADATA and k != "urls"},
        **{k: data.get(k) for k in CATALOG_METADATA},
    )


def _parse_record(index: int, entry: Any) -> MirrorRecord:
    """Validate and convert one entry of the 'urls' list."""
    if not isinstance(entry, dict):
        raise ParseFailure(f"Mirror #{index} is not an object")
    for key in ("url", "protocol"):
        if not isinstance(entry.get(key), str):
            raise ParseFailure(f"Mirror #{index} is missing string field {key!r}")

    values: dict[str, Any] = {}
    for name in SOURCE_FIELDS:
        value = entry.get(name)
        if value is None:
            continue
        try:
            values[name] = _convert(name, value)
        except (TypeError, ValueError, OverflowError) as e:
            raise ParseFailure(f"Mirror #{index} ({entry['url']}) has invalid {name!r}: {value!r}") from e
    return MirrorRecord(**values)


def _convert(name: str, value: Any) -> Any:
    if name in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise TypeError(name)
        return value
    if name == "delay":
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(name)
        if not math.isfinite(value):
            raise ValueError(name)
        return int(value)
    if name in _FLOAT_FIELDS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(name)
        if not math.isfinite(value):
            raise ValueError(name)
        return float(value)
    if name in _STR_FIELDS:
        return str(value)
    return value

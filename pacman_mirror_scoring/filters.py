"""Sync filter: keep only active, fully synced, recently updated mirrors."""

import logging
import math

from .errors import NoCandidates
from .exclude import is_excluded
from .models import ExclusionRule, MirrorCatalog, MirrorRecord

logger = logging.getLogger(__name__)

ALLOWED_PROTOCOLS = frozenset({"http", "https"})
MAX_DELAY_SECONDS = 3600
COMPLETION_TOLERANCE = 1e-9


def is_synced(record: MirrorRecord) -> bool:
    """Hard eligibility check for a single mirror."""
    return (
        record.active
        and record.protocol in ALLOWED_PROTOCOLS
        and record.completion_pct is not None
        and math.isclose(record.completion_pct, 1.0, rel_tol=0.0, abs_tol=COMPLETION_TOLERANCE)
        and record.delay is not None
        and record.delay < MAX_DELAY_SECONDS
    )


def filter_mirrors(
    catalog: MirrorCatalog,
    max_check: int | None = 0,
    rules: list[ExclusionRule] | None = None,
) -> list[MirrorRecord]:
    """Return the best synced mirrors, least delayed first.

    ``max_check`` limits the number of returned mirrors; 0 or None means no
    limit. Raises NoCandidates if nothing is left.
    """
    mirrors = [m for m in catalog.urls if is_synced(m)]
    logger.info(f"Sync filter: {len(mirrors)} of {len(catalog.urls)} mirrors are in sync")

    if rules:
        before = len(mirrors)
        mirrors = [m for m in mirrors if not is_excluded(m, rules)]
        logger.info(f"Exclusion rules removed {before - len(mirrors)} mirrors")

    # list.sort is stable, equal delays keep catalog order
    mirrors.sort(key=lambda m: m.delay)

    if max_check and max_check > 0:
        mirrors = mirrors[:max_check]

    if not mirrors:
        raise NoCandidates(
            f"No synced mirrors left out of {len(catalog.urls)} "
            "(need active http/https mirrors at 100% completion with delay < 1h)"
        )
    return mirrors

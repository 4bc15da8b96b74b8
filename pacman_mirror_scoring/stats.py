"""Summary statistics for ranked mirrors."""

import statistics
from collections import Counter

from .models import MirrorRecord, RankingSummary

HISTOGRAM_BUCKETS = ["<1", "1-5", "5-10", "10-50", ">50"]


def summarize(mirrors: list[MirrorRecord]) -> RankingSummary:
    """Compute aggregate statistics over a list of ranked mirrors.

    Rates are reported in MB/s. Mirrors without a measured rate only count
    towards ``unmeasured_mirrors`` and the country tally.
    """
    rates = [m.transfer_rate / 1e6 for m in mirrors if m.transfer_rate is not None]
    countries = dict(Counter(m.country_code or "??" for m in mirrors).most_common())

    if not rates:
        return RankingSummary(
            total_mirrors=len(mirrors),
            measured_mirrors=0,
            unmeasured_mirrors=len(mirrors),
            mean_rate_mbps=0.0,
            median_rate_mbps=0.0,
            min_rate_mbps=0.0,
            max_rate_mbps=0.0,
            countries=countries,
            rate_histogram={b: 0 for b in HISTOGRAM_BUCKETS},
        )

    return RankingSummary(
        total_mirrors=len(mirrors),
        measured_mirrors=len(rates),
        unmeasured_mirrors=len(mirrors) - len(rates),
        mean_rate_mbps=round(statistics.mean(rates), 2),
        median_rate_mbps=round(statistics.median(rates), 2),
        min_rate_mbps=round(min(rates), 2),
        max_rate_mbps=round(max(rates), 2),
        countries=countries,
        rate_histogram=_build_histogram(rates),
    )


def _build_histogram(values: list[float]) -> dict[str, int]:
    """Bucket MB/s values into a histogram."""
    buckets = {b: 0 for b in HISTOGRAM_BUCKETS}
    for v in values:
        if v < 1:
            buckets["<1"] += 1
        elif v <= 5:
            buckets["1-5"] += 1
        elif v <= 10:
            buckets["5-10"] += 1
        elif v <= 50:
            buckets["10-50"] += 1
        else:
            buckets[">50"] += 1
    return buckets

"""Tests for ranking summary statistics."""

from pacman_mirror_scoring.stats import HISTOGRAM_BUCKETS, summarize


class TestSummarize:
    def test_empty(self):
        summary = summarize([])
        assert summary.total_mirrors == 0
        assert summary.measured_mirrors == 0
        assert summary.mean_rate_mbps == 0.0
        assert summary.rate_histogram == {b: 0 for b in HISTOGRAM_BUCKETS}

    def test_rates_in_mbps(self, make_mirror):
        mirrors = [
            make_mirror(transfer_rate=2e6, country_code="DE"),
            make_mirror(transfer_rate=8e6, country_code="DE"),
            make_mirror(transfer_rate=None, country_code="FR"),
            make_mirror(transfer_rate=60e6, country_code="SE"),
        ]
        summary = summarize(mirrors)
        assert summary.total_mirrors == 4
        assert summary.measured_mirrors == 3
        assert summary.unmeasured_mirrors == 1
        assert summary.min_rate_mbps == 2.0
        assert summary.max_rate_mbps == 60.0
        assert summary.median_rate_mbps == 8.0
        assert summary.mean_rate_mbps == round(70 / 3, 2)
        assert summary.rate_histogram == {"<1": 0, "1-5": 1, "5-10": 1, "10-50": 0, ">50": 1}
        assert summary.countries == {"DE": 2, "FR": 1, "SE": 1}

    def test_all_unmeasured(self, make_mirror):
        summary = summarize([make_mirror(), make_mirror(country_code="")])
        assert summary.measured_mirrors == 0
        assert summary.unmeasured_mirrors == 2
        assert summary.countries == {"DE": 1, "??": 1}

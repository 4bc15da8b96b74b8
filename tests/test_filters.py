"""Tests for the sync filter."""

import pytest

from pacman_mirror_scoring.errors import NoCandidates
from pacman_mirror_scoring.exclude import parse_rules
from pacman_mirror_scoring.filters import filter_mirrors, is_synced
from pacman_mirror_scoring.models import MirrorCatalog


class TestIsSynced:
    def test_synced(self, make_mirror):
        assert is_synced(make_mirror())

    @pytest.mark.parametrize("changes", [
        {"active": False},
        {"protocol": "rsync"},
        {"protocol": "ftp"},
        {"completion_pct": None},
        {"completion_pct": 0.99},
        {"delay": None},
        {"delay": 3600},
        {"delay": 7200},
    ])
    def test_not_synced(self, make_mirror, changes):
        assert not is_synced(make_mirror(**changes))

    def test_completion_tolerance(self, make_mirror):
        assert is_synced(make_mirror(completion_pct=1.0 - 1e-12))
        assert not is_synced(make_mirror(completion_pct=1.0 - 1e-6))

    def test_delay_boundary(self, make_mirror):
        assert is_synced(make_mirror(delay=3599))
        assert is_synced(make_mirror(delay=0))


class TestFilterMirrors:
    def test_fixture(self, catalog):
        mirrors = filter_mirrors(catalog)
        assert [m.url for m in mirrors] == [
            "http://mirror.fast.example.de/arch/",
            "https://arch.example.fr/",
            "https://mirror.example.us/archlinux/",
            "https://mirror.slow.example.de/archlinux/",
        ]

    def test_candidates_are_synced_and_ordered(self, catalog):
        mirrors = filter_mirrors(catalog)
        for m in mirrors:
            assert m.active
            assert m.protocol in ("http", "https")
            assert abs(m.completion_pct - 1.0) <= 1e-9
            assert m.delay is not None and m.delay < 3600
        delays = [m.delay for m in mirrors]
        assert delays == sorted(delays)

    def test_null_delay_never_passes(self, catalog):
        urls = {m.url for m in filter_mirrors(catalog)}
        assert "https://never-checked.example.us/" not in urls

    def test_stable_for_equal_delay(self, make_mirror):
        catalog = MirrorCatalog(urls=[
            make_mirror("https://c/", delay=10),
            make_mirror("https://a/", delay=5),
            make_mirror("https://b/", delay=10),
            make_mirror("https://d/", delay=5),
        ])
        assert [m.url for m in filter_mirrors(catalog)] == ["https://a/", "https://d/", "https://c/", "https://b/"]

    @pytest.mark.parametrize("max_check, expected", [(1, 1), (3, 3), (4, 4), (10, 4), (0, 4), (None, 4)])
    def test_max_check(self, catalog, max_check, expected):
        assert len(filter_mirrors(catalog, max_check)) == expected

    def test_max_check_keeps_least_delayed(self, catalog):
        mirrors = filter_mirrors(catalog, 2)
        assert [m.delay for m in mirrors] == [300, 600]

    def test_exclusion_rules(self, catalog):
        rules = parse_rules(["country_code = de", "!domain = mirror.slow.example.de"])
        urls = [m.url for m in filter_mirrors(catalog, 0, rules)]
        assert "http://mirror.fast.example.de/arch/" not in urls
        assert "https://mirror.slow.example.de/archlinux/" in urls
        assert len(urls) == 3

    def test_exclusion_before_truncation(self, catalog):
        rules = parse_rules(["mirror.fast.example.de"])
        mirrors = filter_mirrors(catalog, 1, rules)
        assert [m.url for m in mirrors] == ["https://arch.example.fr/"]

    def test_no_candidates(self, make_mirror):
        catalog = MirrorCatalog(urls=[make_mirror(active=False), make_mirror(delay=None)])
        with pytest.raises(NoCandidates, match="No synced mirrors"):
            filter_mirrors(catalog)

    def test_everything_excluded(self, catalog):
        rules = parse_rules(["country_code=de", "country_code=fr", "country_code=us"])
        with pytest.raises(NoCandidates):
            filter_mirrors(catalog, 0, rules)

    def test_empty_catalog(self):
        with pytest.raises(NoCandidates):
            filter_mirrors(MirrorCatalog())

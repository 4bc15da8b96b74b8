"""Exceptions raised by the ranking pipeline."""


class MirrorScoringError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(MirrorScoringError):
    """Invalid profile, rule or output path. Raised before any network activity."""


class FetchFailure(MirrorScoringError):
    """The mirror status document could not be downloaded."""


class ParseFailure(MirrorScoringError):
    """The mirror status document is malformed."""


class NoCandidates(MirrorScoringError):
    """No mirror survived the sync filter and exclusion rules."""


class NoBestMirrors(MirrorScoringError):
    """Scoring and selection left no mirror."""


class ProbeFailure(MirrorScoringError):
    """A single mirror could not be measured.

    Never escapes the probe stage; the mirror is left without a transfer rate.
    """

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason

"""pacman-mirror-scoring: Rank Arch Linux mirrors by measured download speed."""

__version__ = "1.0.0"

from .errors import (
    ConfigError,
    FetchFailure,
    MirrorScoringError,
    NoBestMirrors,
    NoCandidates,
    ParseFailure,
    ProbeFailure,
)
from .exclude import build_rules, is_excluded, load_rules, parse_rule
from .filters import filter_mirrors
from .models import ExclusionRule, MirrorCatalog, MirrorRecord, RankingSummary, RuleKind, TargetRepository
from .probe import probe_all
from .scorer import evaluate
from .stats import summarize
from .status import fetch_status, parse_status

__all__ = [
    "MirrorRecord",
    "MirrorCatalog",
    "ExclusionRule",
    "RuleKind",
    "TargetRepository",
    "RankingSummary",
    "MirrorScoringError",
    "ConfigError",
    "FetchFailure",
    "ParseFailure",
    "NoCandidates",
    "NoBestMirrors",
    "ProbeFailure",
    "fetch_status",
    "parse_status",
    "parse_rule",
    "load_rules",
    "build_rules",
    "is_excluded",
    "filter_mirrors",
    "probe_all",
    "evaluate",
    "summarize",
]

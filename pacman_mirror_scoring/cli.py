"""CLI entry point for pacman-mirror-scoring."""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import RankingProfile, load_default_profile, load_profile, validate_profile
from .errors import ConfigError, MirrorScoringError
from .exclude import build_rules
from .filters import filter_mirrors
from .models import TargetRepository
from .output import to_pacman_mirrorlist, write_csv, write_mirrorlist
from .scorer import evaluate
from .stats import summarize
from .status import fetch_status

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def main(argv: list[str] | None = None) -> None:
    """Rank Arch Linux mirrors by measured speed and print a pacman mirrorlist."""
    parser = argparse.ArgumentParser(
        prog="pacman-mirror-scoring",
        description="Retrieve the best synced Arch Linux mirrors, ranked by measured transfer rate.",
    )
    parser.add_argument("-S", "--source-url", default=None, help="Mirror status JSON source.")
    parser.add_argument(
        "-t", "--target-db", default=None, type=str.lower,
        choices=[r.value for r in TargetRepository],
        help="Database file downloaded to measure transfer rate.",
    )
    parser.add_argument("-o", "--output-file", default=None, help="Write the mirrorlist to a new file instead of stdout.")
    parser.add_argument("-m", "--mirrors", type=int, default=None, help="Number of mirrors to keep.")
    parser.add_argument("-T", "--threads", type=int, default=None, help="Mirrors measured in parallel.")
    parser.add_argument("--max-check", type=int, default=None, help="Measure only the N least delayed mirrors (0 = all).")
    parser.add_argument("-s", "--stats-file", default=None, help="Write statistics of the selected mirrors as CSV to a new file.")
    parser.add_argument(
        "-e", "--exclude", dest="exclude", action="append", default=[], metavar="RULE",
        help="Exclusion rule, e.g. 'domain=mirror.example.org', 'country_code=DE' or '!country=France'. Repeatable.",
    )
    parser.add_argument("--exclude-from", default=None, help="File with one exclusion rule per line.")
    parser.add_argument("--config", dest="config_path", default=None, help="Path to custom YAML ranking profile.")
    parser.add_argument("--summary", action="store_true", default=False, help="Print summary statistics to stderr.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More log output (-vv for debug).")
    parser.add_argument("-q", "--quiet", action="store_true", default=False, help="Only log errors.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose, args.quiet)

    try:
        _cmd_rank(args)
    except ConfigError as e:
        logger.error(f"{e}")
        sys.exit(EXIT_CONFIG_ERROR)
    except MirrorScoringError as e:
        logger.error(f"{e}")
        sys.exit(EXIT_FAILURE)


def _setup_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _load_settings(args: argparse.Namespace) -> RankingProfile:
    """Load the profile and apply command line overrides."""
    if args.config_path:
        if not Path(args.config_path).is_file():
            raise ConfigError(f"Config file not found: {args.config_path}")
        profile = load_profile(args.config_path)
    else:
        profile = load_default_profile()

    if args.source_url is not None:
        profile.source_url = args.source_url
    if args.target_db is not None:
        profile.target_db = TargetRepository.from_name(args.target_db)
    for name in ("max_check", "mirrors", "threads"):
        value = getattr(args, name)
        if value is not None:
            setattr(profile, name, value)
    validate_profile(profile)
    return profile


def _check_new_file(path: str | None) -> None:
    if path is not None and Path(path).exists():
        raise ConfigError(f"{path!r} already exists")


def _cmd_rank(args: argparse.Namespace) -> None:
    """Execute the ranking pipeline."""
    # Everything that can be wrong locally is checked before touching the network
    profile = _load_settings(args)
    rules = build_rules(args.exclude, args.exclude_from, profile.exclude)
    logger.debug(f"Running with {profile} and {len(rules)} exclusion rules")
    _check_new_file(args.output_file)
    _check_new_file(args.stats_file)

    catalog = fetch_status(
        profile.source_url,
        attempts=profile.fetch.attempts,
        base_delay=profile.fetch.base_delay,
        timeout=profile.fetch.timeout,
    )
    candidates = filter_mirrors(catalog, profile.max_check, rules)
    best = evaluate(candidates, profile.mirrors, profile.target_db, threads=profile.threads)

    try:
        if args.stats_file:
            write_csv(args.stats_file, best)
        if args.output_file:
            write_mirrorlist(args.output_file, best, profile.source_url)
    except OSError as e:
        raise MirrorScoringError(f"Could not write output: {e}") from e

    if not args.output_file:
        try:
            sys.stdout.write(to_pacman_mirrorlist(best))
            sys.stdout.flush()
        except BrokenPipeError:
            pass

    if args.summary:
        _print_summary(summarize(best))


def _print_summary(summary) -> None:
    """Print summary statistics to stderr."""
    print("\n=== Mirror Ranking Summary ===", file=sys.stderr)
    print(f"Mirrors selected: {summary.total_mirrors:,}", file=sys.stderr)
    print(f"  Measured: {summary.measured_mirrors}  |  Unreachable: {summary.unmeasured_mirrors}", file=sys.stderr)
    print("", file=sys.stderr)
    print("Transfer rate (MB/s):", file=sys.stderr)
    print(
        f"  Mean: {summary.mean_rate_mbps}  |  Median: {summary.median_rate_mbps}  "
        f"|  Min: {summary.min_rate_mbps}  |  Max: {summary.max_rate_mbps}",
        file=sys.stderr,
    )
    hist = summary.rate_histogram
    print(
        f"  Distribution:  <1: {hist.get('<1', 0)}  |  1-5: {hist.get('1-5', 0)}  "
        f"|  5-10: {hist.get('5-10', 0)}  |  10-50: {hist.get('10-50', 0)}  "
        f"|  >50: {hist.get('>50', 0)}",
        file=sys.stderr,
    )
    print("", file=sys.stderr)
    countries = "  ".join(f"{code}: {n}" for code, n in summary.countries.items())
    print(f"Countries: {countries}", file=sys.stderr)

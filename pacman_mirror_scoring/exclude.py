"""Exclusion rules: parsing and evaluation against mirrors."""

import logging
from pathlib import Path
from typing import Iterable

from .errors import ConfigError
from .models import ExclusionRule, MirrorRecord, RuleKind

logger = logging.getLogger(__name__)

COMMENT_CHARS = "#;"
NEGATION = "!"

KEYWORDS: dict[str, RuleKind] = {kind.value: kind for kind in RuleKind}


def parse_rule(line: str) -> ExclusionRule | None:
    """Parse one rule line.

    Accepted forms, case-insensitive, with an optional ``!`` in front to keep
    rather than exclude matching mirrors::

        domain = mirror.example.org
        country = Germany
        country_code = DE
        mirror.example.org          (bare token, same as domain=)

    Anything after ``#`` or ``;`` is a comment. Returns None for blank and
    comment-only lines.
    """
    for i, ch in enumerate(line):
        if ch in COMMENT_CHARS:
            line = line[:i]
            break
    text = line.strip().lower()
    if not text:
        return None

    negate = False
    if text.startswith(NEGATION):
        negate = True
        text = text[1:].strip()

    kind = RuleKind.DOMAIN
    value = text
    if "=" in text:
        keyword, rest = text.split("=", 1)
        keyword = keyword.strip()
        if keyword.startswith(NEGATION):
            negate = True
            keyword = keyword[1:].strip()
        if keyword in KEYWORDS:
            kind = KEYWORDS[keyword]
            value = rest.strip()

    if not value:
        raise ConfigError(f"Exclusion rule {line.strip()!r} has no value")
    return ExclusionRule(kind=kind, value=value, negate=negate)


def parse_rules(lines: Iterable[str]) -> list[ExclusionRule]:
    """Parse rule lines in order, skipping blank and comment-only lines."""
    rules = []
    for line in lines:
        rule = parse_rule(line)
        if rule is not None:
            rules.append(rule)
    return rules


def load_rules(path: str | Path) -> list[ExclusionRule]:
    """Load rules from a UTF-8 text file, one rule per line."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not read exclusion file {str(path)!r}: {e}") from e
    rules = parse_rules(text.splitlines())
    logger.debug(f"Loaded {len(rules)} exclusion rules from {path}")
    return rules


def build_rules(
    literals: Iterable[str] = (),
    path: str | Path | None = None,
    profile_literals: Iterable[str] = (),
) -> list[ExclusionRule]:
    """Merge all rule sources into one ordered list.

    Later rules override earlier ones, so the order is: profile rules, then
    the rule file, then rules given on the command line.
    """
    rules = parse_rules(profile_literals)
    if path is not None:
        rules.extend(load_rules(path))
    rules.extend(parse_rules(literals))
    return rules


def match_keys(record: MirrorRecord) -> dict[RuleKind, str]:
    """The lowercase values of a mirror that rules are compared against."""
    return {
        RuleKind.DOMAIN: record.domain,
        RuleKind.COUNTRY: record.country.lower(),
        RuleKind.COUNTRY_CODE: record.country_code.lower(),
    }


def is_excluded(record: MirrorRecord, rules: list[ExclusionRule]) -> bool:
    """Decide whether a mirror is excluded.

    The last rule matching any of the mirror's keys wins: a plain rule
    excludes the mirror, a negated one keeps it. No match means keep.
    """
    keys = match_keys(record)
    for rule in reversed(rules):
        if keys[rule.kind] == rule.value:
            return not rule.negate
    return False

"""Writers for the ranked mirror list: pacman mirrorlist and CSV statistics."""

import csv
import io
import math
from datetime import datetime
from email.utils import format_datetime
from pathlib import Path

from .models import COMPUTED_FIELDS, SOURCE_FIELDS, MirrorRecord

CSV_FIELDS = SOURCE_FIELDS + COMPUTED_FIELDS


def to_server_line(record: MirrorRecord) -> str:
    return f"Server = {record.url}$repo/os/$arch"


def to_pacman_mirrorlist(mirrors: list[MirrorRecord]) -> str:
    """Render mirrors as pacman ``Server =`` lines, one per mirror."""
    return "".join(f"{to_server_line(m)}\n" for m in mirrors)


def mirrorlist_header(source_url: str, now: datetime | None = None) -> str:
    """Comment block written at the top of a mirrorlist file."""
    now = now or datetime.now().astimezone()
    return (
        "#\n"
        "# /etc/pacman.d/mirrorlist\n"
        "#\n"
        "#\n"
        "# Arch Linux mirrorlist generated by pacman-mirror-scoring\n"
        "#\n"
        f"# source: {source_url}\n"
        f"# when: {format_datetime(now)}\n"
        "#\n"
        "\n"
    )


def write_mirrorlist(path: str | Path, mirrors: list[MirrorRecord], source_url: str) -> None:
    # "x" mode: never overwrite an existing mirrorlist
    with open(path, "x", encoding="utf-8") as f:
        f.write(mirrorlist_header(source_url))
        f.write(to_pacman_mirrorlist(mirrors))


def _csv_value(value):
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    return value


def format_csv(mirrors: list[MirrorRecord]) -> str:
    """Serialize every field of every mirror as CSV, header row first."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_FIELDS, lineterminator="\n")
    writer.writeheader()
    for m in mirrors:
        writer.writerow({name: _csv_value(getattr(m, name)) for name in CSV_FIELDS})
    return buf.getvalue()


def write_csv(path: str | Path, mirrors: list[MirrorRecord]) -> None:
    with open(path, "x", encoding="utf-8", newline="") as f:
        f.write(format_csv(mirrors))

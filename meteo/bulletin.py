from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M"


@dataclass(frozen=True)
class Bulletin:
    ident: str
    issued_at: dt.datetime
    body: str


def parse_timestamp_line(line: str) -> dt.datetime | None:
    try:
        stamp = dt.datetime.strptime(line.strip(), TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return stamp.replace(tzinfo=dt.timezone.utc)


def split_bulletin(ident: str, text: str, kind: str) -> Bulletin | None:
    """Split a NOAA station file into its timestamp line and report body.

    METAR files carry the report on the second line; TAF reports may wrap,
    so every line after the timestamp is joined.
    """
    lines = [line.strip() for line in (text or "").strip().splitlines()]
    if len(lines) < 2:
        logger.debug("%s %s bulletin truncated (%d lines)", ident, kind, len(lines))
        return None
    issued_at = parse_timestamp_line(lines[0])
    if issued_at is None:
        logger.debug("%s %s bulletin has no timestamp line: %r", ident, kind, lines[0])
        return None
    if kind == "metar":
        body = lines[1]
    else:
        body = " ".join(line for line in lines[1:] if line)
    if not body:
        return None
    return Bulletin(ident=ident, issued_at=issued_at, body=body)

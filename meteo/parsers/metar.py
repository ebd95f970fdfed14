from __future__ import annotations

import datetime as dt
import logging
import re

from meteo.parsers.collect import collect_fields
from meteo.parsers.fields import STRUCTURAL_KEYWORDS
from meteo.parsers.models import IssueKind, MetarRecord, ParseIssue, Pressure, TemperatureReading
from meteo.parsers.tokens import tokenize
from meteo.parsers.validity import as_utc, parse_issue_group, resolve_issue_time

logger = logging.getLogger(__name__)

STATION_RE = re.compile(r"[A-Z][A-Z0-9]{3}")
REPORT_TYPES = {"METAR", "SPECI"}
REPORT_MODIFIERS = {"AUTO", "COR"}
TREND_MARKERS = {"BECMG", "TEMPO", "NOSIG"}


def _observed_at(token: str, reference: dt.datetime, issues: list[ParseIssue]) -> dt.datetime | None:
    group = parse_issue_group(token)
    if group is None:
        return None
    observed = resolve_issue_time(*group, reference)
    if observed is None:
        issues.append(ParseIssue(kind=IssueKind.INVALID_DATE, token=token))
        return reference
    return observed


def parse_metar(body: str, reference: dt.datetime) -> MetarRecord | None:
    reference = as_utc(reference)
    tokens = list(tokenize(body))
    if tokens and tokens[0] in REPORT_TYPES:
        tokens.pop(0)
    while tokens and tokens[0] in REPORT_MODIFIERS:
        tokens.pop(0)
    if not tokens or not STATION_RE.fullmatch(tokens[0]):
        logger.debug("No station code in METAR body %r", body)
        return None
    station = tokens.pop(0)

    issues: list[ParseIssue] = []
    observed_at = reference
    if tokens:
        issued = _observed_at(tokens[0], reference, issues)
        if issued is not None:
            observed_at = issued
            tokens.pop(0)
    while tokens and tokens[0] in REPORT_MODIFIERS:
        tokens.pop(0)

    remarks = ""
    if "RMK" in tokens:
        cut = tokens.index("RMK")
        remarks = " ".join(tokens[cut + 1 :])
        tokens = tokens[:cut]

    trend = ""
    cut = next((index for index, token in enumerate(tokens) if token in TREND_MARKERS), None)
    if cut is not None:
        trend = " ".join(tokens[cut:])
        tokens = tokens[:cut]

    found = collect_fields(tokens)
    issues.extend(
        ParseIssue(kind=IssueKind.MALFORMED_TOKEN, token=token)
        for token in found.unclaimed
        if token not in STRUCTURAL_KEYWORDS
    )

    return MetarRecord(
        station=station,
        raw_text=(body or "").strip(),
        observed_at=observed_at,
        wind=found.wind,
        visibility_m=found.visibility_m,
        clouds=tuple(found.clouds),
        phenomena=tuple(found.phenomena),
        temperature=found.temperature or TemperatureReading(),
        pressure=found.pressure or Pressure(),
        trend=trend,
        remarks=remarks,
        issues=tuple(issues),
    )

"""TAF header parsing and change-group segmentation.

The body after the header is scanned left to right. ``BECMG``, ``TEMPO``,
``PROBnn`` and ``FMddhhmm`` close the open segment and start a new one;
everything else belongs to the open segment. Segments are kept in source
order and never merged.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from dataclasses import dataclass, field

from meteo.parsers.collect import collect_fields
from meteo.parsers.fields import STRUCTURAL_KEYWORDS
from meteo.parsers.metar import STATION_RE
from meteo.parsers.models import (
    ForecastSegment,
    IssueKind,
    ParseIssue,
    SegmentType,
    TafRecord,
    ValidityWindow,
)
from meteo.parsers.tokens import tokenize
from meteo.parsers.validity import (
    as_utc,
    parse_issue_group,
    parse_period,
    resolve_after,
    resolve_change_window,
    resolve_issue_time,
)

logger = logging.getLogger(__name__)

PROB_RE = re.compile(r"PROB(?P<pct>\d{2})")
FM_RE = re.compile(r"FM(?P<day>\d{2})(?P<hour>\d{2})(?P<min>\d{2})")
CHANGE_MARKERS = {"BECMG": SegmentType.BECMG, "TEMPO": SegmentType.TEMPO}


@dataclass
class _OpenSegment:
    segment_type: SegmentType
    validity: ValidityWindow | None
    probability_percent: int | None = None
    raw_tokens: list[str] = field(default_factory=list)
    field_tokens: list[str] = field(default_factory=list)

    def close(self, issues: list[ParseIssue] | None) -> ForecastSegment:
        found = collect_fields(self.field_tokens)
        if issues is not None:
            issues.extend(
                ParseIssue(kind=IssueKind.MALFORMED_TOKEN, token=token)
                for token in found.unclaimed
                if token not in STRUCTURAL_KEYWORDS
            )
        return ForecastSegment(
            segment_type=self.segment_type,
            raw_text=" ".join(self.raw_tokens),
            validity=self.validity,
            probability_percent=self.probability_percent,
            wind=found.wind,
            visibility_m=found.visibility_m,
            clouds=tuple(found.clouds),
            phenomena=tuple(found.phenomena),
        )


def _fm_window(token: str, overall: ValidityWindow | None, emission: dt.datetime) -> ValidityWindow | None:
    match = FM_RE.fullmatch(token)
    start = resolve_after(
        int(match.group("day")),
        int(match.group("hour")),
        int(match.group("min")),
        emission,
    )
    if start is None or overall is None or overall.end_utc <= start:
        return None
    return ValidityWindow(start_utc=start, end_utc=overall.end_utc)


def _open_segment(token: str, overall: ValidityWindow | None, emission: dt.datetime) -> _OpenSegment | None:
    if token in CHANGE_MARKERS:
        return _OpenSegment(CHANGE_MARKERS[token], overall, raw_tokens=[token])
    match = PROB_RE.fullmatch(token)
    if match:
        return _OpenSegment(
            SegmentType.PROB,
            overall,
            probability_percent=int(match.group("pct")),
            raw_tokens=[token],
        )
    if FM_RE.fullmatch(token):
        return _OpenSegment(SegmentType.FM, _fm_window(token, overall, emission), raw_tokens=[token])
    return None


def segment(
    tokens: list[str] | tuple[str, ...],
    overall: ValidityWindow | None,
    emission: dt.datetime,
    issues: list[ParseIssue] | None = None,
) -> tuple[ForecastSegment, ...]:
    segments: list[ForecastSegment] = []
    current = _OpenSegment(SegmentType.INIT, overall)
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        opened = _open_segment(token, overall, emission)
        if opened is None:
            current.raw_tokens.append(token)
            current.field_tokens.append(token)
            continue

        segments.append(current.close(issues))
        current = opened
        if current.segment_type is SegmentType.FM or index >= len(tokens):
            continue
        period = parse_period(tokens[index])
        if period is None:
            continue
        current.raw_tokens.append(tokens[index])
        index += 1
        window = resolve_change_window(*period, emission)
        if window is None:
            if issues is not None:
                issues.append(ParseIssue(kind=IssueKind.INVALID_DATE, token=tokens[index - 1]))
        else:
            current.validity = window

    segments.append(current.close(issues))
    return tuple(segments)


def parse_taf(body: str, reference: dt.datetime) -> TafRecord | None:
    reference = as_utc(reference)
    tokens = list(tokenize(body))
    is_amended = is_corrected = False

    def take_modifiers() -> None:
        nonlocal is_amended, is_corrected
        while tokens and tokens[0] in ("AMD", "COR"):
            if tokens.pop(0) == "AMD":
                is_amended = True
            else:
                is_corrected = True

    if tokens and tokens[0] == "TAF":
        tokens.pop(0)
    take_modifiers()
    if not tokens or not STATION_RE.fullmatch(tokens[0]):
        logger.debug("No station code in TAF body %r", body)
        return None
    station = tokens.pop(0)
    take_modifiers()

    issues: list[ParseIssue] = []
    issued_at = reference
    group = parse_issue_group(tokens[0]) if tokens else None
    if group is not None:
        token = tokens.pop(0)
        resolved = resolve_issue_time(*group, reference)
        if resolved is None:
            issues.append(ParseIssue(kind=IssueKind.INVALID_DATE, token=token))
        else:
            issued_at = resolved

    overall = None
    period = parse_period(tokens[0]) if tokens else None
    if period is None:
        issues.append(ParseIssue(kind=IssueKind.MISSING_VALIDITY_GROUP))
    else:
        token = tokens.pop(0)
        overall = resolve_change_window(*period, issued_at)
        if overall is None:
            issues.append(ParseIssue(kind=IssueKind.INVALID_DATE, token=token))

    remarks = ""
    if "RMK" in tokens:
        cut = tokens.index("RMK")
        remarks = " ".join(tokens[cut + 1 :])
        tokens = tokens[:cut]

    segments = segment(tokens, overall, issued_at, issues)
    return TafRecord(
        station=station,
        raw_text=(body or "").strip(),
        issued_at=issued_at,
        validity=overall,
        segments=segments,
        is_amended=is_amended,
        is_corrected=is_corrected,
        remarks=remarks,
        issues=tuple(issues),
    )

"""Token grammars for METAR/TAF fields.

Every extractor takes a single token and returns a value or ``None``.
``classify`` tries them in a fixed precedence so that exactly one grammar
claims a token.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from meteo.parsers.models import (
    CloudLayer,
    Coverage,
    Intensity,
    PhenomenonCategory,
    Pressure,
    TemperatureReading,
    WeatherPhenomenon,
    WindObservation,
    WindUnits,
)

VISIBILITY_UNLIMITED = 9999
HPA_PER_INHG = 33.8639

VRB_WIND_RE = re.compile(r"VRB(?P<speed>\d{2,3})(G(?P<gust>\d{2,3}))?(?P<units>KT|MPS)")
UNKNOWN_DIR_WIND_RE = re.compile(r"///(?P<speed>\d{2,3})(G(?P<gust>\d{2,3}))?(?P<units>KT|MPS)")
CALM_WIND_RE = re.compile(r"00000(?P<units>KT|MPS)")
WIND_RE = re.compile(r"(?P<dir>\d{3})(?P<speed>\d{2,3})(G(?P<gust>\d{2,3}))?(?P<units>KT|MPS)")
VAR_WIND_RE = re.compile(r"(?P<from>\d{3})V(?P<to>\d{3})")
VIS_RE = re.compile(r"\d{4}")
CLOUD_RE = re.compile(r"(?P<cover>FEW|SCT|BKN|OVC)(?P<base>\d{3})(?P<type>CB|TCU)?")
WEATHER_RE = re.compile(r"(?P<intensity>\+|-|VC)?(?P<code>[A-Z]{2,})")
TEMP_RE = re.compile(r"(?P<tsign>M)?(?P<temp>\d{1,2})/(?:(?P<dsign>M)?(?P<dew>\d{1,2})|(?://)?)")
QNH_RE = re.compile(r"Q(?P<qnh>\d{4})")
ALTIMETER_RE = re.compile(r"A(?P<inhg>\d{4})")

UNLIMITED_VISIBILITY_TOKENS = {"CAVOK", "SKC", "CLR", "NSC", "9999"}
SKY_CLEAR_TOKENS = {"NSC", "NCD", "CLR", "SKC"}

STRUCTURAL_KEYWORDS = {
    "BECMG",
    "TEMPO",
    "PROB30",
    "PROB40",
    "FM",
    "AMD",
    "COR",
    "CNL",
    "NIL",
    "TAF",
    "METAR",
    "SPECI",
    "AUTO",
    "NOSIG",
    "NSW",
}

DESCRIPTORS = {"MI", "BC", "PR", "DR", "BL", "SH", "FZ", "TS", "RE"}

PHENOMENON_CATEGORIES = {
    "DZ": PhenomenonCategory.PRECIPITATION,
    "RA": PhenomenonCategory.PRECIPITATION,
    "SN": PhenomenonCategory.PRECIPITATION,
    "SG": PhenomenonCategory.PRECIPITATION,
    "IC": PhenomenonCategory.PRECIPITATION,
    "PL": PhenomenonCategory.PRECIPITATION,
    "GR": PhenomenonCategory.PRECIPITATION,
    "GS": PhenomenonCategory.PRECIPITATION,
    "UP": PhenomenonCategory.PRECIPITATION,
    "BR": PhenomenonCategory.OBSCURATION,
    "FG": PhenomenonCategory.OBSCURATION,
    "FU": PhenomenonCategory.OBSCURATION,
    "VA": PhenomenonCategory.OBSCURATION,
    "DU": PhenomenonCategory.OBSCURATION,
    "SA": PhenomenonCategory.OBSCURATION,
    "HZ": PhenomenonCategory.OBSCURATION,
    "PY": PhenomenonCategory.OBSCURATION,
    "PO": PhenomenonCategory.OTHER,
    "SQ": PhenomenonCategory.OTHER,
    "FC": PhenomenonCategory.OTHER,
    "SS": PhenomenonCategory.OTHER,
    "DS": PhenomenonCategory.OTHER,
    "TS": PhenomenonCategory.OTHER,
    "VC": PhenomenonCategory.VICINITY,
}


class Grammar(str, Enum):
    WIND = "WIND"
    WIND_VARIATION = "WIND_VARIATION"
    VISIBILITY = "VISIBILITY"
    SKY_CLEAR = "SKY_CLEAR"
    CLOUD = "CLOUD"
    PHENOMENON = "PHENOMENON"
    TEMPERATURE = "TEMPERATURE"
    PRESSURE = "PRESSURE"


@dataclass(frozen=True)
class Claim:
    """A token claimed by one grammar.

    ``SKY_CLEAR`` carries a ``CloudLayer``; its visibility is always
    ``VISIBILITY_UNLIMITED``.
    """

    kind: Grammar
    value: Any


def _optional_int(value: str | None) -> int | None:
    return int(value) if value else None


def extract_wind(token: str) -> WindObservation | None:
    match = VRB_WIND_RE.fullmatch(token)
    if match:
        return WindObservation(
            direction=None,
            is_variable=True,
            speed=int(match.group("speed")),
            gust_speed=_optional_int(match.group("gust")),
            units=WindUnits(match.group("units")),
        )
    match = UNKNOWN_DIR_WIND_RE.fullmatch(token)
    if match:
        return WindObservation(
            direction=None,
            speed=int(match.group("speed")),
            gust_speed=_optional_int(match.group("gust")),
            units=WindUnits(match.group("units")),
        )
    match = CALM_WIND_RE.fullmatch(token)
    if match:
        return WindObservation(direction=0, speed=0, units=WindUnits(match.group("units")))
    match = WIND_RE.fullmatch(token)
    if match:
        direction = int(match.group("dir"))
        if direction > 360:
            return None
        return WindObservation(
            direction=direction,
            speed=int(match.group("speed")),
            gust_speed=_optional_int(match.group("gust")),
            units=WindUnits(match.group("units")),
        )
    return None


def extract_wind_variation(token: str) -> tuple[int, int] | None:
    match = VAR_WIND_RE.fullmatch(token)
    if not match:
        return None
    return int(match.group("from")), int(match.group("to"))


def extract_visibility(token: str) -> int | None:
    if token in UNLIMITED_VISIBILITY_TOKENS:
        return VISIBILITY_UNLIMITED
    if VIS_RE.fullmatch(token):
        return int(token)
    return None


def extract_cloud(token: str) -> CloudLayer | None:
    if token in SKY_CLEAR_TOKENS:
        return CloudLayer(coverage=Coverage(token))
    match = CLOUD_RE.fullmatch(token)
    if not match:
        return None
    return CloudLayer(
        coverage=Coverage(match.group("cover")),
        base_height_ft=int(match.group("base")) * 100,
        is_convective=match.group("type") is not None,
    )


def _categorize(code: str, intensity: Intensity | None) -> PhenomenonCategory:
    if intensity is Intensity.VICINITY:
        return PhenomenonCategory.VICINITY
    chunks = [code[i : i + 2] for i in range(0, len(code), 2)]
    if any(len(chunk) != 2 for chunk in chunks):
        return PhenomenonCategory.UNKNOWN
    named = next((chunk for chunk in chunks if chunk not in DESCRIPTORS), chunks[0])
    return PHENOMENON_CATEGORIES.get(named, PhenomenonCategory.UNKNOWN)


def extract_phenomenon(token: str) -> WeatherPhenomenon | None:
    if token.startswith(("Q", "A", "RMK")) or token in STRUCTURAL_KEYWORDS:
        return None
    match = WEATHER_RE.fullmatch(token)
    if not match:
        return None
    intensity = Intensity(match.group("intensity")) if match.group("intensity") else None
    code = match.group("code")
    return WeatherPhenomenon(code=code, intensity=intensity, category=_categorize(code, intensity))


def extract_temperature(token: str) -> TemperatureReading | None:
    match = TEMP_RE.fullmatch(token)
    if not match:
        return None
    temp = int(match.group("temp"))
    if match.group("tsign"):
        temp = -temp
    dew = _optional_int(match.group("dew"))
    if dew is not None and match.group("dsign"):
        dew = -dew
    return TemperatureReading(air_temp_c=temp, dew_point_c=dew)


def extract_pressure(token: str) -> Pressure | None:
    match = QNH_RE.fullmatch(token)
    if match:
        return Pressure(qnh_hpa=int(match.group("qnh")))
    match = ALTIMETER_RE.fullmatch(token)
    if match:
        inhg = int(match.group("inhg")) / 100
        return Pressure(qnh_hpa=int(round(inhg * HPA_PER_INHG)))
    return None


def _extract_sky_clear(token: str) -> CloudLayer | None:
    if token in SKY_CLEAR_TOKENS and token in UNLIMITED_VISIBILITY_TOKENS:
        return CloudLayer(coverage=Coverage(token))
    return None


EXTRACTORS = (
    (Grammar.WIND, extract_wind),
    (Grammar.WIND_VARIATION, extract_wind_variation),
    (Grammar.SKY_CLEAR, _extract_sky_clear),
    (Grammar.VISIBILITY, extract_visibility),
    (Grammar.CLOUD, extract_cloud),
    (Grammar.PHENOMENON, extract_phenomenon),
    (Grammar.TEMPERATURE, extract_temperature),
    (Grammar.PRESSURE, extract_pressure),
)


def classify(token: str) -> Claim | None:
    for kind, extractor in EXTRACTORS:
        value = extractor(token)
        if value is not None:
            return Claim(kind=kind, value=value)
    return None

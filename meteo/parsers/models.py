from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum


class WindUnits(str, Enum):
    KT = "KT"
    MPS = "MPS"


class Coverage(str, Enum):
    FEW = "FEW"
    SCT = "SCT"
    BKN = "BKN"
    OVC = "OVC"
    NSC = "NSC"
    NCD = "NCD"
    CLR = "CLR"
    SKC = "SKC"


class Intensity(str, Enum):
    LIGHT = "-"
    HEAVY = "+"
    VICINITY = "VC"


class PhenomenonCategory(str, Enum):
    PRECIPITATION = "PRECIPITATION"
    OBSCURATION = "OBSCURATION"
    OTHER = "OTHER"
    VICINITY = "VICINITY"
    UNKNOWN = "UNKNOWN"


class SegmentType(str, Enum):
    INIT = "INIT"
    BECMG = "BECMG"
    TEMPO = "TEMPO"
    PROB = "PROB"
    FM = "FM"


class IssueKind(str, Enum):
    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    MISSING_VALIDITY_GROUP = "MISSING_VALIDITY_GROUP"
    INVALID_DATE = "INVALID_DATE"


@dataclass(frozen=True)
class WindObservation:
    direction: int | None = None  # None when VRB or ///
    is_variable: bool = False
    speed: int | None = None
    gust_speed: int | None = None
    units: WindUnits = WindUnits.KT
    variation_from: int | None = None
    variation_to: int | None = None


@dataclass(frozen=True)
class CloudLayer:
    coverage: Coverage
    base_height_ft: int | None = None
    is_convective: bool = False


@dataclass(frozen=True)
class WeatherPhenomenon:
    code: str
    intensity: Intensity | None = None
    category: PhenomenonCategory = PhenomenonCategory.UNKNOWN


@dataclass(frozen=True)
class TemperatureReading:
    air_temp_c: int | None = None
    dew_point_c: int | None = None


@dataclass(frozen=True)
class Pressure:
    qnh_hpa: int | None = None


@dataclass(frozen=True)
class ValidityWindow:
    start_utc: dt.datetime
    end_utc: dt.datetime


@dataclass(frozen=True)
class ParseIssue:
    kind: IssueKind
    token: str | None = None


@dataclass(frozen=True)
class MetarRecord:
    station: str
    raw_text: str
    observed_at: dt.datetime
    wind: WindObservation | None = None
    visibility_m: int | None = None
    clouds: tuple[CloudLayer, ...] = ()
    phenomena: tuple[WeatherPhenomenon, ...] = ()
    temperature: TemperatureReading = field(default_factory=TemperatureReading)
    pressure: Pressure = field(default_factory=Pressure)
    trend: str = ""
    remarks: str = ""
    issues: tuple[ParseIssue, ...] = ()


@dataclass(frozen=True)
class ForecastSegment:
    segment_type: SegmentType
    raw_text: str
    validity: ValidityWindow | None = None
    probability_percent: int | None = None
    wind: WindObservation | None = None
    visibility_m: int | None = None
    clouds: tuple[CloudLayer, ...] = ()
    phenomena: tuple[WeatherPhenomenon, ...] = ()


@dataclass(frozen=True)
class TafRecord:
    station: str
    raw_text: str
    issued_at: dt.datetime
    validity: ValidityWindow | None = None
    segments: tuple[ForecastSegment, ...] = ()
    is_amended: bool = False
    is_corrected: bool = False
    remarks: str = ""
    issues: tuple[ParseIssue, ...] = ()

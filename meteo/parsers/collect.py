from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Iterable

from meteo.parsers.fields import VISIBILITY_UNLIMITED, Grammar, classify
from meteo.parsers.models import (
    CloudLayer,
    Pressure,
    TemperatureReading,
    WeatherPhenomenon,
    WindObservation,
)


@dataclass
class CollectedFields:
    wind: WindObservation | None = None
    visibility_m: int | None = None
    clouds: list[CloudLayer] = field(default_factory=list)
    phenomena: list[WeatherPhenomenon] = field(default_factory=list)
    temperature: TemperatureReading | None = None
    pressure: Pressure | None = None
    unclaimed: list[str] = field(default_factory=list)


def collect_fields(tokens: Iterable[str]) -> CollectedFields:
    found = CollectedFields()
    for token in tokens:
        claim = classify(token)
        if claim is None:
            found.unclaimed.append(token)
            continue
        if claim.kind is Grammar.WIND:
            if found.wind is None:
                found.wind = claim.value
        elif claim.kind is Grammar.WIND_VARIATION:
            if found.wind is not None and found.wind.variation_from is None:
                var_from, var_to = claim.value
                found.wind = dataclasses.replace(found.wind, variation_from=var_from, variation_to=var_to)
        elif claim.kind is Grammar.VISIBILITY:
            if found.visibility_m is None:
                found.visibility_m = claim.value
        elif claim.kind is Grammar.SKY_CLEAR:
            if found.visibility_m is None:
                found.visibility_m = VISIBILITY_UNLIMITED
            found.clouds.append(claim.value)
        elif claim.kind is Grammar.CLOUD:
            found.clouds.append(claim.value)
        elif claim.kind is Grammar.PHENOMENON:
            found.phenomena.append(claim.value)
        elif claim.kind is Grammar.TEMPERATURE:
            if found.temperature is None:
                found.temperature = claim.value
        elif claim.kind is Grammar.PRESSURE:
            if found.pressure is None:
                found.pressure = claim.value
    return found

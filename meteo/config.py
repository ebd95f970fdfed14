from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from dotenv import load_dotenv

from meteo.exceptions import ConfigError

DEFAULT_METAR_URL = "https://tgftp.nws.noaa.gov/data/observations/metar/stations/{ident}.TXT"
DEFAULT_TAF_URL = "https://tgftp.nws.noaa.gov/data/forecasts/taf/stations/{ident}.TXT"


@dataclass
class Settings:
    supabase_url: str | None = None
    supabase_key: str | None = None
    metar_url: str = DEFAULT_METAR_URL
    taf_url: str = DEFAULT_TAF_URL
    http_timeout_s: float = 10.0
    pause_s: float = 0.1
    slow_stations: frozenset[str] = field(default_factory=frozenset)
    slow_pause_s: float = 1.0

    def pause_for(self, ident: str) -> float:
        if ident in self.slow_stations:
            return self.slow_pause_s
        return self.pause_s


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    if env is None:
        load_dotenv()
        env = os.environ
    slow = env.get("METEO_SLOW_STATIONS", "")
    return Settings(
        supabase_url=env.get("SUPABASE_URL") or None,
        supabase_key=env.get("SUPABASE_KEY") or env.get("SUPABASE_SERVICE_ROLE_KEY") or None,
        metar_url=env.get("METEO_METAR_URL") or DEFAULT_METAR_URL,
        taf_url=env.get("METEO_TAF_URL") or DEFAULT_TAF_URL,
        http_timeout_s=_float(env, "METEO_HTTP_TIMEOUT", 10.0),
        pause_s=_float(env, "METEO_PAUSE_S", 0.1),
        slow_stations=frozenset(code.strip().upper() for code in slow.split(",") if code.strip()),
        slow_pause_s=_float(env, "METEO_SLOW_PAUSE_S", 1.0),
    )

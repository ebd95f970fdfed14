"""Supabase persistence for parsed METAR and TAF records.

``metars`` and ``tafs`` hold one row per station (upsert on ``code_oaci``).
``taf_segments`` rows belong to a ``tafs`` row and are replaced as a set
whenever that station's TAF is written.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any

from supabase import Client, create_client

from meteo.config import Settings
from meteo.exceptions import ConfigError, StoreError
from meteo.parsers.models import (
    CloudLayer,
    ForecastSegment,
    MetarRecord,
    TafRecord,
    ValidityWindow,
    WeatherPhenomenon,
    WindObservation,
)

logger = logging.getLogger(__name__)

INSERT_ATTEMPTS = 2


def _iso(value: dt.datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def _now() -> str:
    return _iso(dt.datetime.now(dt.timezone.utc))


def _wind_columns(wind: WindObservation | None) -> dict[str, Any]:
    if wind is None:
        return {
            "wind_direction_deg": None,
            "wind_variable": None,
            "wind_speed": None,
            "wind_gust": None,
            "wind_units": None,
            "wind_variation_from_deg": None,
            "wind_variation_to_deg": None,
        }
    return {
        "wind_direction_deg": wind.direction,
        "wind_variable": wind.is_variable,
        "wind_speed": wind.speed,
        "wind_gust": wind.gust_speed,
        "wind_units": wind.units.value,
        "wind_variation_from_deg": wind.variation_from,
        "wind_variation_to_deg": wind.variation_to,
    }


def _window_columns(window: ValidityWindow | None) -> dict[str, Any]:
    return {
        "valid_from": _iso(window.start_utc) if window else None,
        "valid_to": _iso(window.end_utc) if window else None,
    }


def _clouds(layers: tuple[CloudLayer, ...]) -> list[dict]:
    return [
        {
            "coverage": layer.coverage.value,
            "base_ft": layer.base_height_ft,
            "convective": layer.is_convective,
        }
        for layer in layers
    ]


def _phenomena(items: tuple[WeatherPhenomenon, ...]) -> list[dict]:
    return [
        {
            "code": item.code,
            "intensity": item.intensity.value if item.intensity else None,
            "category": item.category.value,
        }
        for item in items
    ]


def metar_row(record: MetarRecord, updated_at: str | None = None) -> dict[str, Any]:
    return {
        "code_oaci": record.station,
        "raw_metar": record.raw_text,
        "date_observation": _iso(record.observed_at),
        **_wind_columns(record.wind),
        "visibility_m": record.visibility_m,
        "clouds": _clouds(record.clouds),
        "phenomena": _phenomena(record.phenomena),
        "temperature_c": record.temperature.air_temp_c,
        "dew_point_c": record.temperature.dew_point_c,
        "qnh_hpa": record.pressure.qnh_hpa,
        "trend": record.trend,
        "remarks": record.remarks,
        "updated_at": updated_at or _now(),
    }


def taf_row(record: TafRecord, updated_at: str | None = None) -> dict[str, Any]:
    return {
        "code_oaci": record.station,
        "raw_taf": record.raw_text,
        "date_emission": _iso(record.issued_at),
        **_window_columns(record.validity),
        "is_amended": record.is_amended,
        "is_corrected": record.is_corrected,
        "remarks": record.remarks,
        "updated_at": updated_at or _now(),
    }


def segment_rows(taf_id: Any, segments: tuple[ForecastSegment, ...]) -> list[dict[str, Any]]:
    return [
        {
            "taf_id": taf_id,
            "position": position,
            "segment_type": item.segment_type.value,
            "probability_percent": item.probability_percent,
            **_window_columns(item.validity),
            "raw_text": item.raw_text,
            **_wind_columns(item.wind),
            "visibility_m": item.visibility_m,
            "clouds": _clouds(item.clouds),
            "phenomena": _phenomena(item.phenomena),
        }
        for position, item in enumerate(segments)
    ]


class SupabaseStore:
    def __init__(self, client: Client) -> None:
        self.client = client

    def list_stations(self) -> list[str]:
        try:
            response = self.client.table("aerodromes").select("code_oaci").execute()
        except Exception as exc:
            raise StoreError(f"Could not list aerodromes: {exc}") from exc
        return [row["code_oaci"] for row in response.data or [] if row.get("code_oaci")]

    def save_metar(self, record: MetarRecord) -> None:
        try:
            self.client.table("metars").upsert(metar_row(record), on_conflict="code_oaci").execute()
        except Exception as exc:
            raise StoreError(f"METAR upsert failed for {record.station}: {exc}") from exc

    def save_taf(self, record: TafRecord) -> Any:
        try:
            response = self.client.table("tafs").upsert(taf_row(record), on_conflict="code_oaci").execute()
        except Exception as exc:
            raise StoreError(f"TAF upsert failed for {record.station}: {exc}") from exc
        if not response.data:
            raise StoreError(f"TAF upsert for {record.station} returned no row")
        taf_id = response.data[0]["id"]

        rows = segment_rows(taf_id, record.segments)
        try:
            self.client.table("taf_segments").delete().eq("taf_id", taf_id).execute()
        except Exception as exc:
            raise StoreError(f"TAF segment delete failed for {record.station}: {exc}") from exc
        if rows:
            self._insert_segments(record.station, taf_id, rows)
        logger.debug("Stored TAF %s for %s with %d segments", taf_id, record.station, len(rows))
        return taf_id

    def _insert_segments(self, station: str, taf_id: Any, rows: list[dict[str, Any]]) -> None:
        # Old segments are already deleted here; one retry before giving up.
        for attempt in range(1, INSERT_ATTEMPTS + 1):
            try:
                self.client.table("taf_segments").insert(rows).execute()
                return
            except Exception as exc:
                if attempt < INSERT_ATTEMPTS:
                    logger.warning("TAF segment insert for %s failed, retrying: %s", station, exc)
                    continue
                logger.error("TAF %s for %s left without segments after failed insert", taf_id, station)
                raise StoreError(f"TAF segment insert failed for {station}: {exc}") from exc


def create_store(settings: Settings) -> SupabaseStore:
    if not settings.supabase_url or not settings.supabase_key:
        raise ConfigError("SUPABASE_URL and SUPABASE_KEY environment variables must be set.")
    return SupabaseStore(create_client(settings.supabase_url, settings.supabase_key))

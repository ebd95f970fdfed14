import datetime as dt
from unittest.mock import MagicMock

import pytest

from meteo.config import Settings
from meteo.exceptions import ConfigError, StoreError
from meteo.parsers.metar import parse_metar
from meteo.parsers.taf import parse_taf
from meteo.store import SupabaseStore, create_store, metar_row, segment_rows, taf_row

REFERENCE = dt.datetime(2024, 6, 15, 11, 0, tzinfo=dt.timezone.utc)
TAF_BODY = "TAF EGLL 151059Z 1512/1618 24012KT 9999 SCT030 BECMG 1606/1608 25020G35KT TEMPO -SHRA"


def test_metar_row_keeps_every_column():
    record = parse_metar("EGLL 151050Z VRB03KT 4000 -RA BKN012 M01/M03 Q0998", REFERENCE)
    row = metar_row(record, updated_at="2024-06-15T11:00:00Z")
    assert row["code_oaci"] == "EGLL"
    assert row["raw_metar"] == "EGLL 151050Z VRB03KT 4000 -RA BKN012 M01/M03 Q0998"
    assert row["date_observation"] == "2024-06-15T10:50:00Z"
    assert row["wind_direction_deg"] is None
    assert row["wind_variable"] is True
    assert row["wind_units"] == "KT"
    assert row["visibility_m"] == 4000
    assert row["clouds"] == [{"coverage": "BKN", "base_ft": 1200, "convective": False}]
    assert row["phenomena"] == [{"code": "RA", "intensity": "-", "category": "PRECIPITATION"}]
    assert row["temperature_c"] == -1
    assert row["dew_point_c"] == -3
    assert row["qnh_hpa"] == 998
    assert row["updated_at"] == "2024-06-15T11:00:00Z"


def test_metar_row_without_wind_has_unset_columns():
    row = metar_row(parse_metar("EGLL 151050Z", REFERENCE))
    assert "wind_speed" in row
    assert row["wind_speed"] is None
    assert row["temperature_c"] is None


def test_taf_rows():
    record = parse_taf(TAF_BODY, REFERENCE)
    row = taf_row(record)
    assert row["code_oaci"] == "EGLL"
    assert row["valid_from"] == "2024-06-15T12:00:00Z"
    assert row["valid_to"] == "2024-06-16T18:00:00Z"

    rows = segment_rows(7, record.segments)
    assert [r["position"] for r in rows] == [0, 1, 2]
    assert [r["segment_type"] for r in rows] == ["INIT", "BECMG", "TEMPO"]
    assert rows[1]["valid_from"] == "2024-06-16T06:00:00Z"
    assert rows[1]["wind_gust"] == 35
    assert all(r["taf_id"] == 7 for r in rows)


def test_save_metar_upserts_on_station():
    client = MagicMock()
    store = SupabaseStore(client)
    store.save_metar(parse_metar("EGLL 151050Z 24015KT", REFERENCE))
    client.table.assert_called_with("metars")
    kwargs = client.table.return_value.upsert.call_args.kwargs
    assert kwargs["on_conflict"] == "code_oaci"


def test_save_taf_replaces_segments():
    client = MagicMock()
    tafs = MagicMock()
    segments = MagicMock()
    tafs.upsert.return_value.execute.return_value.data = [{"id": 42}]
    client.table.side_effect = lambda name: {"tafs": tafs, "taf_segments": segments}[name]

    taf_id = SupabaseStore(client).save_taf(parse_taf(TAF_BODY, REFERENCE))

    assert taf_id == 42
    segments.delete.return_value.eq.assert_called_once_with("taf_id", 42)
    inserted = segments.insert.call_args.args[0]
    assert len(inserted) == 3
    assert inserted[0]["segment_type"] == "INIT"


def test_save_taf_without_returned_row_fails():
    client = MagicMock()
    client.table.return_value.upsert.return_value.execute.return_value.data = []
    with pytest.raises(StoreError):
        SupabaseStore(client).save_taf(parse_taf(TAF_BODY, REFERENCE))


def test_store_wraps_client_errors():
    client = MagicMock()
    client.table.return_value.upsert.return_value.execute.side_effect = RuntimeError("boom")
    with pytest.raises(StoreError):
        SupabaseStore(client).save_metar(parse_metar("EGLL 151050Z 24015KT", REFERENCE))


def test_list_stations():
    client = MagicMock()
    client.table.return_value.select.return_value.execute.return_value.data = [
        {"code_oaci": "EGLL"},
        {"code_oaci": None},
        {"code_oaci": "LFPG"},
    ]
    assert SupabaseStore(client).list_stations() == ["EGLL", "LFPG"]


def test_create_store_requires_credentials():
    with pytest.raises(ConfigError):
        create_store(Settings())


def _taf_client(segments):
    client = MagicMock()
    tafs = MagicMock()
    tafs.upsert.return_value.execute.return_value.data = [{"id": 42}]
    client.table.side_effect = lambda name: {"tafs": tafs, "taf_segments": segments}[name]
    return client


def test_save_taf_retries_segment_insert_once():
    segments = MagicMock()
    segments.insert.return_value.execute.side_effect = [RuntimeError("timeout"), None]

    taf_id = SupabaseStore(_taf_client(segments)).save_taf(parse_taf(TAF_BODY, REFERENCE))

    assert taf_id == 42
    assert segments.insert.call_count == 2


def test_save_taf_logs_taf_left_without_segments(caplog):
    segments = MagicMock()
    segments.insert.return_value.execute.side_effect = RuntimeError("timeout")

    with caplog.at_level("ERROR", logger="meteo.store"), pytest.raises(StoreError):
        SupabaseStore(_taf_client(segments)).save_taf(parse_taf(TAF_BODY, REFERENCE))

    segments.delete.return_value.eq.assert_called_once_with("taf_id", 42)
    assert segments.insert.call_count == 2
    assert "TAF 42 for EGLL left without segments" in caplog.text


def test_save_taf_delete_failure_skips_insert():
    segments = MagicMock()
    segments.delete.return_value.eq.return_value.execute.side_effect = RuntimeError("boom")

    with pytest.raises(StoreError):
        SupabaseStore(_taf_client(segments)).save_taf(parse_taf(TAF_BODY, REFERENCE))

    segments.insert.assert_not_called()


def test_rows_carry_trend_and_remarks():
    metar = parse_metar("EGLL 151050Z 24015KT 9999 Q1013 NOSIG", REFERENCE)
    assert metar_row(metar)["trend"] == "NOSIG"
    taf = parse_taf("TAF CYYZ 151059Z 1512/1618 24012KT P6SM SCT030 RMK NXT FCST BY 18Z", REFERENCE)
    assert taf_row(taf)["remarks"] == "NXT FCST BY 18Z"

import datetime as dt

from meteo.parsers.metar import parse_metar
from meteo.parsers.models import Coverage, IssueKind, PhenomenonCategory, WindUnits

UTC = dt.timezone.utc
REFERENCE = dt.datetime(2024, 6, 20, 12, 50, tzinfo=UTC)


def test_parse_metar_example():
    record = parse_metar("EGLL 201250Z 24015G25KT 9999 FEW035 18/12 Q1013", REFERENCE)
    assert record.station == "EGLL"
    assert record.observed_at == dt.datetime(2024, 6, 20, 12, 50, tzinfo=UTC)
    assert record.wind.direction == 240
    assert record.wind.speed == 15
    assert record.wind.gust_speed == 25
    assert record.wind.units is WindUnits.KT
    assert record.visibility_m == 9999
    assert len(record.clouds) == 1
    assert record.clouds[0].coverage is Coverage.FEW
    assert record.clouds[0].base_height_ft == 3500
    assert record.clouds[0].is_convective is False
    assert record.temperature.air_temp_c == 18
    assert record.temperature.dew_point_c == 12
    assert record.pressure.qnh_hpa == 1013
    assert record.issues == ()


def test_parse_metar_us_style_with_remarks():
    record = parse_metar(
        "METAR KJFK 201251Z 18010KT 150V210 10SM -RA BR BKN008 OVC015CB 12/M01 A2992 RMK AO2 SLP132",
        REFERENCE,
    )
    assert record.station == "KJFK"
    assert record.wind.variation_from == 150
    assert record.wind.variation_to == 210
    assert record.visibility_m is None
    assert [p.code for p in record.phenomena] == ["RA", "BR"]
    assert record.phenomena[0].category is PhenomenonCategory.PRECIPITATION
    assert [layer.base_height_ft for layer in record.clouds] == [800, 1500]
    assert record.clouds[1].is_convective is True
    assert record.temperature.dew_point_c == -1
    assert record.pressure.qnh_hpa == 1013
    assert record.remarks == "AO2 SLP132"
    assert [issue.token for issue in record.issues] == ["10SM"]


def test_parse_metar_cavok_and_calm():
    record = parse_metar("LFPG 201230Z AUTO 00000KT CAVOK 21/09 Q1021 NOSIG", REFERENCE)
    assert record.wind.direction == 0
    assert record.wind.speed == 0
    assert record.wind.is_variable is False
    assert record.visibility_m == 9999
    assert record.clouds == ()
    assert record.phenomena == ()
    assert record.trend == "NOSIG"
    assert record.issues == ()


def test_parse_metar_sky_clear_sets_visibility_and_cloud():
    record = parse_metar("KLAX 201253Z VRB03KT SKC 22/14 A2990", REFERENCE)
    assert record.wind.is_variable is True
    assert record.wind.direction is None
    assert record.visibility_m == 9999
    assert record.clouds[0].coverage is Coverage.SKC
    assert record.clouds[0].base_height_ft is None


def test_parse_metar_missing_fields_are_unset():
    record = parse_metar("EGLL 201250Z", REFERENCE)
    assert record.wind is None
    assert record.visibility_m is None
    assert record.clouds == ()
    assert record.temperature.air_temp_c is None
    assert record.temperature.dew_point_c is None
    assert record.pressure.qnh_hpa is None


def test_parse_metar_malformed_tokens_are_skipped():
    record = parse_metar("EGLL 201250Z 24015KT ZZZ99 9999 Q1013", REFERENCE)
    assert record.wind.speed == 15
    assert record.visibility_m == 9999
    assert record.issues[0].kind is IssueKind.MALFORMED_TOKEN
    assert record.issues[0].token == "ZZZ99"


def test_parse_metar_previous_month_observation():
    reference = dt.datetime(2024, 7, 1, 0, 10, tzinfo=UTC)
    record = parse_metar("EGLL 302350Z 24015KT", reference)
    assert record.observed_at == dt.datetime(2024, 6, 30, 23, 50, tzinfo=UTC)


def test_parse_metar_without_time_group_uses_reference():
    record = parse_metar("EGLL 24015KT", REFERENCE)
    assert record.observed_at == REFERENCE
    assert record.wind.direction == 240


def test_parse_metar_truncated_body_yields_no_record():
    assert parse_metar("", REFERENCE) is None
    assert parse_metar("METAR", REFERENCE) is None
    assert parse_metar("201250Z 24015KT", REFERENCE) is None


def test_parse_metar_modifier_before_station():
    record = parse_metar("METAR COR EGLL 201250Z 24015KT 9999 FEW035 18/12 Q1013", REFERENCE)
    assert record.station == "EGLL"
    assert record.wind.direction == 240
    assert record.pressure.qnh_hpa == 1013
    assert parse_metar("AUTO KJFK 201251Z 31008KT", REFERENCE).station == "KJFK"


def test_parse_metar_trend_is_kept_out_of_observation():
    record = parse_metar("EGLL 201250Z 24015KT 9999 SCT035 18/12 Q1013 TEMPO 4000 SHRA BKN010", REFERENCE)
    assert record.visibility_m == 9999
    assert record.phenomena == ()
    assert [layer.base_height_ft for layer in record.clouds] == [3500]
    assert record.trend == "TEMPO 4000 SHRA BKN010"
    assert record.issues == ()


def test_parse_metar_becmg_trend_before_remarks():
    record = parse_metar("KJFK 201251Z 31008KT 10SM FEW250 24/12 A3002 BECMG 27015KT RMK AO2", REFERENCE)
    assert record.wind.direction == 310
    assert record.trend == "BECMG 27015KT"
    assert record.remarks == "AO2"

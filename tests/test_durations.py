import pytest

from downpour.durations import parse_duration, format_duration


def test_parse_duration_ms_s_m_h():
    assert parse_duration("500ms") == 0.5
    assert parse_duration("10s") == 10.0
    assert parse_duration("2m") == 120.0
    assert parse_duration("1h") == 3600.0


def test_parse_duration_trims_and_ignores_case():
    assert parse_duration("  250MS ") == 0.25
    assert parse_duration("3S") == 3.0


@pytest.mark.parametrize("text", ["", "10", "xs", "10d", "-5s", "1.5s", "ms"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_format_duration_picks_largest_exact_unit():
    assert format_duration(0.5) == "500ms"
    assert format_duration(2.0) == "2s"
    assert format_duration(120.0) == "2m"
    assert format_duration(7200.0) == "2h"
    assert format_duration(90.0) == "90s"
    assert format_duration(0) == "0s"

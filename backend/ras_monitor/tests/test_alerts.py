import math

import pytest

from ras_monitor.core.enums import AlertLevel
from ras_monitor.services.alerts import classify_reading, format_number
from ras_monitor.services.thresholds import DEFAULT_THRESHOLDS, generic_threshold

TEMPERATURE = DEFAULT_THRESHOLDS["temperature"]
PH = DEFAULT_THRESHOLDS["pH"]


def test_critical_low_boundary_is_inclusive():
    result = classify_reading(TEMPERATURE, 18)
    assert result.alert_level == AlertLevel.CRITICAL
    assert result.is_alert
    assert result.message == "Critical low temperature: 18 °C (below 18 °C)"


def test_warning_low_boundary_is_inclusive():
    result = classify_reading(TEMPERATURE, 20)
    assert result.alert_level == AlertLevel.WARNING
    assert result.message == "Warning low temperature: 20 °C (below 20 °C)"


def test_high_side_messages():
    assert classify_reading(TEMPERATURE, 32).message == "Critical high temperature: 32 °C (above 32 °C)"
    assert classify_reading(TEMPERATURE, 31.5).message == "Warning high temperature: 31.5 °C (above 30 °C)"
    assert classify_reading(TEMPERATURE, 30).alert_level == AlertLevel.WARNING


def test_normal_reading_has_no_message():
    result = classify_reading(TEMPERATURE, 25)
    assert result.alert_level == AlertLevel.NORMAL
    assert result.is_alert is False
    assert result.message == ""
    assert result.unit == "°C"


def test_ideal_band_is_not_compared():
    # 21 is outside the 24-28 ideal band but inside the warning bounds
    assert classify_reading(TEMPERATURE, 21).alert_level == AlertLevel.NORMAL
    assert classify_reading(TEMPERATURE, 29.9).alert_level == AlertLevel.NORMAL


def test_ph_above_critical_max():
    result = classify_reading(PH, 9.2)
    assert result.alert_level == AlertLevel.CRITICAL
    assert result.message == "Critical high pH: 9.2 pH (above 9 pH)"
    assert result.unit == "pH"


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_non_finite_values_are_critical(value):
    result = classify_reading(PH, value)
    assert result.alert_level == AlertLevel.CRITICAL
    assert result.is_alert
    assert result.message.startswith("Invalid pH reading")


def test_classification_is_pure():
    assert classify_reading(PH, 6.7) == classify_reading(PH, 6.7)


def test_generic_threshold_keeps_empty_unit():
    generic = generic_threshold("mystery")
    assert classify_reading(generic, 50).alert_level == AlertLevel.NORMAL
    low = classify_reading(generic, 0)
    assert low.alert_level == AlertLevel.CRITICAL
    assert low.message == "Critical low mystery: 0  (below 0 )"


def test_levels_follow_bounds_across_range():
    t = TEMPERATURE
    for tenth in range(100, 400):
        v = tenth / 10
        level = classify_reading(t, v).alert_level
        if v <= t.critical_min or v >= t.critical_max:
            assert level == AlertLevel.CRITICAL, v
        elif v <= t.warning_min or v >= t.warning_max:
            assert level == AlertLevel.WARNING, v
        else:
            assert level == AlertLevel.NORMAL, v


def test_format_number():
    assert format_number(9.0) == "9"
    assert format_number(9.2) == "9.2"
    assert format_number(18) == "18"
    assert format_number(0.1 + 0.2) == "0.30000000000000004"

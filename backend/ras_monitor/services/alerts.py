import math
from dataclasses import dataclass

from ..core.enums import AlertLevel
from .thresholds import ThresholdConfig


@dataclass(frozen=True)
class Classification:
    is_alert: bool
    alert_level: AlertLevel
    unit: str
    message: str = ""


def format_number(value: float) -> str:
    """Render ``9.0`` as ``9`` and everything else in shortest round-trip form."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def _message(label: str, direction: str, threshold: ThresholdConfig, value: float, bound: float) -> str:
    unit = threshold.unit
    side = "below" if direction == "low" else "above"
    return (
        f"{label} {direction} {threshold.sensor_type}: {format_number(value)} {unit} "
        f"({side} {format_number(bound)} {unit})"
    )


def classify_reading(threshold: ThresholdConfig, value: float) -> Classification:
    # bounds are inclusive; the ideal band is informational and never compared
    if not math.isfinite(value):
        return Classification(
            True, AlertLevel.CRITICAL, threshold.unit,
            f"Invalid {threshold.sensor_type} reading: {value}",
        )
    if value <= threshold.critical_min:
        return Classification(True, AlertLevel.CRITICAL, threshold.unit,
                              _message("Critical", "low", threshold, value, threshold.critical_min))
    if value >= threshold.critical_max:
        return Classification(True, AlertLevel.CRITICAL, threshold.unit,
                              _message("Critical", "high", threshold, value, threshold.critical_max))
    if value <= threshold.warning_min:
        return Classification(True, AlertLevel.WARNING, threshold.unit,
                              _message("Warning", "low", threshold, value, threshold.warning_min))
    if value >= threshold.warning_max:
        return Classification(True, AlertLevel.WARNING, threshold.unit,
                              _message("Warning", "high", threshold, value, threshold.warning_max))
    return Classification(False, AlertLevel.NORMAL, threshold.unit)

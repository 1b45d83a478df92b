import random
from datetime import datetime

from .alerts import classify_reading
from .thresholds import ThresholdResolver

# (centre, half-width) of the uniform range each sensor type is drawn from
MOCK_RANGES = {
    "temperature": (25, 5),
    "pH": (7.5, 1),
    "dissolvedOxygen": (7.5, 2.5),
    "conductivity": (1150, 500),
    "turbidity": (30, 30),
    "orp": (325, 50),
    "tds": (600, 250),
}


def random_value(sensor_type: str, rng: random.Random | None = None) -> float:
    rng = rng or random
    centre, spread = MOCK_RANGES.get(sensor_type, (50, 50))
    return round(centre + rng.uniform(-spread, spread), 2)


def generate_mock_readings(device, resolver: ThresholdResolver, rng: random.Random | None = None) -> list[dict]:
    """One classified reading per sensor type registered on ``device``."""
    if device is None or not device.sensor_types:
        return []
    now = datetime.utcnow()
    readings = []
    for sensor_type in device.sensor_types:
        value = random_value(sensor_type, rng)
        threshold = resolver.resolve(sensor_type, device.id, device.project_id)
        result = classify_reading(threshold, value)
        readings.append({
            "device_id": device.id,
            "project_id": device.project_id,
            "sensor_type": sensor_type,
            "value": value,
            "unit": result.unit,
            "timestamp": now,
            "is_alert": result.is_alert,
            "alert_level": result.alert_level.value,
            "alert_message": result.message or None,
        })
    return readings

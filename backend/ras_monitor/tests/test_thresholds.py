from dataclasses import replace

import pytest
from sqlalchemy.exc import OperationalError

from ras_monitor.core.enums import SensorType
from ras_monitor.models.threshold import SensorThreshold
from ras_monitor.services.thresholds import (
    DEFAULT_THRESHOLDS,
    SqlThresholdStore,
    ThresholdLookupError,
    ThresholdResolver,
    resolve_threshold,
)
from ras_monitor.services.seed import seed_default_thresholds


class FakeStore:
    def __init__(self, device=None, project=None, default=None, fail_on=None):
        self.rows = {"device": device or {}, "project": project or {}, "default": default or {}}
        self.fail_on = fail_on
        self.calls = []

    def _get(self, scope, key):
        self.calls.append(scope)
        if scope == self.fail_on:
            raise ThresholdLookupError("store unreachable")
        return self.rows[scope].get(key)

    def for_device(self, sensor_type, device_id):
        return self._get("device", (sensor_type, device_id))

    def for_project(self, sensor_type, project_id):
        return self._get("project", (sensor_type, project_id))

    def global_default(self, sensor_type):
        return self._get("default", sensor_type)


TEMP = DEFAULT_THRESHOLDS["temperature"]
DEVICE_ROW = replace(TEMP, warning_max=29, scope="device", id=1)
PROJECT_ROW = replace(TEMP, warning_max=28.5, scope="project", id=2)
DEFAULT_ROW = replace(TEMP, warning_max=31, scope="default", id=3)


def test_device_scope_wins_and_short_circuits():
    store = FakeStore(device={("temperature", 7): DEVICE_ROW}, project={("temperature", 3): PROJECT_ROW})
    found = ThresholdResolver(store).resolve("temperature", 7, 3)
    assert found is DEVICE_ROW
    assert store.calls == ["device"]


def test_project_scope_used_when_device_has_none():
    store = FakeStore(project={("temperature", 3): PROJECT_ROW}, default={"temperature": DEFAULT_ROW})
    found = ThresholdResolver(store).resolve("temperature", 7, 3)
    assert found is PROJECT_ROW
    assert store.calls == ["device", "project"]


def test_missing_ids_skip_their_lookups():
    store = FakeStore(default={"temperature": DEFAULT_ROW})
    assert ThresholdResolver(store).resolve("temperature") is DEFAULT_ROW
    assert store.calls == ["default"]


def test_builtin_table_when_store_is_empty():
    found = ThresholdResolver(FakeStore()).resolve("temperature", None, None)
    assert (found.ideal_min, found.ideal_max) == (24, 28)
    assert (found.warning_min, found.warning_max) == (20, 30)
    assert (found.critical_min, found.critical_max) == (18, 32)
    assert found.unit == "°C"
    assert found.scope == "builtin"


def test_unknown_sensor_type_gets_generic_range():
    found = ThresholdResolver(FakeStore()).resolve("unknownSensor", None, None)
    assert found.scope == "generic"
    assert found.unit == ""
    for low, high in [(found.ideal_min, found.ideal_max), (found.warning_min, found.warning_max),
                      (found.critical_min, found.critical_max)]:
        assert (low, high) == (0, 100)


def test_injected_fallbacks_replace_builtin_table():
    custom = {"temperature": replace(TEMP, unit="K")}
    resolver = ThresholdResolver(FakeStore(), fallbacks=custom)
    assert resolver.resolve("temperature").unit == "K"
    assert resolver.resolve("pH").scope == "generic"


def test_enum_members_are_accepted():
    store = FakeStore(default={"pH": replace(DEFAULT_THRESHOLDS["pH"], scope="default")})
    assert ThresholdResolver(store).resolve(SensorType.PH).scope == "default"


def test_store_failure_propagates_without_further_lookups():
    store = FakeStore(fail_on="project")
    with pytest.raises(ThresholdLookupError):
        ThresholdResolver(store).resolve("temperature", 7, 3)
    assert store.calls == ["device", "project"]


def test_builtin_table_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_THRESHOLDS["temperature"] = TEMP


def test_builtin_turbidity_is_not_monotonic():
    assert DEFAULT_THRESHOLDS["pH"].is_ordered()
    assert not DEFAULT_THRESHOLDS["turbidity"].is_ordered()


def _row(**kw):
    base = dict(ideal_min=24, ideal_max=28, warning_min=20, warning_max=30, critical_min=18, critical_max=32, unit="°C")
    base.update(kw)
    return SensorThreshold(sensor_type="temperature", **base)


def test_sql_store_walks_the_override_chain(db):
    seed_default_thresholds(db)
    assert resolve_threshold(db, "pH").scope == "default"

    db.add(_row(project_id=5, warning_max=28.5))
    db.commit()
    found = resolve_threshold(db, "temperature", device_id=9, project_id=5)
    assert found.scope == "project"
    assert found.warning_max == 28.5

    db.add(_row(device_id=9, project_id=5, warning_max=29))
    db.commit()
    found = resolve_threshold(db, "temperature", device_id=9, project_id=5)
    assert found.scope == "device"
    assert found.warning_max == 29
    # the device row also carries project 5 but must not count as a project override
    assert resolve_threshold(db, "temperature", device_id=10, project_id=5).warning_max == 28.5


def test_sql_store_falls_back_to_builtin_without_seed(db):
    assert resolve_threshold(db, "orp").scope == "builtin"


def test_sql_store_wraps_database_errors():
    class BrokenSession:
        def query(self, *args):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    with pytest.raises(ThresholdLookupError):
        SqlThresholdStore(BrokenSession()).global_default("pH")

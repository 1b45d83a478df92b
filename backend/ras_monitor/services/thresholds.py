"""Threshold resolution.

A reading is judged against exactly one threshold, picked by walking the
override chain device -> project -> global default -> built-in table ->
generic range. Each scope is one lookup strategy; strategies run in order and
the first hit wins, so a device override means the project and default rows
are never queried.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import SensorType
from ..models.threshold import SensorThreshold

logger = logging.getLogger(__name__)


class ThresholdLookupError(Exception):
    """Raised when the threshold store cannot be queried."""


@dataclass(frozen=True)
class ThresholdConfig:
    sensor_type: str
    ideal_min: float
    ideal_max: float
    warning_min: float
    warning_max: float
    critical_min: float
    critical_max: float
    unit: str
    scope: str = "builtin"
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: SensorThreshold) -> "ThresholdConfig":
        return cls(
            sensor_type=row.sensor_type,
            ideal_min=row.ideal_min,
            ideal_max=row.ideal_max,
            warning_min=row.warning_min,
            warning_max=row.warning_max,
            critical_min=row.critical_min,
            critical_max=row.critical_max,
            unit=row.unit,
            scope=row.scope,
            id=row.id,
        )

    def is_ordered(self) -> bool:
        return (
            self.critical_min <= self.warning_min <= self.ideal_min
            <= self.ideal_max <= self.warning_max <= self.critical_max
        )


def _builtin(sensor_type, ideal, warning, critical, unit) -> ThresholdConfig:
    return ThresholdConfig(
        sensor_type=sensor_type.value,
        ideal_min=ideal[0], ideal_max=ideal[1],
        warning_min=warning[0], warning_max=warning[1],
        critical_min=critical[0], critical_max=critical[1],
        unit=unit,
    )


# Seeded as the global defaults and consulted directly when the store has none.
DEFAULT_THRESHOLDS: Mapping[str, ThresholdConfig] = MappingProxyType({
    t.sensor_type: t for t in (
        _builtin(SensorType.TEMPERATURE, (24, 28), (20, 30), (18, 32), "°C"),
        _builtin(SensorType.PH, (7.0, 8.0), (6.5, 8.5), (6.0, 9.0), "pH"),
        _builtin(SensorType.DISSOLVED_OXYGEN, (6.0, 8.0), (4.0, 10.0), (3.0, 12.0), "mg/L"),
        _builtin(SensorType.CONDUCTIVITY, (800, 1500), (500, 2000), (300, 2500), "μS/cm"),
        _builtin(SensorType.TURBIDITY, (0, 10), (10, 20), (0, 30), "NTU"),
        _builtin(SensorType.ORP, (150, 250), (100, 300), (50, 350), "mV"),
        _builtin(SensorType.TDS, (100, 300), (50, 500), (20, 700), "PPM"),
    )
})


def generic_threshold(sensor_type: str) -> ThresholdConfig:
    return ThresholdConfig(
        sensor_type=sensor_type,
        ideal_min=0, ideal_max=100,
        warning_min=0, warning_max=100,
        critical_min=0, critical_max=100,
        unit="",
        scope="generic",
    )


class ThresholdStore(Protocol):
    def for_device(self, sensor_type: str, device_id: int) -> Optional[ThresholdConfig]: ...
    def for_project(self, sensor_type: str, project_id: int) -> Optional[ThresholdConfig]: ...
    def global_default(self, sensor_type: str) -> Optional[ThresholdConfig]: ...


class SqlThresholdStore:
    """Point lookups against the ``sensor_thresholds`` table."""

    def __init__(self, db: Session):
        self.db = db

    def _first(self, *criteria) -> Optional[ThresholdConfig]:
        try:
            row = self.db.query(SensorThreshold).filter(*criteria).first()
        except SQLAlchemyError as exc:
            raise ThresholdLookupError(str(exc)) from exc
        return ThresholdConfig.from_row(row) if row is not None else None

    def for_device(self, sensor_type, device_id):
        return self._first(
            SensorThreshold.sensor_type == sensor_type,
            SensorThreshold.device_id == device_id,
        )

    def for_project(self, sensor_type, project_id):
        return self._first(
            SensorThreshold.sensor_type == sensor_type,
            SensorThreshold.project_id == project_id,
            SensorThreshold.device_id.is_(None),
        )

    def global_default(self, sensor_type):
        return self._first(
            SensorThreshold.sensor_type == sensor_type,
            SensorThreshold.is_default.is_(True),
            SensorThreshold.device_id.is_(None),
            SensorThreshold.project_id.is_(None),
        )


Strategy = Callable[[str, Optional[int], Optional[int]], Optional[ThresholdConfig]]


class ThresholdResolver:
    def __init__(self, store: ThresholdStore, fallbacks: Mapping[str, ThresholdConfig] = DEFAULT_THRESHOLDS):
        self.store = store
        self.fallbacks = MappingProxyType(dict(fallbacks))
        self.strategies: list[Strategy] = [
            self._device_scope,
            self._project_scope,
            self._default_scope,
            self._builtin_scope,
        ]

    def _device_scope(self, sensor_type, device_id, project_id):
        if device_id is None:
            return None
        return self.store.for_device(sensor_type, device_id)

    def _project_scope(self, sensor_type, device_id, project_id):
        if project_id is None:
            return None
        return self.store.for_project(sensor_type, project_id)

    def _default_scope(self, sensor_type, device_id, project_id):
        return self.store.global_default(sensor_type)

    def _builtin_scope(self, sensor_type, device_id, project_id):
        found = self.fallbacks.get(sensor_type)
        return replace(found, scope="builtin") if found is not None else None

    def resolve(self, sensor_type, device_id: Optional[int] = None, project_id: Optional[int] = None) -> ThresholdConfig:
        sensor_type = getattr(sensor_type, "value", sensor_type)
        for strategy in self.strategies:
            found = strategy(sensor_type, device_id, project_id)
            if found is not None:
                return found
        logger.warning("No threshold for sensor type %r, using generic 0-100 range", sensor_type)
        return generic_threshold(sensor_type)


def resolve_threshold(db: Session, sensor_type, device_id: Optional[int] = None, project_id: Optional[int] = None) -> ThresholdConfig:
    return ThresholdResolver(SqlThresholdStore(db)).resolve(sensor_type, device_id, project_id)

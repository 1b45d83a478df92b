from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String, text
from ..db.session import Base
from datetime import datetime

# one row per sensor type and scope; the scope is device, else project, else global default
_DEVICE_SCOPE = text("device_id IS NOT NULL")
_PROJECT_SCOPE = text("device_id IS NULL AND project_id IS NOT NULL")
_DEFAULT_SCOPE = text("device_id IS NULL AND project_id IS NULL AND is_default")

class SensorThreshold(Base):
    __tablename__ = "sensor_thresholds"
    __table_args__ = (
        Index("uq_threshold_device", "sensor_type", "device_id", unique=True,
              sqlite_where=_DEVICE_SCOPE, postgresql_where=_DEVICE_SCOPE),
        Index("uq_threshold_project", "sensor_type", "project_id", unique=True,
              sqlite_where=_PROJECT_SCOPE, postgresql_where=_PROJECT_SCOPE),
        Index("uq_threshold_default", "sensor_type", "is_default", unique=True,
              sqlite_where=_DEFAULT_SCOPE, postgresql_where=_DEFAULT_SCOPE),
    )
    id = Column(Integer, primary_key=True, index=True)
    sensor_type = Column(String, nullable=False, index=True)
    # no FK cascade: removing a device or project leaves its overrides in place
    device_id = Column(Integer, nullable=True)
    project_id = Column(Integer, nullable=True)
    ideal_min = Column(Float, nullable=False)
    ideal_max = Column(Float, nullable=False)
    warning_min = Column(Float, nullable=False)
    warning_max = Column(Float, nullable=False)
    critical_min = Column(Float, nullable=False)
    critical_max = Column(Float, nullable=False)
    unit = Column(String, nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def scope(self) -> str:
        if self.device_id is not None:
            return "device"
        if self.project_id is not None:
            return "project"
        return "default"

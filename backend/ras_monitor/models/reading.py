from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship
from ..db.session import Base
from datetime import datetime
class SensorReading(Base):
    __tablename__ = "sensor_readings"
    __table_args__ = (
        Index("ix_readings_device_time_type", "device_id", "timestamp", "sensor_type"),
        Index("ix_readings_project_time", "project_id", "timestamp"),
    )
    id = Column(Integer, primary_key=True, index=True)
    device_id = Column(Integer, ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
    sensor_type = Column(String, nullable=False)
    value = Column(Float, nullable=False)
    unit = Column(String, nullable=False)
    is_alert = Column(Boolean, nullable=False, default=False)
    alert_level = Column(String, nullable=False, default="normal")
    alert_message = Column(String, nullable=True)
    device = relationship("Device")
    project = relationship("Project")

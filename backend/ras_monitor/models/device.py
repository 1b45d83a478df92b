from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import relationship
from ..db.session import Base
class Device(Base):
    __tablename__ = "devices"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, index=True)
    device_uid = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), index=True, nullable=False)
    description = Column(String, nullable=True)
    location = Column(String, nullable=True)
    sensor_types = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default="offline")
    last_seen = Column(DateTime, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    project = relationship("Project", back_populates="devices")

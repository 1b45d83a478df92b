from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship
from ..db.session import Base
from ..core.security import generate_api_key
from datetime import datetime

project_members = Table(
    "project_members",
    Base.metadata,
    Column("project_id", Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

class Project(Base):
    __tablename__ = "projects"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    api_key = Column(String(64), unique=True, index=True, nullable=False, default=generate_api_key)
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    admin = relationship("User", foreign_keys=[admin_id])
    members = relationship("User", secondary=project_members, back_populates="projects")
    devices = relationship("Device", back_populates="project", cascade="all, delete-orphan")

    def has_member(self, user) -> bool:
        return self.admin_id == user.id or any(m.id == user.id for m in self.members)

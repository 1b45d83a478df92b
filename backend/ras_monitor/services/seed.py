import logging

from sqlalchemy.orm import Session

from ..core.security import hash_password
from ..models.device import Device
from ..models.project import Project
from ..models.reading import SensorReading
from ..models.threshold import SensorThreshold
from ..models.user import User
from .mock_data import generate_mock_readings
from .thresholds import DEFAULT_THRESHOLDS, SqlThresholdStore, ThresholdResolver

logger = logging.getLogger(__name__)

SUPERADMIN = {"name": "Super Admin", "email": "admin@example.com", "password": "admin123"}
DEMO_ADMIN = {"name": "Demo User", "email": "demo@example.com", "password": "demo123"}

DEMO_DEVICES = [
    {"name": "RAS Unit 1", "device_uid": "RAS-001", "description": "Main tank system", "location": "Section A",
     "sensor_types": ["temperature", "pH", "dissolvedOxygen", "conductivity"], "status": "online"},
    {"name": "RAS Unit 2", "device_uid": "RAS-002", "description": "Secondary tank system", "location": "Section B",
     "sensor_types": ["temperature", "pH", "turbidity", "orp"], "status": "online"},
    {"name": "Biofilter Monitor", "device_uid": "RAS-003", "description": "Biofilter water quality", "location": "Filtration",
     "sensor_types": ["dissolvedOxygen", "tds", "orp"], "status": "maintenance"},
]


def seed_default_thresholds(db: Session) -> tuple[int, int]:
    """Insert missing global defaults and drop defaults for unsupported sensor types.

    Returns ``(created, removed)``.
    """
    existing = (
        db.query(SensorThreshold)
        .filter(
            SensorThreshold.is_default.is_(True),
            SensorThreshold.device_id.is_(None),
            SensorThreshold.project_id.is_(None),
        )
        .all()
    )
    present = {t.sensor_type for t in existing}
    created = 0
    for sensor_type, cfg in DEFAULT_THRESHOLDS.items():
        if sensor_type in present:
            continue
        db.add(SensorThreshold(
            sensor_type=sensor_type,
            ideal_min=cfg.ideal_min, ideal_max=cfg.ideal_max,
            warning_min=cfg.warning_min, warning_max=cfg.warning_max,
            critical_min=cfg.critical_min, critical_max=cfg.critical_max,
            unit=cfg.unit, is_default=True,
        ))
        created += 1
    removed = 0
    for row in existing:
        if row.sensor_type not in DEFAULT_THRESHOLDS:
            db.delete(row)
            removed += 1
    if created or removed:
        db.commit()
    logger.info("Default thresholds: %d created, %d removed", created, removed)
    return created, removed


def seed_superadmin(db: Session) -> User:
    admin = db.query(User).filter(User.role == "superadmin").first()
    if admin is None:
        admin = User(name=SUPERADMIN["name"], email=SUPERADMIN["email"],
                     hashed_password=hash_password(SUPERADMIN["password"]), role="superadmin")
        db.add(admin); db.commit(); db.refresh(admin)
        logger.info("Created superadmin %s", admin.email)
    return admin


def seed_demo_data(db: Session) -> Project | None:
    if db.query(Project).filter(Project.name == "Demo Project").first():
        return None
    demo_user = db.query(User).filter(User.email == DEMO_ADMIN["email"]).first()
    if demo_user is None:
        demo_user = User(name=DEMO_ADMIN["name"], email=DEMO_ADMIN["email"],
                         hashed_password=hash_password(DEMO_ADMIN["password"]), role="projectadmin")
        db.add(demo_user)
    project = Project(name="Demo Project", description="A demonstration project with sample data",
                      location="Demo Location", admin=demo_user, members=[demo_user])
    db.add(project)
    db.flush()
    devices = [Device(project_id=project.id, **data) for data in DEMO_DEVICES]
    db.add_all(devices)
    db.flush()
    resolver = ThresholdResolver(SqlThresholdStore(db))
    for device in devices:
        for row in generate_mock_readings(device, resolver):
            db.add(SensorReading(**row))
    db.commit()
    db.refresh(project)
    logger.info("Created demo project %s with %d devices", project.id, len(devices))
    return project

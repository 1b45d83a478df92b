import os
import tempfile

_DB_PATH = os.path.join(tempfile.gettempdir(), f"ras_monitor_test_{os.getpid()}.db")
os.environ["DB_URI"] = f"sqlite:///{_DB_PATH}"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["ALERT_WEBHOOK_URL"] = ""

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from ras_monitor.core.security import create_access_token
from ras_monitor.db.session import Base, SessionLocal, engine, init_db
from ras_monitor.main import app
from ras_monitor.models.device import Device
from ras_monitor.models.project import Project
from ras_monitor.models.user import User
from ras_monitor.services.broadcast import hub
from ras_monitor.services.seed import seed_default_thresholds


@pytest.fixture(autouse=True)
def fresh_db():
    init_db()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    hub.channels.clear()
    yield
    hub.channels.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return lambda: AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def world(db):
    """Seeded defaults, two tenants and one device each."""
    seed_default_thresholds(db)
    root = User(name="Root", email="root@example.com", hashed_password="!", role="superadmin")
    pat = User(name="Pat", email="pat@example.com", hashed_password="!", role="projectadmin")
    val = User(name="Val", email="val@example.com", hashed_password="!", role="user")
    otto = User(name="Otto", email="otto@example.com", hashed_password="!", role="projectadmin")
    db.add_all([root, pat, val, otto])
    db.flush()
    project = Project(name="Tank Hall", admin=pat, members=[pat, val])
    other = Project(name="Other Farm", admin=otto, members=[otto])
    db.add_all([project, other])
    db.flush()
    device = Device(device_uid="RAS-T1", name="Tank 1", project_id=project.id,
                    sensor_types=["temperature", "pH", "dissolvedOxygen"])
    other_device = Device(device_uid="OTHER-1", name="Other Tank", project_id=other.id,
                          sensor_types=["temperature"])
    db.add_all([device, other_device])
    db.commit()
    tokens = {u.email.split("@")[0]: create_access_token(str(u.id), u.role) for u in (root, pat, val, otto)}
    return SimpleNamespace(
        project_id=project.id,
        api_key=project.api_key,
        other_project_id=other.id,
        other_api_key=other.api_key,
        device_id=device.id,
        other_device_id=other_device.id,
        user_ids={"root": root.id, "pat": pat.id, "val": val.id, "otto": otto.id},
        headers={name: auth(token) for name, token in tokens.items()},
    )

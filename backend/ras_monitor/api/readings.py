import json
import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from ..core.enums import SensorType
from ..db.session import get_db
from ..models.device import Device
from ..models.project import Project
from ..models.reading import SensorReading
from ..models.user import User
from ..schemas.common import IngestResult, ReadingOut, ReadingPage, ReadingSubmit
from ..services.alerts import classify_reading
from ..services.broadcast import hub
from ..services.notify import notify_alert_webhook
from ..services.thresholds import SqlThresholdStore, ThresholdResolver
from .deps import accessible_project_ids, can_view, get_current_user, get_project_or_404, project_from_api_key

router = APIRouter(prefix="/readings", tags=["readings"])
logger = logging.getLogger(__name__)


def _naive_utc(ts: Optional[datetime]) -> Optional[datetime]:
    if ts is None or ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


def _process_readings(payload: ReadingSubmit, device: Device, project: Project, db: Session) -> List[SensorReading]:
    resolver = ThresholdResolver(SqlThresholdStore(db))
    now = datetime.utcnow()
    rows = []
    # classify everything before writing so a lookup failure persists nothing
    for item in payload.readings:
        sensor_type = item.sensor_type.value
        if sensor_type not in (device.sensor_types or []):
            logger.debug("Skipping %s reading for device %s: sensor not registered", sensor_type, device.device_uid)
            continue
        threshold = resolver.resolve(sensor_type, device.id, project.id)
        result = classify_reading(threshold, item.value)
        rows.append(SensorReading(
            device_id=device.id,
            project_id=project.id,
            timestamp=_naive_utc(item.timestamp) or now,
            sensor_type=sensor_type,
            value=item.value,
            unit=result.unit,
            is_alert=result.is_alert,
            alert_level=result.alert_level.value,
            alert_message=result.message or None,
        ))
    device.last_seen = now
    device.status = "online"
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows


@router.post("/", response_model=IngestResult, status_code=201)
async def ingest(payload: ReadingSubmit, background_tasks: BackgroundTasks,
                 project: Project = Depends(project_from_api_key), db: Session = Depends(get_db)):
    device = (
        db.query(Device)
        .filter(Device.device_uid == payload.device_uid, Device.project_id == project.id)
        .first()
    )
    if device is None:
        raise HTTPException(status_code=404, detail="Device not found or not associated with this project")

    rows = _process_readings(payload, device, project, db)
    data = [ReadingOut.model_validate(r).model_dump(mode="json") for r in rows]
    for item in data:
        await hub.publish(project.id, {"type": "new-sensor-data", "data": item})
        if item["is_alert"]:
            background_tasks.add_task(notify_alert_webhook, item, device.name)
    logger.info("Stored %d readings for device %s (project %s)", len(rows), device.device_uid, project.id)
    return IngestResult(count=len(rows), data=data)


@router.get("/", response_model=ReadingPage)
def list_readings(
    project_id: Optional[int] = None,
    device_uid: Optional[str] = None,
    device_id: Optional[int] = None,
    sensor_type: Optional[SensorType] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    alerts_only: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    q = db.query(SensorReading)
    if project_id is not None:
        project = get_project_or_404(db, project_id)
        if not can_view(user, project):
            raise HTTPException(status_code=403, detail="Not authorized to access this project data")
        q = q.filter(SensorReading.project_id == project_id)
    else:
        allowed = accessible_project_ids(user)
        if allowed is not None:
            q = q.filter(SensorReading.project_id.in_(allowed))
    if device_uid:
        device = db.query(Device).filter(Device.device_uid == device_uid).first()
        if device is None:
            return ReadingPage(count=0, total_count=0, pages=0, current_page=page, data=[])
        q = q.filter(SensorReading.device_id == device.id)
    if device_id is not None:
        q = q.filter(SensorReading.device_id == device_id)
    if sensor_type is not None:
        q = q.filter(SensorReading.sensor_type == sensor_type.value)
    if start is not None:
        q = q.filter(SensorReading.timestamp >= _naive_utc(start))
    if end is not None:
        q = q.filter(SensorReading.timestamp <= _naive_utc(end))
    if alerts_only:
        q = q.filter(SensorReading.is_alert.is_(True))

    total = q.count()
    rows = (
        q.order_by(SensorReading.timestamp.desc(), SensorReading.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ReadingPage(
        count=len(rows),
        total_count=total,
        pages=math.ceil(total / limit),
        current_page=page,
        data=[ReadingOut.model_validate(r) for r in rows],
    )


@router.get("/recent", response_model=List[ReadingOut])
def recent_readings(projects: Optional[str] = None, limit: int = Query(20, ge=1, le=500),
                    db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    q = db.query(SensorReading)
    allowed = accessible_project_ids(user)
    if projects:
        try:
            wanted = [int(p) for p in projects.split(",") if p.strip()]
        except ValueError:
            raise HTTPException(status_code=422, detail="projects must be a comma separated list of ids")
        if allowed is not None:
            wanted = [p for p in wanted if p in allowed]
        q = q.filter(SensorReading.project_id.in_(wanted))
    elif allowed is not None:
        q = q.filter(SensorReading.project_id.in_(allowed))
    return q.order_by(SensorReading.timestamp.desc(), SensorReading.id.desc()).limit(limit).all()


@router.websocket("/ws")
async def ws_endpoint(websocket: WebSocket):
    await websocket.accept()
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
                event = msg.get("event")
                project_id = int(msg["project_id"])
            except (ValueError, KeyError, TypeError, AttributeError):
                await websocket.send_json({"type": "error", "detail": "expected {event, project_id}"})
                continue
            if event == "join-project":
                hub.join(project_id, websocket)
                await websocket.send_json({"type": "joined", "project_id": project_id})
            elif event == "leave-project":
                hub.leave(project_id, websocket)
                await websocket.send_json({"type": "left", "project_id": project_id})
            else:
                await websocket.send_json({"type": "error", "detail": f"unknown event {event!r}"})
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(websocket)

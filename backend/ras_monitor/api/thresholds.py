from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..core.enums import SensorType
from ..db.session import get_db
from ..models.device import Device
from ..models.threshold import SensorThreshold
from ..models.user import User
from ..schemas.common import ThresholdIn, ThresholdOut
from ..services.thresholds import resolve_threshold
from .deps import can_manage, can_view, get_current_user, get_project_or_404, require_roles

router = APIRouter(prefix="/thresholds", tags=["thresholds"])

BOUNDS = ("ideal_min", "ideal_max", "warning_min", "warning_max", "critical_min", "critical_max", "unit")


def _defaults(db: Session) -> List[SensorThreshold]:
    return (
        db.query(SensorThreshold)
        .filter(
            SensorThreshold.is_default.is_(True),
            SensorThreshold.device_id.is_(None),
            SensorThreshold.project_id.is_(None),
        )
        .order_by(SensorThreshold.sensor_type)
        .all()
    )


def _with_defaults(db: Session, overrides: List[SensorThreshold]) -> List[SensorThreshold]:
    covered = {t.sensor_type for t in overrides}
    return overrides + [d for d in _defaults(db) if d.sensor_type not in covered]


def _upsert(db: Session, response: Response, existing: Optional[SensorThreshold], payload: ThresholdIn, **scope) -> SensorThreshold:
    if existing is not None:
        for field in BOUNDS:
            setattr(existing, field, getattr(payload, field))
        db.commit(); db.refresh(existing)
        return existing
    t = SensorThreshold(sensor_type=payload.sensor_type.value, **{f: getattr(payload, f) for f in BOUNDS}, **scope)
    db.add(t); db.commit(); db.refresh(t)
    response.status_code = 201
    return t


@router.get("/", response_model=List[ThresholdOut])
def list_defaults(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return _defaults(db)


@router.get("/resolve", response_model=ThresholdOut)
def effective_threshold(sensor_type: SensorType, device_id: Optional[int] = None, project_id: Optional[int] = None,
                        db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if device_id is not None:
        device = db.get(Device, device_id)
        if device is None:
            raise HTTPException(status_code=404, detail="Device not found")
        if not can_view(user, device.project):
            raise HTTPException(status_code=403, detail="Not authorized to access this device")
    if project_id is not None and not can_view(user, get_project_or_404(db, project_id)):
        raise HTTPException(status_code=403, detail="Not authorized to access this project")
    return resolve_threshold(db, sensor_type, device_id, project_id)


@router.get("/project/{project_id}", response_model=List[ThresholdOut])
def project_thresholds(project_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    project = get_project_or_404(db, project_id)
    if not can_view(user, project):
        raise HTTPException(status_code=403, detail="Not authorized to access this project")
    overrides = (
        db.query(SensorThreshold)
        .filter(SensorThreshold.project_id == project_id, SensorThreshold.device_id.is_(None))
        .order_by(SensorThreshold.sensor_type)
        .all()
    )
    return _with_defaults(db, overrides)


@router.get("/device/{device_id}", response_model=List[ThresholdOut])
def device_thresholds(device_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    device = db.get(Device, device_id)
    if device is None:
        raise HTTPException(status_code=404, detail="Device not found")
    if not can_view(user, device.project):
        raise HTTPException(status_code=403, detail="Not authorized to access this device")
    overrides = (
        db.query(SensorThreshold)
        .filter(SensorThreshold.device_id == device_id)
        .order_by(SensorThreshold.sensor_type)
        .all()
    )
    return _with_defaults(db, overrides)


@router.post("/", response_model=ThresholdOut)
def upsert_default(payload: ThresholdIn, response: Response, db: Session = Depends(get_db),
                   user: User = Depends(require_roles("superadmin"))):
    existing = (
        db.query(SensorThreshold)
        .filter(
            SensorThreshold.sensor_type == payload.sensor_type.value,
            SensorThreshold.is_default.is_(True),
            SensorThreshold.device_id.is_(None),
            SensorThreshold.project_id.is_(None),
        )
        .first()
    )
    return _upsert(db, response, existing, payload, is_default=True)


@router.post("/project/{project_id}", response_model=ThresholdOut)
def upsert_project(project_id: int, payload: ThresholdIn, response: Response, db: Session = Depends(get_db),
                   user: User = Depends(require_roles("superadmin", "projectadmin"))):
    project = get_project_or_404(db, project_id)
    if not can_manage(user, project):
        raise HTTPException(status_code=403, detail="Not authorized to manage this project")
    existing = (
        db.query(SensorThreshold)
        .filter(
            SensorThreshold.sensor_type == payload.sensor_type.value,
            SensorThreshold.project_id == project_id,
            SensorThreshold.device_id.is_(None),
        )
        .first()
    )
    return _upsert(db, response, existing, payload, project_id=project_id)


@router.post("/device/{device_id}", response_model=ThresholdOut)
def upsert_device(device_id: int, payload: ThresholdIn, response: Response, db: Session = Depends(get_db),
                  user: User = Depends(require_roles("superadmin", "projectadmin"))):
    device = db.get(Device, device_id)
    if device is None:
        raise HTTPException(status_code=404, detail="Device not found")
    if not can_manage(user, device.project):
        raise HTTPException(status_code=403, detail="Not authorized to manage this device")
    existing = (
        db.query(SensorThreshold)
        .filter(SensorThreshold.sensor_type == payload.sensor_type.value, SensorThreshold.device_id == device_id)
        .first()
    )
    return _upsert(db, response, existing, payload, device_id=device_id, project_id=device.project_id)


@router.delete("/{threshold_id}")
def delete_threshold(threshold_id: int, db: Session = Depends(get_db),
                     user: User = Depends(require_roles("superadmin", "projectadmin"))):
    t = db.get(SensorThreshold, threshold_id)
    if t is None:
        raise HTTPException(status_code=404, detail="Threshold not found")
    if t.is_default and user.role != "superadmin":
        raise HTTPException(status_code=403, detail="Not authorized to delete global defaults")
    if not t.is_default and user.role != "superadmin" and t.project_id is not None:
        project = get_project_or_404(db, t.project_id)
        if not can_manage(user, project):
            raise HTTPException(status_code=403, detail="Not authorized to manage this project")
    db.delete(t); db.commit()
    return {"message": "Threshold deleted successfully"}

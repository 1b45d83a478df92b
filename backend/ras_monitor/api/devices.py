from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from ..db.session import get_db
from ..models.device import Device
from ..models.reading import SensorReading
from ..models.user import User
from ..schemas.common import DeviceCreate, DeviceOut, DeviceUpdate, ReadingOut
from .deps import accessible_project_ids, can_manage, can_view, get_current_user, get_project_or_404
from typing import List, Optional

router = APIRouter(prefix="/devices", tags=["devices"])

def _device_or_404(db: Session, device_id: int) -> Device:
    d = db.get(Device, device_id)
    if d is None:
        raise HTTPException(status_code=404, detail="Device not found")
    return d

@router.get("/", response_model=List[DeviceOut])
def list_devices(project_id: Optional[int] = None, db: Session = Depends(get_db),
                 user: User = Depends(get_current_user)):
    q = db.query(Device)
    if project_id is not None:
        q = q.filter(Device.project_id == project_id)
    allowed = accessible_project_ids(user)
    if allowed is not None:
        q = q.filter(Device.project_id.in_(allowed))
    return q.order_by(Device.id).all()

@router.post("/", response_model=DeviceOut, status_code=201)
def create_device(payload: DeviceCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    project = get_project_or_404(db, payload.project_id)
    if not can_manage(user, project):
        raise HTTPException(status_code=403, detail="Not authorized to add devices to this project")
    if db.query(Device.id).filter(Device.device_uid == payload.device_uid).first():
        raise HTTPException(status_code=400, detail="Device ID already exists")
    d = Device(name=payload.name, device_uid=payload.device_uid, project_id=project.id,
               description=payload.description, location=payload.location or "",
               sensor_types=[s.value for s in payload.sensor_types])
    db.add(d); db.commit(); db.refresh(d); return d

@router.get("/{device_id}", response_model=DeviceOut)
def get_device(device_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    d = _device_or_404(db, device_id)
    if not can_view(user, d.project):
        raise HTTPException(status_code=403, detail="Not authorized to access this device")
    return d

@router.put("/{device_id}", response_model=DeviceOut)
def update_device(device_id: int, payload: DeviceUpdate, db: Session = Depends(get_db),
                  user: User = Depends(get_current_user)):
    d = _device_or_404(db, device_id)
    if not can_manage(user, d.project):
        raise HTTPException(status_code=403, detail="Not authorized to update this device")
    changes = payload.model_dump(exclude_unset=True, exclude_none=True, mode="json")
    for field, value in changes.items():
        setattr(d, field, value)
    db.commit(); db.refresh(d); return d

@router.delete("/{device_id}")
def delete_device(device_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    d = _device_or_404(db, device_id)
    if not can_manage(user, d.project):
        raise HTTPException(status_code=403, detail="Not authorized to delete this device")
    db.delete(d); db.commit()
    return {"message": "Device removed"}


@router.get("/{device_id}/readings", response_model=List[ReadingOut])
def device_readings(device_id: int, limit: int = 50, db: Session = Depends(get_db),
                    user: User = Depends(get_current_user)):
    d = _device_or_404(db, device_id)
    if not can_view(user, d.project):
        raise HTTPException(status_code=403, detail="Not authorized to access this device")
    limit = max(1, min(limit, 200))
    q = db.query(SensorReading).filter(SensorReading.device_id == device_id).order_by(SensorReading.timestamp.desc()).limit(limit)
    return list(reversed(q.all()))

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..models.project import Project
from ..models.user import User
from ..schemas.common import UserOut, UserUpdate
from .deps import require_roles

router = APIRouter(prefix="/users", tags=["users"])

ADMIN_ROLES = ("superadmin", "projectadmin")


def _user_or_404(db: Session, user_id: int) -> User:
    u = db.get(User, user_id)
    if u is None:
        raise HTTPException(status_code=404, detail="User not found")
    return u


@router.get("/", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db), user: User = Depends(require_roles(*ADMIN_ROLES))):
    return db.query(User).order_by(User.name, User.id).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db), user: User = Depends(require_roles(*ADMIN_ROLES))):
    return _user_or_404(db, user_id)


@router.put("/{user_id}", response_model=UserOut)
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db),
                current: User = Depends(require_roles(*ADMIN_ROLES))):
    u = _user_or_404(db, user_id)
    if u.role in ADMIN_ROLES and current.role != "superadmin":
        raise HTTPException(status_code=403, detail="Only superadmins can update admin users")
    changes = payload.model_dump(exclude_unset=True, exclude_none=True, mode="json")
    if "role" in changes and changes["role"] != u.role and current.role != "superadmin":
        raise HTTPException(status_code=403, detail="Only superadmins can change roles")
    if "email" in changes:
        changes["email"] = changes["email"].lower()
        taken = db.query(User.id).filter(User.email == changes["email"], User.id != u.id).first()
        if taken:
            raise HTTPException(status_code=400, detail="Email already registered")
    for field, value in changes.items():
        setattr(u, field, value)
    db.commit(); db.refresh(u); return u


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), current: User = Depends(require_roles("superadmin"))):
    u = _user_or_404(db, user_id)
    if u.role == "superadmin":
        raise HTTPException(status_code=400, detail="Cannot delete super admin user")
    db.query(Project).filter(Project.admin_id == u.id).update({Project.admin_id: None})
    db.delete(u); db.commit()
    return {"message": "User removed"}

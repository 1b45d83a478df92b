from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.security import generate_api_key
from ..db.session import get_db
from ..models.project import Project
from ..models.user import User
from ..schemas.common import MemberIn, ProjectCreate, ProjectOut, ProjectUpdate, ProjectWithKey
from .deps import can_manage, can_view, get_current_user, get_project_or_404, require_roles

router = APIRouter(prefix="/projects", tags=["projects"])


def _managed(db: Session, project_id: int, user: User) -> Project:
    project = get_project_or_404(db, project_id)
    if not can_manage(user, project):
        raise HTTPException(status_code=403, detail="Not authorized to manage this project")
    return project


@router.post("/", response_model=ProjectWithKey, status_code=201)
def create_project(payload: ProjectCreate, db: Session = Depends(get_db),
                   user: User = Depends(require_roles("superadmin"))):
    admin = user
    if payload.admin_id is not None:
        admin = db.get(User, payload.admin_id)
        if admin is None:
            raise HTTPException(status_code=404, detail="Admin user not found")
    p = Project(name=payload.name, description=payload.description, location=payload.location,
                admin=admin, members=[admin])
    db.add(p); db.commit(); db.refresh(p); return p


@router.get("/", response_model=List[ProjectOut])
def list_projects(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if user.role == "superadmin":
        return db.query(Project).order_by(Project.id).all()
    return [p for p in db.query(Project).order_by(Project.id).all() if p.has_member(user)]


@router.get("/mine", response_model=List[ProjectOut])
def my_projects(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return [p for p in db.query(Project).order_by(Project.id).all() if p.has_member(user)]


@router.get("/{project_id}", response_model=ProjectWithKey)
def get_project(project_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    project = get_project_or_404(db, project_id)
    if not can_view(user, project):
        raise HTTPException(status_code=403, detail="Not authorized to access this project")
    return project


@router.put("/{project_id}", response_model=ProjectOut)
def update_project(project_id: int, payload: ProjectUpdate, db: Session = Depends(get_db),
                   user: User = Depends(get_current_user)):
    project = _managed(db, project_id, user)
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(project, field, value)
    db.commit(); db.refresh(project); return project


@router.delete("/{project_id}")
def delete_project(project_id: int, db: Session = Depends(get_db),
                   user: User = Depends(require_roles("superadmin"))):
    project = get_project_or_404(db, project_id)
    db.delete(project); db.commit()
    return {"message": "Project removed"}


@router.post("/{project_id}/users", response_model=ProjectOut)
def add_member(project_id: int, payload: MemberIn, db: Session = Depends(get_db),
               user: User = Depends(get_current_user)):
    project = _managed(db, project_id, user)
    member = db.get(User, payload.user_id)
    if member is None:
        raise HTTPException(status_code=404, detail="User not found")
    if any(m.id == member.id for m in project.members):
        raise HTTPException(status_code=400, detail="User already in project")
    project.members.append(member)
    db.commit(); db.refresh(project); return project


@router.delete("/{project_id}/users/{user_id}", response_model=ProjectOut)
def remove_member(project_id: int, user_id: int, db: Session = Depends(get_db),
                  user: User = Depends(get_current_user)):
    project = _managed(db, project_id, user)
    if project.admin_id == user_id:
        raise HTTPException(status_code=400, detail="Cannot remove the project admin")
    member = next((m for m in project.members if m.id == user_id), None)
    if member is None:
        raise HTTPException(status_code=404, detail="User not in project")
    project.members.remove(member)
    db.commit(); db.refresh(project); return project


@router.post("/{project_id}/regenerate-api-key", response_model=ProjectWithKey)
def regenerate_api_key(project_id: int, db: Session = Depends(get_db),
                       user: User = Depends(get_current_user)):
    project = _managed(db, project_id, user)
    project.api_key = generate_api_key()
    db.commit(); db.refresh(project); return project

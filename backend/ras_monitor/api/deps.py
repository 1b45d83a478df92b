from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from ..core.security import decode_access_token
from ..db.session import get_db
from ..models.project import Project
from ..models.user import User

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if creds is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized, no token")
    try:
        claims = decode_access_token(creds.credentials)
        user_id = int(claims["sub"])
    except (JWTError, KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized, token failed")
    user = db.get(User, user_id)
    if user is None or not user.active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_roles(*roles: str):
    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Not authorized, requires one of these roles: {', '.join(roles)}",
            )
        return user
    return checker


def project_from_api_key(x_api_key: str | None = Header(default=None), db: Session = Depends(get_db)) -> Project:
    if not x_api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="API key is required")
    project = db.query(Project).filter(Project.api_key == x_api_key).first()
    if project is None or not project.active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
    return project


def can_view(user: User, project: Project) -> bool:
    return user.role == "superadmin" or project.has_member(user)


def can_manage(user: User, project: Project) -> bool:
    if user.role == "superadmin":
        return True
    return user.role == "projectadmin" and project.has_member(user)


def get_project_or_404(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def accessible_project_ids(user: User) -> list[int] | None:
    """Projects a user may read from; ``None`` means unrestricted."""
    if user.role == "superadmin":
        return None
    ids = {p.id for p in user.projects}
    return sorted(ids)

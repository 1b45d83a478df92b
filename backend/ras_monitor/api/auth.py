from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ..db.session import get_db
from ..models.user import User
from ..schemas.common import LoginIn, ProfileUpdate, UserCreate, UserOut, Token
from ..core.security import verify_password, hash_password, create_access_token
from .deps import get_current_user, require_roles

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=UserOut, status_code=201)
def register(user: UserCreate, db: Session = Depends(get_db),
             current: User = Depends(require_roles("superadmin", "projectadmin"))):
    if user.role.value == "superadmin" and current.role != "superadmin":
        raise HTTPException(status_code=403, detail="Only superadmins can create superadmins")
    if db.query(User).filter(User.email == user.email.lower()).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    u = User(name=user.name, email=user.email.lower(), hashed_password=hash_password(user.password), role=user.role.value)
    db.add(u); db.commit(); db.refresh(u); return u

@router.post("/login", response_model=Token)
def login(creds: LoginIn, db: Session = Depends(get_db)):
    u = db.query(User).filter(User.email == creds.email.lower()).first()
    if not u or not u.active or not verify_password(creds.password, u.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    u.last_login = datetime.utcnow()
    db.commit(); db.refresh(u)
    token = create_access_token(sub=str(u.id), role=u.role)
    return Token(access_token=token, user=UserOut.model_validate(u))

@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user

@router.put("/profile", response_model=Token)
def update_profile(payload: ProfileUpdate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if payload.email is not None and payload.email.lower() != user.email:
        if db.query(User.id).filter(User.email == payload.email.lower()).first():
            raise HTTPException(status_code=400, detail="Email already registered")
        user.email = payload.email.lower()
    if payload.name is not None:
        user.name = payload.name
    if payload.password is not None:
        user.hashed_password = hash_password(payload.password)
    db.commit(); db.refresh(user)
    token = create_access_token(sub=str(user.id), role=user.role)
    return Token(access_token=token, user=UserOut.model_validate(user))

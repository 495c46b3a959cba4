import logging
from fastapi import APIRouter, Depends, HTTPException
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.dependencies.auth import get_current_user
from app.models.user import User
from app.schemas.user import UserLogin, RefreshRequest, TokenResponse, MeResponse
from app.services.security import (
    authenticate_user,
    decode_token,
    find_live_session,
    issue_session,
    revoke_session,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# === Login ===
@router.post("/auth/login", response_model=TokenResponse)
def login(payload: UserLogin, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.email, payload.password)
    if not user:
        logger.warning(f"⚠️ Failed login for {payload.email}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="User is inactive")

    return issue_session(user, db)


# === Refresh ===
@router.post("/auth/refresh", response_model=TokenResponse)
def refresh_token(request: RefreshRequest, db: Session = Depends(get_db)):
    try:
        payload = decode_token(request.refresh_token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    if payload.get("token_type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    record = find_live_session(request.refresh_token, db)
    if not record:
        raise HTTPException(status_code=401, detail="Session revoked or expired")

    user = db.query(User).filter(User.id == record.user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Unauthorized")

    return issue_session(user, db)


# === Logout ===
@router.post("/auth/logout")
def logout(request: RefreshRequest, db: Session = Depends(get_db)):
    revoke_session(request.refresh_token, db)
    return {"detail": "Logged out successfully"}


# === /auth/me ===
@router.get("/auth/me", response_model=MeResponse)
def get_me(user=Depends(get_current_user)):
    return user

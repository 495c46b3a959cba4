from fastapi import Depends, HTTPException, Header
from jose import JWTError
from app.core.db import get_db
from app.models.user import User
from app.services.security import decode_token
from sqlalchemy.orm import Session
import logging

# === Setup logging
logger = logging.getLogger(__name__)


# === Auth Dependency
async def get_current_user(
    authorization: str | None = Header(None),
    db: Session = Depends(get_db)
):
    if not authorization or not authorization.startswith("Bearer "):
        logger.warning("⚠️ Missing 'Bearer' in token header.")
        raise HTTPException(status_code=401, detail="Unauthorized")

    token = authorization.split(" ", 1)[1]

    try:
        payload = decode_token(token)
        user_id = payload.get("sub")

        if not user_id or payload.get("token_type") != "access":
            logger.warning("⚠️ JWT missing 'sub' claim or not an access token.")
            raise HTTPException(status_code=401, detail="Invalid token")

    except JWTError as e:
        logger.warning(f"⚠️ JWT decode failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = db.query(User).filter(User.id == user_id).first()

    if not user:
        logger.warning(f"❌ User not found for ID: {user_id}")
        raise HTTPException(status_code=401, detail="Unauthorized")

    if not user.is_active:
        logger.warning(f"❌ Inactive user attempted access: {user_id}")
        raise HTTPException(status_code=401, detail="User is inactive")

    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "is_admin": user.is_admin,
        "created_at": user.created_at
    }


# === Admin Dependency
async def require_admin(user=Depends(get_current_user)):
    if user["role"] != "admin":
        logger.warning(f"⛔ Non-admin {user['id']} hit an admin endpoint.")
        raise HTTPException(status_code=403, detail="Forbidden")
    return user

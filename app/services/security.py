import logging
from uuid import uuid4
from datetime import datetime, timedelta

import bcrypt
from jose import jwt
from sqlalchemy.orm import Session as DBSession

from app.core.config import (
    JWT_SECRET,
    JWT_ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    SESSION_EXPIRE_DAYS,
)
from app.models.session import Session
from app.models.user import User

logger = logging.getLogger(__name__)


# === Hashing Utilities ===
def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    except ValueError:
        # Malformed hash in storage
        return False


# === Token Utilities ===
def create_jwt_token(data: dict, expires_in_minutes: int) -> str:
    payload = data.copy()
    payload["exp"] = datetime.utcnow() + timedelta(minutes=expires_in_minutes)
    payload["iat"] = datetime.utcnow()
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])


def create_access_token(user: User) -> str:
    return create_jwt_token({
        "sub": str(user.id),
        "role": user.role,
        "token_type": "access",
    }, ACCESS_TOKEN_EXPIRE_MINUTES)


def create_refresh_token(user: User) -> str:
    return create_jwt_token({
        "sub": str(user.id),
        "token_type": "refresh",
        "jti": str(uuid4()),
    }, SESSION_EXPIRE_DAYS * 24 * 60)


# === Auth Logic ===
def authenticate_user(db: DBSession, email: str, password: str) -> User | None:
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


def issue_session(user: User, db: DBSession) -> dict:
    """Revoke the user's live sessions and open a new one."""
    db.query(Session).filter(
        Session.user_id == user.id,
        Session.revoked == False,  # noqa: E712
    ).update({Session.revoked: True})

    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user)

    db.add(Session(
        user_id=user.id,
        token=refresh_token,
        expires_at=datetime.utcnow() + timedelta(days=SESSION_EXPIRE_DAYS),
        revoked=False,
    ))
    db.commit()

    logger.info(f"✅ Session issued for user: {user.id}")
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "role": user.role,
    }


def find_live_session(token: str, db: DBSession) -> Session | None:
    return db.query(Session).filter(
        Session.token == token,
        Session.revoked == False,  # noqa: E712
        Session.expires_at > datetime.utcnow(),
    ).first()


def revoke_session(token: str, db: DBSession) -> bool:
    record = db.query(Session).filter(Session.token == token).first()
    if not record:
        return False
    record.revoked = True
    db.commit()
    return True

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from taskflow.core.config import settings

ALGORITHM = "HS256"


def create_access_token(user_id: int, role: str) -> str:
    # token porteur: id + rôle, pas de refresh
    payload = {
        "user_id": user_id,
        "role": role,
        "exp": datetime.utcnow() + timedelta(minutes=settings.JWT_EXPIRE_MIN),
        "type": "access"
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None


def decode_access_token(token: str) -> Optional[dict]:
    payload = verify_token(token)
    if payload is None or payload.get("type") != "access":
        return None
    if payload.get("user_id") is None:
        return None
    return payload

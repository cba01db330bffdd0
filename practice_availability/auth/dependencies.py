import logging

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from practice_availability.auth import jwt_handler
from practice_availability.database import get_db, storage_errors
from practice_availability.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    with storage_errors(db, "load current user"):
        user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        logger.warning("Token presented for unknown or inactive user %s", user_id)
        raise HTTPException(status_code=401, detail="User not found")
    return user

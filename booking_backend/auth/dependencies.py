from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from booking_backend.auth import jwt_handler
from booking_backend.auth.roles import Actor, Role, parse_role
from booking_backend.database import get_db
from booking_backend.models.user import User

security = HTTPBearer(auto_error=False)


def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> Actor:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except Exception as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=401, detail="Invalid token subject") from exc

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    try:
        role = parse_role(user.role)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail="Unknown role") from exc

    return Actor(user_id=user.id, role=role)


def require_role(*roles: Role):
    allowed = set(roles)

    def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.is_admin or actor.role in allowed:
            return actor
        raise HTTPException(status_code=403, detail="Forbidden")

    return dependency

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from survey_lifecycle.config import settings
from survey_lifecycle.schemas.actor import Actor

security = HTTPBearer()


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    payload = decode_token(credentials.credentials)
    actor_id = payload.get("sub")
    if not actor_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    roles = payload.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    return Actor(actor_id=str(actor_id), roles=[str(role) for role in roles])


def require_roles(*roles: str):
    def checker(current_actor: Actor = Depends(get_current_actor)) -> Actor:
        if not set(roles) & set(current_actor.roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(roles)}",
            )
        return current_actor
    return checker

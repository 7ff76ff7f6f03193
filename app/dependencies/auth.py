from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from app.core.config import settings
from app.models.user.user import UserRole
from app.schemas.auth.actor import Actor

security = HTTPBearer()


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    """Resolve the caller from a bearer token issued by the identity provider."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
        subject = payload.get("sub")
        role = payload.get("role")
        if subject is None or role is None:
            raise credentials_exception
        return Actor(user_id=int(subject), role=UserRole(role))
    except (JWTError, ValueError):
        raise credentials_exception


def require_role(*roles: UserRole):
    async def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only {', '.join(r.value for r in roles)} can access this route"
            )
        return actor
    return role_checker

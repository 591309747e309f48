from fastapi import Depends, Request
from jose import JWTError
from pydantic import ValidationError

from app.celltrack.core.context import Actor, actor_from_user
from app.celltrack.core.error_catalog import AppError, ErrorCatalog
from app.celltrack.core.scope import require_admin
from app.celltrack.core.security import TokenData, decode_token, oauth2_scheme
from app.celltrack.db.session import get_db
from app.celltrack.repos.users import UserRepository


def get_current_token_data(token: str = Depends(oauth2_scheme)) -> TokenData:
    try:
        payload = decode_token(token)
        return TokenData(**payload)
    except (JWTError, ValidationError, TypeError) as exc:
        raise AppError(ErrorCatalog.INVALID_TOKEN) from exc


def get_current_user(token_data: TokenData = Depends(get_current_token_data), db=Depends(get_db)):
    user_id = token_data.sub
    if not user_id:
        raise AppError(ErrorCatalog.INVALID_TOKEN)

    repo = UserRepository(db)
    user = repo.get_by_id(user_id)
    if user is None:
        raise AppError(ErrorCatalog.INVALID_TOKEN)
    return user


def require_active_user(user=Depends(get_current_user)):
    if not user.is_active:
        raise AppError(ErrorCatalog.USER_INACTIVE)
    return user


def require_actor(request: Request, user=Depends(require_active_user)) -> Actor:
    trace_id = getattr(request.state, "trace_id", "")
    actor = actor_from_user(user, trace_id=trace_id)
    request.state.actor = actor
    return actor


def require_admin_actor(actor: Actor = Depends(require_actor)) -> Actor:
    require_admin(actor)
    return actor


__all__ = [
    "get_current_token_data",
    "get_current_user",
    "require_active_user",
    "require_actor",
    "require_admin_actor",
]

from app.celltrack.core.context import Actor
from app.celltrack.core.error_catalog import AppError, ErrorCatalog


ADMIN_ROLE = "ADMIN"
DESTINATION_AGENT_ROLE = "DESTINATION_AGENT"


def _normalize_role(role: str | None) -> str:
    return (role or "").upper()


def is_admin(role: str | None) -> bool:
    return _normalize_role(role) == ADMIN_ROLE


def require_admin(actor: Actor) -> None:
    if not is_admin(actor.role):
        raise AppError(
            ErrorCatalog.INVALID_ROLE,
            details={"message": "administrator role required", "role": actor.role},
        )


def require_location(actor: Actor, location_id: str) -> None:
    if not actor.location_id or str(actor.location_id) != str(location_id):
        raise AppError(
            ErrorCatalog.WRONG_LOCATION,
            details={
                "message": "only users assigned to the destination location can perform this action",
                "actor_location_id": actor.location_id,
                "target_location_id": str(location_id),
            },
        )

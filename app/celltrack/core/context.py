from dataclasses import dataclass


@dataclass(frozen=True)
class Actor:
    """Authenticated identity handed to every engine call."""

    user_id: str | None
    name: str
    role: str
    location_id: str | None = None
    trace_id: str = ""


def build_actor(
    *,
    user_id: str | None,
    name: str,
    role: str,
    location_id: str | None,
    trace_id: str = "",
) -> Actor:
    return Actor(
        user_id=user_id,
        name=name,
        role=(role or "").upper(),
        location_id=location_id,
        trace_id=trace_id,
    )


def actor_from_user(user, *, trace_id: str = "") -> Actor:
    return build_actor(
        user_id=str(user.id),
        name=user.display_name or user.username,
        role=user.role,
        location_id=str(user.location_id) if user.location_id else None,
        trace_id=trace_id,
    )

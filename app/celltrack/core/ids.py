import uuid

from app.celltrack.core.error_catalog import AppError, ErrorCatalog


def parse_uuid(value, *, resource: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise AppError(
            ErrorCatalog.NOT_FOUND,
            details={"message": f"{resource} not found", "id": str(value)},
        ) from exc


def normalize_imeis(imeis) -> list[str]:
    """Strip whitespace and reject empty or repeated IMEIs, keeping order."""
    cleaned = [str(imei).strip() for imei in imeis or []]
    if not cleaned or any(not imei for imei in cleaned):
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "imeis must be a non-empty list of non-blank values"},
        )
    seen: set[str] = set()
    duplicates = []
    for imei in cleaned:
        if imei in seen:
            duplicates.append(imei)
        seen.add(imei)
    if duplicates:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "imeis must not repeat", "imeis": duplicates},
        )
    return cleaned

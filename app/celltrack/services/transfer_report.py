"""Human-readable transfer reconciliation report.

`render_transfer_report` is a pure function of its inputs. The transfer
engine calls it after every transition and stores the result whole; the text
is never edited in place, so the report always matches the stored state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.celltrack.core.states import TransferState

SEPARATOR = "---------------------------------"
DATETIME_FORMAT = "%d/%m/%Y %H:%M:%S"
CANCELLED_AT_FORMAT = "%d/%m/%Y %H:%M"


@dataclass(frozen=True)
class ReportUnit:
    imei: str
    product_name: str
    original_location_name: str
    color: str | None = None


@dataclass(frozen=True)
class TransferReportInput:
    folio: str
    target_location_name: str
    units: tuple[ReportUnit, ...]
    state: TransferState
    initiator_name: str | None = None
    admin_confirmer: str | None = None
    destination_confirmer: str | None = None
    cancelled_by: str | None = None
    cancelled_at: datetime | None = None


def _localize(value: datetime, tz: ZoneInfo) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def status_line(report: TransferReportInput, *, timezone_name: str = "UTC") -> str:
    state = TransferState(report.state)
    if state == TransferState.PENDING_ADMIN_CONFIRMATION:
        return "PENDING ADMIN CONFIRMATION"
    if state == TransferState.PENDING_DESTINATION_CONFIRMATION:
        return f"PENDING DESTINATION CONFIRMATION (Admin: {report.admin_confirmer or 'N/A'})"
    if state == TransferState.COMPLETED:
        parts = []
        if report.admin_confirmer:
            parts.append(f"Admin: {report.admin_confirmer}")
        if report.destination_confirmer:
            parts.append(f"Destination: {report.destination_confirmer}")
        return f"COMPLETED ({', '.join(parts)})" if parts else "COMPLETED"
    text = "CANCELLED"
    if report.cancelled_by:
        text += f" (by {report.cancelled_by})"
        if report.cancelled_at is not None:
            cancelled_at = _localize(report.cancelled_at, ZoneInfo(timezone_name))
            text += f" on {cancelled_at.strftime(CANCELLED_AT_FORMAT)}"
    return text


def render_transfer_report(
    report: TransferReportInput,
    *,
    generated_at: datetime,
    timezone_name: str = "UTC",
) -> str:
    tz = ZoneInfo(timezone_name)
    lines = [
        "**TRANSFER REPORT**",
        "",
        f"Transfer folio: {report.folio}",
        f"Generated at: {_localize(generated_at, tz).strftime(DATETIME_FORMAT)}",
    ]
    if report.initiator_name:
        lines.append(f"Initiated by: {report.initiator_name}")
    lines.append(f"Destination: {report.target_location_name or 'Unknown'}")
    lines.append("")
    lines.append(f"Units transferred ({len(report.units)}):")
    lines.append(SEPARATOR)
    for index, unit in enumerate(report.units, start=1):
        lines.append(f"{index}. IMEI: {unit.imei}")
        lines.append(f"   Product: {unit.product_name}")
        if unit.color:
            lines.append(f"   Color: {unit.color}")
        lines.append(f"   From: {unit.original_location_name or 'N/A'}")
        if index < len(report.units):
            lines.append(SEPARATOR)
    lines.append(SEPARATOR)
    lines.append("")
    lines.append(f"Status: {status_line(report, timezone_name=timezone_name)}")
    if TransferState(report.state) not in (TransferState.COMPLETED, TransferState.CANCELLED):
        lines.append("")
        lines.append("Please confirm receipt of the units listed above.")
    return "\n".join(lines) + "\n"


def report_input_from_transfer(transfer, **overrides) -> TransferReportInput:
    """Build the renderer input from a stored transfer, with pending changes applied."""
    values = {
        "folio": transfer.folio,
        "target_location_name": transfer.target_location_name,
        "units": tuple(
            ReportUnit(
                imei=unit.imei,
                product_name=unit.product_name,
                original_location_name=unit.original_location_name,
                color=unit.color,
            )
            for unit in transfer.units
        ),
        "state": TransferState(transfer.state),
        "initiator_name": transfer.initiator_name,
        "admin_confirmer": transfer.admin_confirmed_by,
        "destination_confirmer": transfer.destination_confirmed_by,
        "cancelled_by": transfer.cancelled_by,
        "cancelled_at": transfer.cancelled_at,
    }
    values.update(overrides)
    return TransferReportInput(**values)

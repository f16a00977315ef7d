"""Tool for modifying appointments"""
import logging
from datetime import date, time
from typing import Optional

from pydantic import Field

from tools.base import ContactNumber, Operation, ToolArguments, ToolContext, ToolResult

logger = logging.getLogger(__name__)


class ModifyAppointmentArgs(ToolArguments):
    contact_number: ContactNumber = Field(description="User's contact number")
    appointment_id: int = Field(description="ID of the appointment to modify")
    new_date: Optional[date] = Field(
        default=None, description="New appointment date in YYYY-MM-DD format (optional)"
    )
    new_time: Optional[time] = Field(
        default=None, description="New appointment time in HH:MM format (optional)"
    )


async def modify_appointment(ctx: ToolContext, args: ModifyAppointmentArgs) -> ToolResult:
    """
    Moves a confirmed appointment to a new date and/or time.

    CRITICAL WORKFLOW:
    1. retrieve_appointments to find the appointment id
    2. fetch_slots to pick the new slot
    3. modify_appointment with the id and the new date/time

    The target slot is checked against every other confirmed appointment
    before the update; a clash fails with ConflictError and the original
    appointment is left untouched.
    """
    logger.info(
        f"🔧 TOOL CALLED: modify_appointment with appointment_id={args.appointment_id}, "
        f"new_date={args.new_date}, new_time={args.new_time}"
    )

    appointment = await ctx.store.modify(
        args.appointment_id, args.contact_number, args.new_date, args.new_time
    )
    return ToolResult.ok(
        "Appointment modified successfully",
        appointment=appointment.model_dump(mode="json"),
    )


MODIFY_APPOINTMENT = Operation(
    name="modify_appointment",
    description=(
        "Modify the date and/or time of an existing appointment. Call "
        "retrieve_appointments first to get the appointment id."
    ),
    arguments=ModifyAppointmentArgs,
    handler=modify_appointment,
)

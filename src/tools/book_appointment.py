"""Tool for booking appointments"""

import logging
from datetime import date, time
from typing import Optional

from pydantic import Field

from tools.base import ContactNumber, Operation, ToolArguments, ToolContext, ToolResult

logger = logging.getLogger(__name__)


class BookAppointmentArgs(ToolArguments):
    contact_number: ContactNumber = Field(description="User's contact number")
    appointment_date: date = Field(description="Appointment date in YYYY-MM-DD format")
    appointment_time: time = Field(description="Appointment time in HH:MM format (24-hour)")
    service_type: Optional[str] = Field(default=None, description="Type of service (optional)")
    notes: Optional[str] = Field(default=None, description="Additional notes (optional)")


async def book_appointment(ctx: ToolContext, args: BookAppointmentArgs) -> ToolResult:
    """
    Books a confirmed appointment for the contact.

    RACE CONDITION PREVENTION:
    The store checks for a confirmed appointment at the same date and time
    and inserts while holding that slot's lock. The database partial unique
    index on confirmed (date, time) rejects a concurrent insert from another
    process. Both paths fail with ConflictError and write nothing, so the
    model can offer a different slot.
    """
    logger.info(
        f"🔧 TOOL CALLED: book_appointment with date={args.appointment_date}, "
        f"time={args.appointment_time}, contact_number={args.contact_number}"
    )

    appointment = await ctx.store.book(
        args.contact_number,
        args.appointment_date,
        args.appointment_time,
        args.service_type,
        args.notes,
    )
    return ToolResult.ok(
        "Appointment booked successfully",
        appointment=appointment.model_dump(mode="json"),
    )


BOOK_APPOINTMENT = Operation(
    name="book_appointment",
    description=(
        "Book an appointment for the user. Requires contact_number, "
        "appointment_date (YYYY-MM-DD) and appointment_time (HH:MM, 24-hour)."
    ),
    arguments=BookAppointmentArgs,
    handler=book_appointment,
)

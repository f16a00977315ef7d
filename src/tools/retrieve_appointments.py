"""Tool for retrieving user appointments"""
import logging
from typing import Optional

from pydantic import Field

from database.models import AppointmentStatus
from tools.base import ContactNumber, Operation, ToolArguments, ToolContext, ToolResult

logger = logging.getLogger(__name__)


class RetrieveAppointmentsArgs(ToolArguments):
    contact_number: ContactNumber = Field(description="User's contact number")
    status: Optional[AppointmentStatus] = Field(
        default=None,
        description="Filter by status: confirmed, cancelled, or completed (optional)",
    )


async def retrieve_appointments(ctx: ToolContext, args: RetrieveAppointmentsArgs) -> ToolResult:
    """Returns the contact's appointments, most recent date and time first"""
    logger.info(
        f"🔧 TOOL CALLED: retrieve_appointments for {args.contact_number} "
        f"(status={args.status.value if args.status else 'any'})"
    )

    appointments = await ctx.store.list_appointments(args.contact_number, args.status)
    return ToolResult.ok(
        f"{len(appointments)} appointments found",
        appointments=[apt.model_dump(mode="json") for apt in appointments],
        count=len(appointments),
    )


RETRIEVE_APPOINTMENTS = Operation(
    name="retrieve_appointments",
    description=(
        "Get all appointments for a user, optionally filtered by status. "
        "The returned ids are required by cancel_appointment and modify_appointment."
    ),
    arguments=RetrieveAppointmentsArgs,
    handler=retrieve_appointments,
)

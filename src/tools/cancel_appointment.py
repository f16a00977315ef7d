"""Tool for cancelling appointments"""

import logging

from pydantic import Field

from tools.base import ContactNumber, Operation, ToolArguments, ToolContext, ToolResult

logger = logging.getLogger(__name__)


class CancelAppointmentArgs(ToolArguments):
    contact_number: ContactNumber = Field(description="User's contact number")
    appointment_id: int = Field(description="ID of the appointment to cancel")


async def cancel_appointment(ctx: ToolContext, args: CancelAppointmentArgs) -> ToolResult:
    """
    Cancels a confirmed appointment owned by the contact.

    The row is kept with status cancelled, which frees its slot. An
    appointment that is absent, belongs to another contact, or is no longer
    confirmed yields NotFoundError and nothing changes.
    """
    logger.info(
        f"🔧 TOOL CALLED: cancel_appointment with appointment_id={args.appointment_id}"
    )

    appointment = await ctx.store.cancel(args.appointment_id, args.contact_number)
    return ToolResult.ok(
        "Appointment cancelled successfully",
        appointment=appointment.model_dump(mode="json"),
    )


CANCEL_APPOINTMENT = Operation(
    name="cancel_appointment",
    description=(
        "Cancel a specific appointment. Call retrieve_appointments first to get "
        "the appointment id."
    ),
    arguments=CancelAppointmentArgs,
    handler=cancel_appointment,
)

"""Tool for fetching available appointment slots from the static calendar"""
import logging
import datetime as dt
from typing import Optional

from pydantic import Field

from tools.base import Operation, ToolArguments, ToolContext, ToolResult
from utils.date_time_utils import format_time_for_display, get_time_of_day

logger = logging.getLogger(__name__)


class FetchSlotsArgs(ToolArguments):
    date: Optional[dt.date] = Field(
        default=None, description="Optional date filter in YYYY-MM-DD format"
    )


async def fetch_slots(ctx: ToolContext, args: FetchSlotsArgs) -> ToolResult:
    """
    Lists calendar slots, filtered by date when given.

    Returns catalog availability only. A listed slot can still fail to book
    if someone already holds it.
    """
    logger.info(f"🔧 TOOL CALLED: fetch_slots with date={args.date or 'any'}")

    slots = ctx.slot_catalog.available_slots(args.date)
    slot_data = [
        {
            "date": slot.slot_date.isoformat(),
            "time": slot.slot_time.strftime("%H:%M"),
            "time_display": format_time_for_display(slot.slot_time),
            "time_of_day": get_time_of_day(slot.slot_time.hour),
        }
        for slot in slots
    ]

    if not slot_data:
        message = (
            f"No available slots on {args.date.isoformat()}"
            if args.date
            else "No available slots"
        )
    else:
        message = f"{len(slot_data)} slots available"

    return ToolResult.ok(message, slots=slot_data, count=len(slot_data))


FETCH_SLOTS = Operation(
    name="fetch_slots",
    description="Get available appointment slots. Can filter by date (YYYY-MM-DD).",
    arguments=FetchSlotsArgs,
    handler=fetch_slots,
)

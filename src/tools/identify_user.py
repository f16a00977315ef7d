"""Tool for identifying users by phone number"""
import logging
from typing import Optional

from pydantic import Field

from tools.base import ContactNumber, Operation, ToolArguments, ToolContext, ToolResult

logger = logging.getLogger(__name__)


class IdentifyUserArgs(ToolArguments):
    contact_number: ContactNumber = Field(description="User's phone number (e.g., +15551234567)")
    name: Optional[str] = Field(default=None, description="User's name (optional)")
    email: Optional[str] = Field(default=None, description="User's email address (optional)")


async def identify_user(ctx: ToolContext, args: IdentifyUserArgs) -> ToolResult:
    """
    Identifies or creates a user by their phone number.

    Present name/email values overwrite the stored ones; absent values keep
    what is already stored.
    """
    logger.info(f"🔧 TOOL CALLED: identify_user with contact_number={args.contact_number}")

    user = await ctx.store.identify_user(args.contact_number, args.name, args.email)
    return ToolResult.ok(
        f"User identified: {user.contact_number}",
        user=user.model_dump(mode="json"),
    )


IDENTIFY_USER = Operation(
    name="identify_user",
    description=(
        "Identify the caller by phone number, creating or refreshing their record. "
        "Call this before any appointment operation. Name and email are optional."
    ),
    arguments=IdentifyUserArgs,
    handler=identify_user,
)

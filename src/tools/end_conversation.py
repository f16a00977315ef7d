"""Tool for ending the conversation"""

import logging

from tools.base import Operation, ToolArguments, ToolContext, ToolResult

logger = logging.getLogger(__name__)


class EndConversationArgs(ToolArguments):
    pass


async def end_conversation(ctx: ToolContext, args: EndConversationArgs) -> ToolResult:
    """Signal only; the orchestration loop seals the session and runs the summary"""
    logger.info("🔧 TOOL CALLED: end_conversation")
    return ToolResult.ok("Conversation ended")


END_CONVERSATION = Operation(
    name="end_conversation",
    description="End the conversation. Use this when the user wants to end the call.",
    arguments=EndConversationArgs,
    handler=end_conversation,
)

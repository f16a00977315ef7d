"""Tools module for the scheduling agent"""

from .base import Operation, ToolContext, ToolResult
from .dispatcher import ToolDispatcher
from .registry import DEFAULT_OPERATIONS, ToolRegistry, default_registry

__all__ = [
    "Operation",
    "ToolContext",
    "ToolResult",
    "ToolDispatcher",
    "ToolRegistry",
    "DEFAULT_OPERATIONS",
    "default_registry",
]

"""Executes model-requested operations and bills each one"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from errors import AgentError, CollaboratorError, ValidationError
from services.appointment_store import AppointmentStore
from services.cost_service import CostLedger, CostService, CostUnit
from services.slot_catalog import SlotCatalog
from tools.base import ToolArguments, ToolContext, ToolResult
from tools.registry import ToolRegistry, default_registry

logger = logging.getLogger(__name__)


def _describe_validation_error(error: PydanticValidationError) -> str:
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ())) or "arguments"
        problems.append(f"{field}: {item.get('msg', 'invalid value')}")
    return "Invalid arguments - " + "; ".join(problems)


class ToolDispatcher:
    """
    Tool registry front end.

    Methods:
    - list_operations(): Catalog as OpenAI function-tool definitions
    - dispatch(): Validate arguments, run the handler, return a ToolResult

    Every dispatched catalog operation appends exactly one CostEntry, whether
    it succeeds, fails, times out or is cancelled. Operation failures come
    back as ToolResult(success=False); only an unknown operation name raises.
    """

    def __init__(
        self,
        store: AppointmentStore,
        slot_catalog: SlotCatalog,
        ledger: CostLedger,
        registry: Optional[ToolRegistry] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.context = ToolContext(store=store, slot_catalog=slot_catalog)
        self.ledger = ledger
        self.registry = registry or default_registry()
        self.timeout_seconds = timeout_seconds

    def list_operations(self) -> List[Dict[str, Any]]:
        return [operation.schema() for operation in self.registry]

    def parse_arguments(self, name: str, arguments: Optional[Dict[str, Any]]) -> ToolArguments:
        operation = self.registry.get(name)
        try:
            return operation.arguments.model_validate(arguments or {})
        except PydanticValidationError as e:
            raise ValidationError(_describe_validation_error(e)) from e

    async def dispatch(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        operation = self.registry.get(name)

        try:
            args = self.parse_arguments(name, arguments)
            result = await asyncio.wait_for(
                operation.handler(self.context, args), timeout=self.timeout_seconds
            )
        except AgentError as e:
            logger.warning(f"Tool {name} failed ({e.error_type}): {e.message}")
            result = ToolResult.failure(e)
        except asyncio.TimeoutError:
            logger.error(f"Tool {name} timed out after {self.timeout_seconds}s")
            result = ToolResult.failure(
                CollaboratorError(f"{name} timed out after {self.timeout_seconds} seconds")
            )
        except Exception as e:
            logger.error(f"Unexpected error in tool {name}: {e}", exc_info=True)
            result = ToolResult.failure(CollaboratorError(f"{name} failed: {e}"))
        finally:
            self.ledger.add(name, CostService.operation_cost(name), CostUnit.REQUEST)

        return result

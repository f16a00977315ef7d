"""Fixed catalog of operations advertised to the model"""

from typing import Dict, List

from errors import UnknownOperationError
from tools.base import Operation
from tools.book_appointment import BOOK_APPOINTMENT
from tools.cancel_appointment import CANCEL_APPOINTMENT
from tools.end_conversation import END_CONVERSATION
from tools.fetch_slots import FETCH_SLOTS
from tools.identify_user import IDENTIFY_USER
from tools.modify_appointment import MODIFY_APPOINTMENT
from tools.retrieve_appointments import RETRIEVE_APPOINTMENTS


class ToolRegistry:
    """Name -> Operation lookup, in catalog order"""

    def __init__(self, operations: List[Operation]):
        self._operations: Dict[str, Operation] = {op.name: op for op in operations}

    def get(self, name: str) -> Operation:
        try:
            return self._operations[name]
        except KeyError:
            raise UnknownOperationError(f"Unknown tool: {name}") from None

    def __iter__(self):
        return iter(self._operations.values())


DEFAULT_OPERATIONS = [
    IDENTIFY_USER,
    FETCH_SLOTS,
    BOOK_APPOINTMENT,
    RETRIEVE_APPOINTMENTS,
    CANCEL_APPOINTMENT,
    MODIFY_APPOINTMENT,
    END_CONVERSATION,
]


def default_registry() -> ToolRegistry:
    return ToolRegistry(DEFAULT_OPERATIONS)

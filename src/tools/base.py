"""Shared types for tool operations: argument base model, result envelope, catalog entry"""

from dataclasses import dataclass
from typing import Annotated, Any, Awaitable, Callable, Dict, Optional, Type

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from errors import AgentError
from services.appointment_store import AppointmentStore
from services.slot_catalog import SlotCatalog


def clean_contact_number(value: Any) -> Any:
    """Strip spaces, dashes and parentheses from a phone number"""
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        return value
    for char in (" ", "-", "(", ")", "."):
        value = value.replace(char, "")
    return value


ContactNumber = Annotated[str, BeforeValidator(clean_contact_number), Field(min_length=1)]


class ToolArguments(BaseModel):
    """Base for operation argument structs; blank strings count as absent"""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and not value.strip() else value)
                for key, value in data.items()
            }
        return data


class ToolResult(BaseModel):
    """Uniform result envelope returned for every dispatched operation"""

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, **payload: Any) -> "ToolResult":
        return cls(success=True, message=message, payload=payload)

    @classmethod
    def failure(cls, error: AgentError) -> "ToolResult":
        return cls(success=False, error=error.message, error_type=error.error_type)

    def to_envelope(self) -> Dict[str, Any]:
        envelope: Dict[str, Any] = {"success": self.success}
        if self.success:
            envelope["message"] = self.message
        else:
            envelope["error"] = self.error
            envelope["error_type"] = self.error_type
        envelope["payload"] = self.payload
        return envelope


@dataclass
class ToolContext:
    """Collaborators available to operation handlers"""

    store: AppointmentStore
    slot_catalog: SlotCatalog


Handler = Callable[[ToolContext, Any], Awaitable[ToolResult]]


@dataclass(frozen=True)
class Operation:
    """Catalog entry: name, argument struct, description, handler"""

    name: str
    description: str
    arguments: Type[ToolArguments]
    handler: Handler

    def schema(self) -> Dict[str, Any]:
        """OpenAI function-tool definition advertised to the model"""
        parameters = self.arguments.model_json_schema()
        parameters.pop("title", None)
        parameters.setdefault("properties", {})
        parameters.setdefault("required", [])
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }

"""
Base classes for client-side tools.

A client-side tool is invoked by the remote model during a call but runs
locally; its string result is handed back into the same session.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class ToolParameter:
    """Definition of a tool parameter."""

    name: str
    type: str  # "string", "integer", "boolean", "number"
    description: str
    required: bool = False

    def to_ultravox_schema(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "location": "PARAMETER_LOCATION_BODY",
            "schema": {
                "type": self.type,
                "description": self.description,
            },
            "required": self.required,
        }


@dataclass
class ToolDefinition:
    """Provider-facing tool metadata."""

    name: str
    description: str
    parameters: List[ToolParameter] = field(default_factory=list)

    def to_ultravox_schema(self) -> Dict[str, Any]:
        """
        Convert to an Ultravox ``selectedTools`` entry.

        Ultravox format:
        {
            "temporaryTool": {
                "modelToolName": "tool_name",
                "description": "Tool description",
                "dynamicParameters": [...],
                "client": {}
            }
        }

        The empty ``client`` block marks the tool as executed in the browser
        session rather than by an HTTP callback.
        """
        return {
            "temporaryTool": {
                "modelToolName": self.name,
                "description": self.description,
                "dynamicParameters": [p.to_ultravox_schema() for p in self.parameters],
                "client": {},
            }
        }


class Tool(ABC):
    """
    Abstract base class for all client-side tools.

    Subclasses provide a definition and implement run().
    """

    definition: ToolDefinition

    @property
    def name(self) -> str:
        return self.definition.name

    @abstractmethod
    async def run(self, parameters: Dict[str, Any]) -> str:
        """
        Execute the tool.

        Args:
            parameters: Arguments chosen by the remote model

        Returns:
            Text handed back to the model
        """
        pass

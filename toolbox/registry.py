from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from toolbox.errors import DuplicateToolName, RegistryFrozen, UnknownTool
from toolbox.results import ToolResult
from toolbox.validation import ArgumentSchema

ToolHandler = Callable[[Dict[str, Any]], ToolResult]


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    schema: ArgumentSchema
    handler: ToolHandler

    def as_mcp_tool(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.schema.json_schema(),
        }


class ToolRegistry:
    """Tool descriptors keyed by name, in registration order.

    Registration happens once at startup; after ``freeze()`` the registry is
    read-only and safe to share between request threads.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDescriptor] = {}
        self._frozen = False

    def register(self, descriptor: ToolDescriptor) -> ToolDescriptor:
        if self._frozen:
            raise RegistryFrozen(f"cannot register {descriptor.name}: registry is frozen")
        if descriptor.name in self._tools:
            raise DuplicateToolName(descriptor.name)
        self._tools[descriptor.name] = descriptor
        return descriptor

    def tool(self, name: str, description: str, schema: ArgumentSchema):
        """Decorator form of ``register`` for plain handler functions."""
        def decorator(func: ToolHandler) -> ToolHandler:
            self.register(ToolDescriptor(name=name, description=description, schema=schema, handler=func))
            return func
        return decorator

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, name: str) -> ToolDescriptor:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownTool(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def list_all(self) -> List[Dict[str, Any]]:
        return [t.as_mcp_tool() for t in self._tools.values()]

    def capabilities(self) -> Dict[str, Dict[str, str]]:
        return {t.name: {"description": t.description} for t in self._tools.values()}

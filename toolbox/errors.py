"""Error taxonomy.

Protocol errors map onto JSON-RPC ``error`` objects. Everything a tool does
wrong at runtime is *not* in here: handler failures become ``success=false``
results inside a successful envelope (see ``toolbox.dispatch``).
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional

# JSON-RPC 2.0 reserved codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ProtocolError(Exception):
    """Error that is answered with a JSON-RPC error envelope."""
    code = INTERNAL_ERROR

    def __init__(self, message: str, *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class InvalidRequest(ProtocolError):
    code = INVALID_REQUEST


class MethodNotFound(ProtocolError):
    code = METHOD_NOT_FOUND

    def __init__(self, method: str):
        super().__init__("Method not found", data={"method": method})
        self.method = method


class InvalidParams(ProtocolError):
    code = INVALID_PARAMS


class UnknownTool(InvalidParams):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}", data={"tool": name})
        self.name = name


class InvalidArguments(InvalidParams):
    def __init__(self, tool: str, violations: List[Any]):
        details = "; ".join(v.message for v in violations)
        super().__init__(
            f"Invalid arguments for tool {tool}: {details}",
            data={"tool": tool, "violations": [v.to_dict() for v in violations]},
        )
        self.tool = tool
        self.violations = violations


class DuplicateToolName(ValueError):
    def __init__(self, name: str):
        super().__init__(f"Tool already registered: {name}")
        self.name = name


class RegistryFrozen(RuntimeError):
    pass

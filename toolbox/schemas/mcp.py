from __future__ import annotations
from typing import List, Optional, Dict, Any, Union
from pydantic import BaseModel, Field


JSONRPC_VERSION = "2.0"


class JsonRpcRequest(BaseModel):
    jsonrpc: str = Field(description="JSON-RPC version, must be 2.0")
    method: str
    id: Optional[Union[str, int]] = Field(default=None, description="Request id (string/number/null)")
    params: Optional[Dict[str, Any]] = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


class ToolCallParams(BaseModel):
    name: str
    arguments: Optional[Dict[str, Any]] = None


class ToolDef(BaseModel):
    name: str
    description: Optional[str] = None
    inputSchema: Optional[Dict[str, Any]] = Field(default=None, description="JSON Schema for input")


class ManifestResponse(BaseModel):
    tools: List[ToolDef]


class ServerInfo(BaseModel):
    name: str
    version: str


class InitializeResult(BaseModel):
    protocolVersion: str
    capabilities: Dict[str, Any]
    serverInfo: ServerInfo


class JsonRpcErrorObj(BaseModel):
    code: int
    message: str
    data: Optional[Dict[str, Any]] = None


class JsonRpcSuccess(BaseModel):
    jsonrpc: str = Field(default=JSONRPC_VERSION, description="JSON-RPC version")
    id: Optional[Any] = Field(default=None, description="Request id (string/number/null)")
    result: Dict[str, Any] = Field(description="JSON-RPC success result")


class JsonRpcError(BaseModel):
    jsonrpc: str = Field(default=JSONRPC_VERSION, description="JSON-RPC version")
    id: Optional[Any] = Field(default=None, description="Request id (string/number/null)")
    error: JsonRpcErrorObj = Field(description="JSON-RPC error object")


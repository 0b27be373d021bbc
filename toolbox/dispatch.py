# dispatch.py
# - Dispatcher: one JSON-RPC request in, one envelope (or None for notifications) out
# - initialize / tools/list / tools/call; anything else -> Method not found
# - handler failures are caught here and returned as success=false results

from __future__ import annotations
import json
import logging
import time
from typing import Any, Dict, Optional

from pydantic import ValidationError

from toolbox.context import get_correlation_id, reset_correlation_id, set_correlation_id
from toolbox.errors import (
    InvalidArguments,
    InvalidParams,
    InvalidRequest,
    MethodNotFound,
    ProtocolError,
    INTERNAL_ERROR,
)
from toolbox.metrics import Metrics
from toolbox.registry import ToolRegistry
from toolbox.results import ToolResult, coerce, normalize
from toolbox.schemas.mcp import (
    JSONRPC_VERSION,
    InitializeResult,
    JsonRpcError,
    JsonRpcErrorObj,
    JsonRpcRequest,
    JsonRpcSuccess,
    ServerInfo,
    ToolCallParams,
)
from toolbox.validation import validate

logger = logging.getLogger("mcp")


def jsonrpc_ok(id_val: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return JsonRpcSuccess(id=id_val, result=result).model_dump()


def jsonrpc_err(id_val: Any, code: int, message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    env = JsonRpcError(id=id_val, error=JsonRpcErrorObj(code=code, message=message, data=data)).model_dump()
    if data is None:
        env["error"].pop("data", None)
    return env


def log_event(event: str, **fields: Any) -> None:
    msg = {"event": event, "corr": get_correlation_id()}
    msg.update(fields)
    logger.info(json.dumps(msg, ensure_ascii=False, default=str))


class Dispatcher:
    """Routes decoded JSON-RPC messages against a frozen ToolRegistry."""

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        server_name: str,
        server_version: str,
        protocol_version: str,
        metrics: Optional[Metrics] = None,
    ):
        self.registry = registry
        self.server_name = server_name
        self.server_version = server_version
        self.protocol_version = protocol_version
        self.metrics = metrics or Metrics()
        self._methods = {
            "initialize": self._initialize,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    # -----------------------------------------------------------------
    # entry point
    # -----------------------------------------------------------------
    def handle(self, payload: Any, *, correlation_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        token = set_correlation_id(correlation_id)
        try:
            return self._handle(payload)
        finally:
            reset_correlation_id(token)

    def _handle(self, payload: Any) -> Optional[Dict[str, Any]]:
        if isinstance(payload, list):
            return jsonrpc_err(None, InvalidRequest.code, "Batch not supported")
        if not isinstance(payload, dict):
            return jsonrpc_err(None, InvalidRequest.code, "Invalid Request")
        try:
            req = JsonRpcRequest.model_validate(payload)
        except ValidationError:
            return jsonrpc_err(payload.get("id") if _valid_id(payload.get("id")) else None,
                               InvalidRequest.code, "Invalid Request")
        if req.jsonrpc != JSONRPC_VERSION:
            return jsonrpc_err(req.id, InvalidRequest.code, "Invalid jsonrpc version")

        # notifications (no id) are acknowledged, never answered
        if req.is_notification:
            log_event("notification", method=req.method)
            return None

        method = req.method
        params = req.params or {}
        fn = self._methods.get(method)
        try:
            if fn is None:
                raise MethodNotFound(method)
            result = fn(params)
            self.metrics.inc("mcp_requests_total", method=method, status="ok")
            return jsonrpc_ok(req.id, result)
        except ProtocolError as e:
            log_event("rpc.error", id=req.id, method=method, code=e.code, msg=e.message)
            status = "not_found" if isinstance(e, MethodNotFound) else "invalid_params"
            self.metrics.inc("mcp_requests_total", method=method if fn else "unknown", status=status)
            return jsonrpc_err(req.id, e.code, e.message, e.data)
        except Exception:
            logger.exception(f"internal error on {method}")
            self.metrics.inc("mcp_requests_total", method=method, status="server_error")
            return jsonrpc_err(req.id, INTERNAL_ERROR, "Internal error")

    # -----------------------------------------------------------------
    # methods
    # -----------------------------------------------------------------
    def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        client = params.get("clientInfo") or {}
        log_event(
            "rpc",
            stage="initialize",
            client=client.get("name") if isinstance(client, dict) else None,
            client_protocol=params.get("protocolVersion"),
        )
        return InitializeResult(
            protocolVersion=self.protocol_version,
            capabilities={"tools": self.registry.capabilities()},
            serverInfo=ServerInfo(name=self.server_name, version=self.server_version),
        ).model_dump()

    def _tools_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        log_event("rpc", stage="tools/list", count=len(self.registry))
        return {"tools": self.registry.list_all()}

    def _tools_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            call = ToolCallParams.model_validate(params)
        except ValidationError:
            raise InvalidParams("Invalid params: tools/call requires a string 'name' and an object 'arguments'") from None
        arguments = call.arguments or {}

        tool = self.registry.lookup(call.name)
        outcome = validate(tool.schema, arguments)
        if not outcome.ok:
            raise InvalidArguments(tool.name, outcome.violations)

        log_event("tool.start", tool=tool.name, args_keys=sorted(outcome.arguments))
        t0 = time.perf_counter()
        result = self._invoke(tool.name, tool.handler, outcome.arguments)
        out = _wire_safe(tool.name, normalize(result))
        dt = (time.perf_counter() - t0) * 1000
        self.metrics.observe(
            "mcp_tool_call_duration_ms", dt, tool=tool.name, outcome="ok" if out["success"] else "failed"
        )
        log_event("tool.finish", tool=tool.name, success=out["success"], ms=int(dt))
        return out

    def _invoke(self, name: str, handler, arguments: Dict[str, Any]) -> ToolResult:
        try:
            return coerce(handler(arguments))
        except Exception as e:
            logger.exception(f"tool {name} failed")
            reason = str(e) or type(e).__name__
            return ToolResult.fail(
                f"Tool {name} failed: {reason}",
                error=reason,
                errorType=type(e).__name__,
            )


def _valid_id(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


def _wire_safe(name: str, out: Dict[str, Any]) -> Dict[str, Any]:
    """Replace a result that strict JSON cannot carry (NaN/Infinity, arbitrary objects) with a failure."""
    try:
        json.dumps(out, allow_nan=False)
    except (TypeError, ValueError) as e:
        logger.warning(f"tool {name} returned a non-JSON result: {e}")
        return normalize(ToolResult.fail(
            f"Tool {name} returned a result that cannot be encoded as JSON: {e}",
            error=str(e),
            errorType=type(e).__name__,
        ))
    return out

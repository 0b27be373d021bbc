# main.py
# - FastAPI-based MCP server
# - All tool features go through a single JSON-RPC endpoint (/mcp): initialize, tools/list, tools/call
# - Tool registry/dispatch live in toolbox.dispatch; this module is transport only

import json
import logging
import sys
import time
import uuid
from typing import Any, Dict, Optional, TextIO

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.concurrency import run_in_threadpool

from toolbox.config import cfg
from toolbox.dispatch import Dispatcher, jsonrpc_err
from toolbox.errors import PARSE_ERROR
from toolbox.metrics import Metrics
from toolbox.registry import ToolRegistry
from toolbox.schemas.mcp import ManifestResponse
from toolbox.tools import build_registry


# Logging setup
logger = logging.getLogger("mcp")
logging.basicConfig(level=getattr(logging, cfg.log_level.upper(), logging.INFO))


def _wants_sse(accept: str) -> bool:
    """SSE framing only when the client accepts event streams and not plain JSON."""
    accept = (accept or "").lower()
    return cfg.sse_enabled and "text/event-stream" in accept and "application/json" not in accept


def _sse_frame(envelope: Dict[str, Any]) -> str:
    return f"event: message\ndata: {json.dumps(envelope, ensure_ascii=False)}\n\n"


def create_app(registry: Optional[ToolRegistry] = None, *, metrics: Optional[Metrics] = None) -> FastAPI:
    registry = registry or build_registry()
    metrics = metrics or Metrics()
    dispatcher = Dispatcher(
        registry,
        server_name=cfg.server_name,
        server_version=cfg.server_version,
        protocol_version=cfg.protocol_version,
        metrics=metrics,
    )

    app = FastAPI(title=cfg.server_name, version=cfg.server_version)
    app.state.registry = registry
    app.state.dispatcher = dispatcher
    app.state.metrics = metrics

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.allow_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["x-correlation-id"],
        max_age=3600,
    )

    def server_info() -> Dict[str, str]:
        return {"name": cfg.server_name, "version": cfg.server_version}

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "server": server_info(),
            "protocolVersion": cfg.protocol_version,
            "tools": len(registry),
        }

    @app.get("/mcp")
    def mcp_info():
        # clients probing the endpoint with GET; no server-initiated stream
        return {"server": server_info(), "protocolVersion": cfg.protocol_version}

    @app.get("/mcp/capabilities")
    def mcp_capabilities():
        return {
            "capabilities": {"tools": registry.capabilities()},
            "protocolVersion": cfg.protocol_version,
            "serverInfo": server_info(),
        }

    @app.get("/mcp/manifest", response_model=ManifestResponse)
    def mcp_manifest():
        """MCP tool manifest (same shape as tools/list), for clients that import it."""
        return {"tools": registry.list_all()}

    @app.get("/metrics")
    def metrics_endpoint():
        # No auth; deploy behind reverse proxy if needed
        return Response(content=metrics.render(), media_type="text/plain; version=0.0.4")

    @app.post("/mcp")
    async def mcp_entry(request: Request):
        """Single JSON-RPC endpoint (JSON or SSE framing by Accept)"""
        t0 = time.time()
        correlation_id = request.headers.get("x-correlation-id") or uuid.uuid4().hex
        headers = {"x-correlation-id": correlation_id}
        sse = _wants_sse(request.headers.get("accept", ""))

        payload: Any = None
        try:
            payload = await request.json()
        except ValueError:
            envelope: Optional[Dict[str, Any]] = jsonrpc_err(None, PARSE_ERROR, "Parse error")
        else:
            # handlers may block (network lookups); keep them off the event loop
            envelope = await run_in_threadpool(dispatcher.handle, payload, correlation_id=correlation_id)

        method = payload.get("method") if isinstance(payload, dict) else None
        status = "notification" if envelope is None else ("error" if "error" in envelope else "ok")
        metrics.observe(
            "mcp_http_request_duration_ms",
            (time.time() - t0) * 1000,
            endpoint=method if method in ("initialize", "tools/list", "tools/call") else "other",
            status=status,
        )

        if envelope is None:
            # Some clients warn on 204; return empty JSON 200 to be lenient
            return JSONResponse({}, headers=headers)
        if sse:
            async def stream():
                yield _sse_frame(envelope)
            return StreamingResponse(stream(), media_type="text/event-stream", headers=headers)
        return JSONResponse(envelope, headers=headers)

    return app


app = create_app()


# ---------------------------------------------------------------------
# STDIO MCP mode: read JSON-RPC requests from stdin, write responses to stdout
# ---------------------------------------------------------------------
def run_stdio(dispatcher: Dispatcher, stdin: TextIO, stdout: TextIO) -> None:
    for line in stdin:
        line = line.strip()
        if not line:
            continue
        try:
            payload = json.loads(line)
        except ValueError:
            envelope: Optional[Dict[str, Any]] = jsonrpc_err(None, PARSE_ERROR, "Parse error")
        else:
            envelope = dispatcher.handle(payload)
        if envelope is None:
            continue
        stdout.write(json.dumps(envelope, ensure_ascii=False) + "\n")
        stdout.flush()


if __name__ == "__main__":
    print("[MCP STDIO mode] Ready for JSON-RPC requests via stdin.", file=sys.stderr)
    run_stdio(app.state.dispatcher, sys.stdin, sys.stdout)

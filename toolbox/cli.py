#!/usr/bin/env python3
"""
Simple CLI to call the MCP endpoint and run the server.
Usage examples:
    python -m toolbox.cli serve
    python -m toolbox.cli init
    python -m toolbox.cli tools list
    python -m toolbox.cli tools call calculate_sha256 --args '{"input": "hello world"}'
    python -m toolbox.cli smoke
Environment:
  MCP_URL (default: http://localhost:${PORT or 3000}/mcp)
"""
import os
import sys
import json
import argparse
import itertools
from typing import Any, Dict, Optional

import httpx

from toolbox.config import cfg

_ids = itertools.count(1)


def _endpoint() -> str:
    url = os.getenv("MCP_URL")
    if url:
        return url.rstrip("/")
    return f"http://localhost:{cfg.port}/mcp"


def _client() -> httpx.Client:
    return httpx.Client(timeout=20)


def _print(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def rpc(client: httpx.Client, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body = {"jsonrpc": "2.0", "id": next(_ids), "method": method, "params": params or {}}
    r = client.post(
        _endpoint(),
        json=body,
        headers={"content-type": "application/json", "accept": "application/json"},
    )
    r.raise_for_status()
    return r.json()


def _result_or_exit(envelope: Dict[str, Any]) -> Dict[str, Any]:
    if "error" in envelope:
        err = envelope["error"]
        raise SystemExit(f"RPC error {err.get('code')}: {err.get('message')}")
    return envelope["result"]


def cmd_init(args: argparse.Namespace) -> None:
    params = {
        "protocolVersion": cfg.protocol_version,
        "capabilities": {"tools": {}},
        "clientInfo": {"name": "toolbox-cli", "version": cfg.server_version},
    }
    with _client() as c:
        _print(_result_or_exit(rpc(c, "initialize", params)))


def cmd_tools_list(args: argparse.Namespace) -> None:
    with _client() as c:
        result = _result_or_exit(rpc(c, "tools/list"))
    if args.names:
        for t in result.get("tools", []):
            print(t["name"])
        return
    _print(result)


def cmd_tools_call(args: argparse.Namespace) -> None:
    try:
        arguments = json.loads(args.args) if args.args else {}
    except ValueError as e:
        raise SystemExit(f"Invalid --args JSON: {e}")
    with _client() as c:
        result = _result_or_exit(rpc(c, "tools/call", {"name": args.name, "arguments": arguments}))
    if args.text:
        for block in result.get("content", []):
            if block.get("type") == "text":
                print(block.get("text", ""))
        return
    _print(result)


def cmd_smoke(args: argparse.Namespace) -> None:
    """initialize -> tools/list -> tools/call echo, failing loudly on any step."""
    print(f"Testing MCP server at {_endpoint()}")
    with _client() as c:
        init = _result_or_exit(rpc(c, "initialize", {"protocolVersion": cfg.protocol_version, "capabilities": {"tools": {}}}))
        print(f"ok  initialize: protocolVersion={init.get('protocolVersion')}")
        tools = _result_or_exit(rpc(c, "tools/list")).get("tools", [])
        names = [t.get("name") for t in tools]
        print(f"ok  tools/list: {len(names)} tools ({', '.join(names)})")
        if "echo" not in names:
            raise SystemExit("echo tool not found in available tools")
        echoed = _result_or_exit(rpc(c, "tools/call", {"name": "echo", "arguments": {"message": args.message}}))
        text = (echoed.get("content") or [{}])[0].get("text", "")
        if text != f"Tool echo: {args.message}":
            raise SystemExit(f"unexpected echo response: {text!r}")
        print(f"ok  tools/call echo: {text}")
    print("SMOKE OK")


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn
    uvicorn.run("toolbox.main:app", host=args.host, port=args.port, log_level=cfg.log_level.lower())


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="mcp-toolbox", description="MCP Toolbox CLI")
    sub = p.add_subparsers(dest="cmd")

    p_serve = sub.add_parser("serve", help="Run the HTTP server")
    p_serve.add_argument("--host", default=cfg.host)
    p_serve.add_argument("--port", type=int, default=cfg.port)
    p_serve.set_defaults(func=cmd_serve)

    p_init = sub.add_parser("init", help="Send initialize and print the result")
    p_init.set_defaults(func=cmd_init)

    g_tools = sub.add_parser("tools", help="List or call tools")
    sub_tools = g_tools.add_subparsers(dest="action")

    p_list = sub_tools.add_parser("list", help="tools/list")
    p_list.add_argument("--names", action="store_true", help="Print tool names only")
    p_list.set_defaults(func=cmd_tools_list)

    p_call = sub_tools.add_parser("call", help="tools/call")
    p_call.add_argument("name")
    p_call.add_argument("--args", required=False, help="Tool arguments as a JSON object")
    p_call.add_argument("--text", action="store_true", help="Print text content only")
    p_call.set_defaults(func=cmd_tools_call)

    p_smoke = sub.add_parser("smoke", help="initialize, list tools and call echo")
    p_smoke.add_argument("--message", default="Hello from test script!")
    p_smoke.set_defaults(func=cmd_smoke)

    args = p.parse_args(argv)
    if not getattr(args, "func", None):
        p.print_help()
        return 1
    try:
        args.func(args)
        return 0
    except httpx.HTTPStatusError as e:
        print(f"HTTP error: {e.response.status_code} {e.response.text}", file=sys.stderr)
        return 2
    except httpx.TransportError as e:
        print(f"Server not reachable at {_endpoint()}: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

"""
Simple smoke tests for the MCP server in-process.
Usage:
  LOG_LEVEL=DEBUG python smoke_test.py
"""
import os

os.environ.setdefault("LOG_LEVEL", "DEBUG")

from fastapi.testclient import TestClient

from toolbox.main import app

client = TestClient(app)


def must(cond: bool, msg: str = "assertion failed"):
    if not cond:
        raise SystemExit(f"SMOKE FAIL: {msg}")


def rpc(id_val, method, params=None):
    payload = {"jsonrpc": "2.0", "id": id_val, "method": method}
    if params is not None:
        payload["params"] = params
    r = client.post("/mcp", json=payload)
    must(r.status_code == 200, f"/mcp {method} expected 200, got {r.status_code}")
    return r.json()


def main():
    # 1) health
    r = client.get("/health")
    must(r.status_code == 200, f"/health expected 200, got {r.status_code}")
    must(r.json().get("status") == "ok", "health status not ok")

    # 2) manifest
    r = client.get("/mcp/manifest")
    must(r.status_code == 200, f"/mcp/manifest expected 200, got {r.status_code}")
    must(isinstance(r.json().get("tools"), list), "manifest tools missing")

    # 3) initialize
    j = rpc(1, "initialize", {"protocolVersion": "2024-11-05", "capabilities": {"tools": {}}})
    must(j.get("result", {}).get("protocolVersion"), "initialize missing protocolVersion")
    must("echo" in j["result"]["capabilities"]["tools"], "initialize missing echo capability")

    # 4) tools/list
    j = rpc(2, "tools/list", {})
    must(isinstance(j.get("result", {}).get("tools"), list), "tools/list returned no tools")

    # 5) tools/call echo
    j = rpc(3, "tools/call", {"name": "echo", "arguments": {"message": "hi"}})
    must(j["result"]["content"][0]["text"] == "Tool echo: hi", "echo text mismatch")

    # 6) tools/call invalid params → -32602
    j = rpc(4, "tools/call", {"name": "calculate_mortgage_payment", "arguments": {}})
    must(j.get("error", {}).get("code") == -32602, "tools/call invalid param code mismatch")

    # 7) unknown method → -32601
    j = rpc(5, "resources/list", {})
    must(j.get("error", {}).get("code") == -32601, "unknown method code mismatch")

    print("SMOKE OK")


if __name__ == "__main__":
    main()

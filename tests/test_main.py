import io
import json

import pytest

from toolbox.main import run_stdio


def _rpc(client, method, params=None, id_val=1, **kwargs):
    body = {"jsonrpc": "2.0", "id": id_val, "method": method}
    if params is not None:
        body["params"] = params
    return client.post("/mcp", json=body, **kwargs)


@pytest.mark.unit
def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "ok"
    assert j["tools"] == 6


@pytest.mark.unit
def test_manifest_matches_tools_list(client):
    manifest = client.get("/mcp/manifest").json()
    listed = _rpc(client, "tools/list", {}).json()["result"]
    assert manifest == listed


@pytest.mark.unit
def test_capabilities_and_probe(client):
    caps = client.get("/mcp/capabilities").json()
    assert "get_population_data" in caps["capabilities"]["tools"]
    probe = client.get("/mcp").json()
    assert probe["protocolVersion"] == caps["protocolVersion"]


@pytest.mark.unit
def test_initialize_over_http(client):
    r = _rpc(client, "initialize", {"protocolVersion": "2024-11-05", "capabilities": {"tools": {}}})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/json")
    assert r.headers["x-correlation-id"]
    assert r.json()["result"]["capabilities"]["tools"]["echo"]["description"] == "Echo a message"


@pytest.mark.unit
def test_correlation_id_is_echoed(client):
    r = _rpc(client, "tools/list", {}, headers={"x-correlation-id": "corr-123"})
    assert r.headers["x-correlation-id"] == "corr-123"


@pytest.mark.unit
def test_tools_call_over_http(client):
    r = _rpc(client, "tools/call", {"name": "calculate_sha256", "arguments": {"input": "hello world"}})
    j = r.json()
    assert j["id"] == 1
    assert j["result"]["hash"] == "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"


@pytest.mark.unit
def test_parse_error(client):
    r = client.post("/mcp", content=b"{not json", headers={"content-type": "application/json"})
    assert r.status_code == 200
    assert r.json() == {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}


@pytest.mark.unit
def test_batch_rejected(client):
    r = client.post("/mcp", json=[{"jsonrpc": "2.0", "id": 1, "method": "initialize"}])
    assert r.json()["error"]["code"] == -32600


@pytest.mark.unit
def test_notification_gets_empty_body(client):
    r = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert r.status_code == 200
    assert r.json() == {}


@pytest.mark.unit
def test_unknown_method_over_http(client):
    assert _rpc(client, "prompts/list").json()["error"]["code"] == -32601


@pytest.mark.unit
def test_sse_framing_when_only_event_stream_accepted(client):
    r = _rpc(
        client,
        "tools/call",
        {"name": "echo", "arguments": {"message": "streamed"}},
        headers={"accept": "text/event-stream"},
    )
    assert r.headers["content-type"].startswith("text/event-stream")
    lines = [ln for ln in r.text.splitlines() if ln]
    assert lines[0] == "event: message"
    assert lines[1].startswith("data: ")
    env = json.loads(lines[1][len("data: "):])
    assert env["result"]["content"][0]["text"] == "Tool echo: streamed"


@pytest.mark.unit
def test_json_preferred_when_both_accepted(client):
    r = _rpc(client, "tools/list", {}, headers={"accept": "application/json, text/event-stream"})
    assert r.headers["content-type"].startswith("application/json")


@pytest.mark.unit
def test_metrics_exposition(client):
    _rpc(client, "tools/call", {"name": "echo", "arguments": {"message": "m"}})
    _rpc(client, "nope")
    text = client.get("/metrics").text
    assert "# TYPE mcp_requests_total counter" in text
    assert 'mcp_requests_total{method="tools/call",status="ok"} 1' in text
    assert 'mcp_tool_call_duration_ms_bucket{le="+Inf",outcome="ok",tool="echo"} 1' in text
    assert "mcp_http_request_duration_ms_count" in text


@pytest.mark.unit
def test_stdio_mode(dispatcher):
    stdin = io.StringIO(
        "\n".join([
            json.dumps({"jsonrpc": "2.0", "id": 1, "method": "initialize"}),
            "",
            "garbage",
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
            json.dumps({"jsonrpc": "2.0", "id": 2, "method": "tools/call",
                        "params": {"name": "count_character", "arguments": {"text": "Hello World", "letter": "l"}}}),
        ]) + "\n"
    )
    stdout = io.StringIO()
    run_stdio(dispatcher, stdin, stdout)
    out = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert len(out) == 3
    assert out[0]["result"]["protocolVersion"] == "2024-11-05"
    assert out[1]["error"]["code"] == -32700
    assert out[2]["result"]["positions"] == [2, 3, 9]


@pytest.mark.unit
def test_overflowing_mortgage_still_gets_an_envelope(client):
    r = _rpc(client, "tools/call", {
        "name": "calculate_mortgage_payment",
        "arguments": {"loanAmount": 1e308, "annualInterestRate": 6.5, "loanTermYears": 30},
    }, id_val=5)
    assert r.status_code == 200
    j = r.json()
    assert j["id"] == 5
    assert j["result"]["success"] is False
    assert "overflow" in j["result"]["content"][0]["text"]


@pytest.mark.unit
def test_stdio_writes_strict_json_for_overflowing_result(dispatcher):
    req = {
        "jsonrpc": "2.0", "id": 1, "method": "tools/call",
        "params": {"name": "calculate_mortgage_payment",
                   "arguments": {"loanAmount": 1e308, "annualInterestRate": 6.5, "loanTermYears": 30}},
    }
    out = io.StringIO()
    run_stdio(dispatcher, io.StringIO(json.dumps(req) + "\n"), out)
    line = out.getvalue().strip()
    assert "Infinity" not in line
    assert json.loads(line)["result"]["success"] is False

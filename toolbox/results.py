# results.py
# - ToolResult: uniform handler return value (text + structured payload + success)
# - coerce(): wraps raw str/dict handler output the way tools/call always has
# - normalize(): ToolResult -> MCP tools/call result (content blocks + flat fields)

from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Dict

RESERVED_KEYS = ("content", "success", "isError")


@dataclass
class ToolResult:
    text: str
    payload: Dict[str, Any] = field(default_factory=dict)
    success: bool = True

    @classmethod
    def ok(cls, summary: str, **payload: Any) -> "ToolResult":
        return cls(text=summary, payload=payload, success=True)

    @classmethod
    def fail(cls, summary: str, **payload: Any) -> "ToolResult":
        return cls(text=summary, payload=payload, success=False)


def coerce(raw: Any) -> ToolResult:
    """Turn whatever a handler returned into a ToolResult."""
    if isinstance(raw, ToolResult):
        return raw
    if isinstance(raw, str):
        return ToolResult(text=raw)
    if isinstance(raw, dict):
        success = raw.get("success", True) is not False
        return ToolResult(text=json.dumps(raw, ensure_ascii=False, default=str), payload=dict(raw), success=success)
    raise TypeError(f"handler returned unsupported result type {type(raw).__name__}")


def _default_text(success: bool) -> str:
    return "Tool completed successfully." if success else "Tool failed without a message."


def normalize(result: ToolResult) -> Dict[str, Any]:
    text = result.text if isinstance(result.text, str) else str(result.text)
    if not text.strip():
        text = _default_text(result.success)
    out: Dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    payload = result.payload if isinstance(result.payload, dict) else {}
    for key, value in payload.items():
        if key in RESERVED_KEYS:
            continue
        out[key] = value
    out["success"] = bool(result.success)
    out["isError"] = not result.success
    return out

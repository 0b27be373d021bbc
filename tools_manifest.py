# tools_manifest.py
# Write the MCP tool manifest (tools/list shape) to .mcp.json

import json
import sys

from toolbox.tools import build_registry


def write_manifest(path: str = ".mcp.json") -> dict:
    manifest = {"tools": build_registry().list_all()}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(manifest, f, ensure_ascii=False, indent=2)
    return manifest


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else ".mcp.json"
    write_manifest(path)
    print(f"{path} manifest generated.")


if __name__ == "__main__":
    main()

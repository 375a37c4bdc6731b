#!/usr/bin/env python3
"""Connect to the configured tool providers and print the active tool set."""

import asyncio
import argparse
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.models.message import ChatMessage
from app.services.chat_engine import assemble_tools
from app.services.tool_registry import get_registry
from app.adapters.vendor_adapter_gemini import build_gemini_tools


async def main():
    parser = argparse.ArgumentParser(description="List the tools exposed to the model")
    parser.add_argument("--message", default="", help="Latest user message, used for intent routing")
    parser.add_argument("--intent-routing", action="store_true", help="Filter tool groups by intent")
    parser.add_argument("--declarations", action="store_true", help="Print Gemini function declarations")
    args = parser.parse_args()

    messages = [ChatMessage(role="user", content=args.message)] if args.message else []
    registry = get_registry()
    try:
        tools = await assemble_tools(messages, registry=registry, intent_routing=args.intent_routing)
        print(f"Providers: {registry.state()}")
        if args.declarations:
            print(json.dumps(build_gemini_tools(tools), indent=2))
        else:
            for name, tool in sorted(tools.items()):
                alias_of = f" -> {tool.name}" if tool.name != name else ""
                print(f"{name}{alias_of}  [{tool.provider}]")
    finally:
        await registry.close()


if __name__ == "__main__":
    asyncio.run(main())

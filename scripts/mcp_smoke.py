# scripts/mcp_smoke.py
"""List the MCP tools exposed by a running salon desk and ping it."""
import asyncio
import os

from mcp.client.session import ClientSession
from mcp.client.streamable_http import streamablehttp_client


async def main():
    url = os.getenv("SALON_MCP_URL", "http://127.0.0.1:8000/mcp")

    async with streamablehttp_client(url) as (r, w, _):
        async with ClientSession(r, w) as s:
            await s.initialize()
            tools = await s.list_tools()
            print("TOOLS:", [t.name for t in tools.tools])
            result = await s.call_tool("ping", {"message": "salon"})
            print("PING:", [getattr(block, "text", block) for block in result.content])

if __name__ == "__main__":
    asyncio.run(main())

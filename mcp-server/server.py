#!/usr/bin/env python3
"""MCP Server for the LTC Planner.

This server exposes LTC insurance projections as MCP tools, allowing AI
assistants to answer questions about a client's long-term care plan.
"""

import os
import sys
import json
import asyncio
from typing import Any

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from tools import MultiClientTools


# Create the MCP server
server = Server("ltc-planner")

# Global tools instance (initialized on startup)
tools: MultiClientTools | None = None


def get_tools() -> MultiClientTools:
    """Get or initialize the tools instance."""
    global tools
    if tools is None:
        # Default client can be set via LTC_PLANNER_CLIENT env var
        default_client = os.environ.get('LTC_PLANNER_CLIENT')
        base_path = os.path.join(os.path.dirname(__file__), '..')
        tools = MultiClientTools(base_path, default_client)
    return tools


# Common parameter schemas
CLIENT_PARAM = {
    "type": "string",
    "description": "The client name (folder in input-parameters). If not specified, uses the default client. Use list_clients to see available clients."
}

PERSON_PARAM = {
    "type": "integer",
    "description": "Person number in the household (1 or 2). Defaults to 1."
}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available LTC planning tools."""
    return [
        Tool(
            name="list_clients",
            description="List all available client plans with their persons and household bankruptcy age.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="reload_clients",
            description="Reload all client plans from disk. Use this after adding or modifying spec.json or illustration files.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="get_client_overview",
            description="Get an overview of the client: persons, ages, LTC event, policy settings, bankruptcy ages and legacy. Use this first to understand the plan.",
            inputSchema={
                "type": "object",
                "properties": {
                    "client": CLIENT_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_year_snapshot",
            description="Get every projected value (income, expenses, LTC, withdrawals, policy values, balances) for one person at a specific age.",
            inputSchema={
                "type": "object",
                "properties": {
                    "age": {
                        "type": "integer",
                        "description": "The person's age"
                    },
                    "person": PERSON_PARAM,
                    "client": CLIENT_PARAM
                },
                "required": ["age"]
            }
        ),
        Tool(
            name="get_ltc_summary",
            description="Get long-term care costs, policy benefits, out-of-pocket costs and coverage ratio for the LTC event years.",
            inputSchema={
                "type": "object",
                "properties": {
                    "person": {
                        "type": "integer",
                        "description": "Optional: person number. If omitted, returns every enabled person."
                    },
                    "client": CLIENT_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_policy_values",
            description="Get policy premiums, cash value, death benefit and loan balances for a specific age or every age.",
            inputSchema={
                "type": "object",
                "properties": {
                    "age": {
                        "type": "integer",
                        "description": "Optional: specific age. If omitted, returns all ages."
                    },
                    "person": PERSON_PARAM,
                    "client": CLIENT_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_household_projection",
            description="Get the combined household projection (both persons summed per year) with the household bankruptcy age.",
            inputSchema={
                "type": "object",
                "properties": {
                    "start_age": {
                        "type": "integer",
                        "description": "Optional: first primary-person age to include"
                    },
                    "end_age": {
                        "type": "integer",
                        "description": "Optional: last primary-person age to include"
                    },
                    "client": CLIENT_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_legacy_comparison",
            description="Compare the household legacy with and without insurance, asset depletion ages, withdrawal rate assessment and LTC coverage ratio.",
            inputSchema={
                "type": "object",
                "properties": {
                    "client": CLIENT_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_tax_efficiency",
            description="Get withdrawal taxes by life phase with and without insurance, highest-tax years and potential savings from tax strategies.",
            inputSchema={
                "type": "object",
                "properties": {
                    "client": CLIENT_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="search_projection_data",
            description="Search for projection values by keyword, e.g. 'LTC benefits at 80' or 'policy loan'.",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Keywords such as 'income', 'LTC', 'premium', 'withdrawal', 'cash value', 'loan', 'net worth'"
                    },
                    "age": {
                        "type": "integer",
                        "description": "Optional: specific age to search in"
                    },
                    "person": PERSON_PARAM,
                    "client": CLIENT_PARAM
                },
                "required": ["query"]
            }
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        ltc_tools = get_tools()
        client = arguments.get("client")
        person = arguments.get("person") or 1

        if name == "list_clients":
            result = ltc_tools.list_clients()
        elif name == "reload_clients":
            result = ltc_tools.reload_clients()
        elif name == "get_client_overview":
            result = ltc_tools.get_client_overview(client)
        elif name == "get_year_snapshot":
            result = ltc_tools.get_year_snapshot(arguments["age"], person, client)
        elif name == "get_ltc_summary":
            result = ltc_tools.get_ltc_summary(arguments.get("person"), client)
        elif name == "get_policy_values":
            result = ltc_tools.get_policy_values(arguments.get("age"), person, client)
        elif name == "get_household_projection":
            result = ltc_tools.get_household_projection(
                arguments.get("start_age"),
                arguments.get("end_age"),
                client
            )
        elif name == "get_legacy_comparison":
            result = ltc_tools.get_legacy_comparison(client)
        elif name == "get_tax_efficiency":
            result = ltc_tools.get_tax_efficiency(client)
        elif name == "search_projection_data":
            result = ltc_tools.search_projection_data(
                arguments["query"],
                arguments.get("age"),
                person,
                client
            )
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(
            type="text",
            text=json.dumps(result, indent=2, default=str)
        )]
    except Exception as e:
        return [TextContent(
            type="text",
            text=json.dumps({"error": str(e)}, indent=2)
        )]


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())

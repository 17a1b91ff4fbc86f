"""Tests for the MCP server module."""

import os
import sys
import json
import pytest
from unittest.mock import patch, MagicMock

# Add src and mcp-server to path for imports BEFORE importing mcp modules
MCP_SERVER_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../mcp-server'))
SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src'))

if MCP_SERVER_PATH not in sys.path:
    sys.path.insert(0, MCP_SERVER_PATH)
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from mcp.types import Tool, TextContent

# Import server module - need to import from the mcp-server directory
import importlib.util
server_spec = importlib.util.spec_from_file_location("mcp_server", os.path.join(MCP_SERVER_PATH, "server.py"))
mcp_server = importlib.util.module_from_spec(server_spec)
server_spec.loader.exec_module(mcp_server)


EXPECTED_TOOLS = {
    'list_clients',
    'reload_clients',
    'get_client_overview',
    'get_year_snapshot',
    'get_ltc_summary',
    'get_policy_values',
    'get_household_projection',
    'get_legacy_comparison',
    'get_tax_efficiency',
    'search_projection_data',
}


def payload(result):
    assert len(result) == 1
    assert isinstance(result[0], TextContent)
    return json.loads(result[0].text)


class TestServerConfiguration:
    """Tests for server configuration and setup."""

    def test_server_name(self):
        assert mcp_server.server.name == "ltc-planner"

    def test_client_param_schema(self):
        assert mcp_server.CLIENT_PARAM['type'] == 'string'
        assert 'description' in mcp_server.CLIENT_PARAM

    def test_person_param_schema(self):
        assert mcp_server.PERSON_PARAM['type'] == 'integer'


class TestGetTools:
    """Tests for get_tools function."""

    def setup_method(self):
        mcp_server.tools = None

    def teardown_method(self):
        mcp_server.tools = None

    def test_get_tools_initializes_on_first_call(self):
        tools = mcp_server.get_tools()

        assert tools is not None
        # Check by class name since we're using dynamic imports
        assert tools.__class__.__name__ == 'MultiClientTools'
        assert 'sample' in tools.clients

    def test_get_tools_returns_cached_instance(self):
        assert mcp_server.get_tools() is mcp_server.get_tools()

    @patch.dict(os.environ, {'LTC_PLANNER_CLIENT': 'sample'})
    def test_get_tools_uses_env_default_client(self):
        tools = mcp_server.get_tools()
        assert tools.default_client == 'sample'


class TestListTools:
    """Tests for list_tools function."""

    @pytest.mark.asyncio
    async def test_list_tools_returns_tools(self):
        tools = await mcp_server.list_tools()

        assert all(isinstance(t, Tool) for t in tools)
        assert {t.name for t in tools} == EXPECTED_TOOLS

    @pytest.mark.asyncio
    async def test_tools_have_descriptions_and_schemas(self):
        for tool in await mcp_server.list_tools():
            assert tool.description
            assert tool.inputSchema['type'] == 'object'
            assert 'properties' in tool.inputSchema

    @pytest.mark.asyncio
    async def test_required_arguments(self):
        tools = {t.name: t for t in await mcp_server.list_tools()}

        assert tools['get_year_snapshot'].inputSchema['required'] == ['age']
        assert tools['search_projection_data'].inputSchema['required'] == ['query']
        assert tools['get_policy_values'].inputSchema['required'] == []

    @pytest.mark.asyncio
    async def test_client_param_on_client_tools(self):
        for tool in await mcp_server.list_tools():
            if tool.name in ('list_clients', 'reload_clients'):
                continue
            assert tool.inputSchema['properties']['client'] == mcp_server.CLIENT_PARAM


class TestCallTool:
    """Tests for call_tool against the bundled sample client."""

    def setup_method(self):
        mcp_server.tools = None

    def teardown_method(self):
        mcp_server.tools = None

    @pytest.mark.asyncio
    async def test_call_list_clients(self):
        result = payload(await mcp_server.call_tool('list_clients', {}))

        assert 'sample' in result['available_clients']
        assert result['clients_info']['sample']['persons'] == ['Alex', 'Jordan']

    @pytest.mark.asyncio
    async def test_call_get_client_overview(self):
        result = payload(await mcp_server.call_tool('get_client_overview', {'client': 'sample'}))

        assert result['client_name'] == 'Sample Household'
        assert result['client'] == 'sample'

    @pytest.mark.asyncio
    async def test_call_get_year_snapshot_defaults_to_person_one(self):
        result = payload(await mcp_server.call_tool('get_year_snapshot', {'age': 80, 'client': 'sample'}))

        assert result['name'] == 'Alex'
        assert result['has_ltc_event'] is True

    @pytest.mark.asyncio
    async def test_call_get_year_snapshot_person_two(self):
        result = payload(await mcp_server.call_tool(
            'get_year_snapshot', {'age': 70, 'person': 2, 'client': 'sample'}))
        assert result['name'] == 'Jordan'

    @pytest.mark.asyncio
    async def test_call_get_ltc_summary(self):
        result = payload(await mcp_server.call_tool('get_ltc_summary', {'client': 'sample'}))
        assert result['ltc_summaries'][0]['ltc_ages'] == [80, 81, 82, 83]

    @pytest.mark.asyncio
    async def test_call_get_policy_values(self):
        result = payload(await mcp_server.call_tool('get_policy_values', {'age': 56, 'client': 'sample'}))
        assert result['policy_year'] == 2

    @pytest.mark.asyncio
    async def test_call_get_household_projection(self):
        result = payload(await mcp_server.call_tool(
            'get_household_projection', {'start_age': 60, 'end_age': 61, 'client': 'sample'}))
        assert [y['person1_age'] for y in result['years']] == [60, 61]

    @pytest.mark.asyncio
    async def test_call_get_legacy_comparison(self):
        result = payload(await mcp_server.call_tool('get_legacy_comparison', {'client': 'sample'}))
        assert 'legacy_with_insurance' in result

    @pytest.mark.asyncio
    async def test_call_get_tax_efficiency(self):
        result = payload(await mcp_server.call_tool('get_tax_efficiency', {'client': 'sample'}))
        assert 'tax_by_phase' in result

    @pytest.mark.asyncio
    async def test_call_search_projection_data(self):
        result = payload(await mcp_server.call_tool(
            'search_projection_data', {'query': 'cash value', 'age': 65, 'client': 'sample'}))
        assert set(result['results']) == {'policy_cash_value', 'illustrated_cash_value'}

    @pytest.mark.asyncio
    async def test_call_reload_clients(self):
        result = payload(await mcp_server.call_tool('reload_clients', {}))
        assert result['status'] == 'success'

    @pytest.mark.asyncio
    async def test_call_unknown_tool(self):
        result = payload(await mcp_server.call_tool('get_weather', {}))
        assert result == {'error': 'Unknown tool: get_weather'}

    @pytest.mark.asyncio
    async def test_call_unknown_client_returns_error(self):
        result = payload(await mcp_server.call_tool('get_legacy_comparison', {'client': 'nobody'}))
        assert "Client 'nobody' not found" in result['error']

    @pytest.mark.asyncio
    async def test_call_missing_required_argument_returns_error(self):
        result = payload(await mcp_server.call_tool('get_year_snapshot', {'client': 'sample'}))
        assert 'error' in result

    @pytest.mark.asyncio
    async def test_call_tool_exception_is_reported(self):
        failing = MagicMock()
        failing.get_tax_efficiency.side_effect = RuntimeError("boom")
        mcp_server.tools = failing

        result = payload(await mcp_server.call_tool('get_tax_efficiency', {}))
        assert result == {'error': 'boom'}

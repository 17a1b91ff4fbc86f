"""Tests for the interactive shell functionality."""

import pytest
import sys
import os
import shutil
import tempfile
from io import StringIO
from unittest.mock import patch

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from shell import ClientPlanShell, format_value, get_snapshot_fields, load_plan, parse_fields_and_range
from render.renderers import RENDERER_REGISTRY
from model.field_metadata import FIELD_METADATA, find_field, get_description, get_short_name, wrap_header


# Path to test fixtures
FIXTURES_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), 'mcp_server_tests', 'fixtures'))

# Path to the project root (for reference files)
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture(scope="module")
def test_base_path():
    """Create a temporary directory structure for testing.

    This creates a temp directory with the required structure:
    - input-parameters/testclient/spec.json (from fixtures)
    - reference/*.json (symlinked from project)
    """
    temp_dir = tempfile.mkdtemp()

    input_params_dir = os.path.join(temp_dir, 'input-parameters')
    os.makedirs(input_params_dir)
    shutil.copytree(
        os.path.join(FIXTURES_PATH, 'testclient'),
        os.path.join(input_params_dir, 'testclient')
    )

    os.symlink(
        os.path.join(PROJECT_ROOT, 'reference'),
        os.path.join(temp_dir, 'reference')
    )

    yield temp_dir

    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(scope="module")
def loaded_plan(test_base_path):
    return load_plan('testclient', test_base_path)


@pytest.fixture
def shell(loaded_plan, test_base_path):
    """Shell with the test client loaded."""
    return ClientPlanShell(loaded_plan, 'testclient', test_base_path)


@pytest.fixture
def empty_shell(test_base_path):
    """Shell without a loaded plan."""
    return ClientPlanShell(base_path=test_base_path)


def run(shell, command: str, arg: str = '') -> str:
    """Run a do_* command and return what it printed."""
    with patch('sys.stdout', new_callable=StringIO) as output:
        getattr(shell, f'do_{command}')(arg)
    return output.getvalue()


def data_rows(result: str) -> list:
    return [line.split() for line in result.split('\n') if line.strip()[:1].isdigit()]


class TestParseFieldsAndRange:

    def test_fields_only(self):
        assert parse_fields_and_range('retirement_assets') == (['retirement_assets'], None)

    def test_comma_separated_with_range(self):
        assert parse_fields_and_range('ltc_expenses, ltc_benefits 75-80') == (
            ['ltc_expenses', 'ltc_benefits'], (75, 80))

    def test_single_age(self):
        assert parse_fields_and_range('withdrawal 70') == (['withdrawal'], (70, 70))

    def test_open_ended_ranges(self):
        assert parse_fields_and_range('withdrawal 70-')[1] == (70, None)
        assert parse_fields_and_range('withdrawal -80')[1] == (None, 80)

    def test_hyphen_in_non_range(self):
        assert parse_fields_and_range('a-b') == (['a-b'], None)


class TestFormatValue:

    def test_formats(self):
        assert format_value(True) == 'Yes'
        assert format_value(False) == 'No'
        assert format_value(1234.5) == '$1,234.50'
        assert format_value(7) == '7'


class TestGetCommand:

    def test_without_plan(self, empty_shell):
        assert 'No plan loaded' in run(empty_shell, 'get', 'withdrawal')

    def test_range(self, shell):
        rows = data_rows(run(shell, 'get', 'ltc_expenses, ltc_benefits 80-82'))
        assert [r[0] for r in rows] == ['80', '81', '82']

    def test_total_row(self, shell):
        result = run(shell, 'get', 'withdrawal, retirement_assets 80-82')
        total = [line for line in result.split('\n') if line.strip().startswith('Total')][0]
        assert '$' in total.split()[1]
        assert total.split()[2] == '-'

    def test_boolean_field_not_totalled(self, shell):
        result = run(shell, 'get', 'has_ltc_event 79-81')
        total = [line for line in result.split('\n') if line.strip().startswith('Total')][0]
        assert total.split()[1] == '-'

    def test_single_age_has_no_total(self, shell):
        result = run(shell, 'get', 'withdrawal 70')
        assert 'Total' not in result

    def test_unknown_field(self, shell):
        result = run(shell, 'get', 'salary')
        assert 'Unknown field(s): salary' in result

    def test_no_arguments(self, shell):
        assert 'Please specify at least one field' in run(shell, 'get')

    def test_reversed_range(self, shell):
        assert 'cannot be greater than' in run(shell, 'get', 'withdrawal 80-70')

    def test_range_beyond_projection_warns(self, shell):
        result = run(shell, 'get', 'withdrawal 85-99')
        assert 'extends beyond projection' in result
        assert [r[0] for r in data_rows(result)] == ['85', '86', '87', '88', '89', '90']


class TestPersonCommand:

    def test_show_active(self, shell):
        assert 'Active person: 1 (Taylor)' in run(shell, 'person')

    def test_switch_person(self, shell):
        assert 'Active person: 2 (Morgan)' in run(shell, 'person', '2')
        rows = data_rows(run(shell, 'get', 'total_assets'))
        assert rows[0][0] == '58'
        assert rows[-1][0] == '88'

    def test_invalid_person(self, shell):
        assert 'Person 3 is not part of this plan' in run(shell, 'person', '3')
        assert shell.person_index == 0

    def test_non_numeric_person(self, shell):
        assert 'Person must be 1 or 2' in run(shell, 'person', 'two')


class TestInfoCommands:

    def test_ages(self, shell):
        result = run(shell, 'ages')
        assert 'Person 1: Taylor (active)' in result
        assert 'LTC event: 80 - 82 (3 years)' in result
        assert 'Person 2: Morgan' in result
        assert 'LTC event: None' in result

    def test_summary(self, shell):
        result = run(shell, 'summary')
        assert 'Lifetime Summary for Taylor' in result
        assert 'Total LTC Benefits:' in result
        assert 'Legacy:' in result

    def test_compare(self, shell):
        result = run(shell, 'compare', 'premium_expenses 61-62')
        assert 'Premium (policy)' in result
        assert 'Premium (none)' in result
        rows = data_rows(result)
        assert [r[0] for r in rows] == ['61', '62']
        assert rows[0][-1] == '$0.00'


class TestFieldsCommand:

    def test_all_snapshot_fields_are_listed(self, shell):
        result = run(shell, 'fields')
        for name in get_snapshot_fields():
            assert name in result

    def test_ltc_fields_in_ltc_category(self, shell):
        result = run(shell, 'fields')
        assert result.find('LTC:') < result.find('cumulative_ltc_benefits')

    def test_specific_field(self, shell):
        result = run(shell, 'fields', 'net_worth_no_policy')
        assert 'Short name: Net Worth (No Policy)' in result

    def test_unknown_field(self, shell):
        assert "Unknown field 'salary'" in run(shell, 'fields', 'salary')


class TestFieldMetadata:

    def test_all_snapshot_fields_have_metadata(self):
        for name in get_snapshot_fields():
            assert name in FIELD_METADATA, f"{name} missing metadata"

    def test_short_names_are_unique(self):
        short_names = [info.short_name for info in FIELD_METADATA.values()]
        assert len(short_names) == len(set(short_names))

    def test_lookup_helpers(self):
        assert get_short_name('ltc_expenses') == 'LTC Cost'
        assert get_short_name('unknown_field') == 'unknown_field'
        assert get_description('unknown_field') == ''
        assert 'Retirement savings' in get_description('retirement_assets')

    def test_find_field(self):
        assert find_field('withdrawal') == 'withdrawal'
        assert find_field('ltc cost') == 'ltc_expenses'
        assert find_field('WORK_INCOME') == 'work_income'
        assert find_field('nothing') is None

    def test_wrap_header(self):
        assert wrap_header('Premium', 12) == ['Premium']
        assert wrap_header('Net Worth (No Policy)', 12) == ['Net Worth', '(No Policy)']


class TestRenderCommand:

    def test_without_plan(self, empty_shell):
        assert 'No plan loaded' in run(empty_shell, 'render')

    def test_lists_modes(self, shell):
        result = run(shell, 'render')
        for mode in RENDERER_REGISTRY:
            assert mode in result

    def test_invalid_mode(self, shell):
        result = run(shell, 'render', 'InvalidMode')
        assert "Unknown render mode 'InvalidMode'" in result

    def test_render_with_range(self, shell):
        result = run(shell, 'render', 'LTC 80-81')
        assert 'LONG-TERM CARE: TAYLOR' in result
        assert [r[0] for r in data_rows(result)] == ['80', '81']

    def test_render_uses_active_person(self, shell):
        run(shell, 'person', '2')
        assert 'PROJECTION: MORGAN' in run(shell, 'render', 'Projection 60-61')

    def test_invalid_range(self, shell):
        assert "Invalid age range 'abc'" in run(shell, 'render', 'Projection abc')


class TestLoadCommand:

    def test_load_client(self, empty_shell):
        result = run(empty_shell, 'load', 'testclient')
        assert 'Plan loaded successfully!' in result
        assert 'Taylor: ages 60 - 90' in result
        assert empty_shell.plan is not None
        assert empty_shell.client_name == 'testclient'

    def test_load_missing_client(self, empty_shell):
        result = run(empty_shell, 'load', 'nobody')
        assert 'Spec file not found' in result
        assert empty_shell.plan is None

    def test_load_lists_clients(self, empty_shell):
        result = run(empty_shell, 'load')
        assert 'Available clients:' in result
        assert '- testclient' in result


class TestTabCompletion:

    def test_complete_get(self, shell):
        assert 'ltc_benefits' in shell.complete_get('ltc', 'get ltc', 4, 7)
        assert shell.complete_get('', 'get ', 4, 4) == get_snapshot_fields()

    def test_complete_get_case_insensitive(self, shell):
        assert 'death_benefit' in shell.complete_get('DEATH', 'get DEATH', 4, 9)

    def test_complete_render(self, shell):
        assert shell.complete_render('cash', 'render cash', 7, 11) == ['CashFlow']

    def test_complete_load(self, shell):
        assert shell.complete_load('test', 'load test', 5, 9) == ['testclient']

    def test_complete_help(self, shell):
        assert shell.complete_help('p', 'help p', 5, 6) == ['person']


class TestExit:

    def test_exit_and_quit(self, shell):
        with patch('sys.stdout', new_callable=StringIO):
            assert shell.do_exit('') is True
            assert shell.do_quit('') is True
            assert shell.do_EOF('') is True

    def test_unknown_command(self, shell):
        with patch('sys.stdout', new_callable=StringIO) as output:
            shell.default('frobnicate')
        assert 'Unknown command: frobnicate' in output.getvalue()

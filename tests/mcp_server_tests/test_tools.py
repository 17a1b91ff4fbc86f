"""Tests for the MCP server tools module."""

import os
import sys
import json
import shutil
import tempfile
import pytest

# Add src and mcp-server to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../mcp-server')))

from tools import LTCPlannerTools, MultiClientTools


# Path to test fixtures
FIXTURES_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), 'fixtures'))

# Path to the project root (for reference files)
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '../..'))


def _make_base(temp_dir, client_names):
    input_params_dir = os.path.join(temp_dir, 'input-parameters')
    os.makedirs(input_params_dir)
    for name in client_names:
        shutil.copytree(
            os.path.join(FIXTURES_PATH, 'testclient'),
            os.path.join(input_params_dir, name)
        )
    os.symlink(
        os.path.join(PROJECT_ROOT, 'reference'),
        os.path.join(temp_dir, 'reference')
    )


@pytest.fixture(scope="module")
def test_base_path():
    """Create a temporary directory structure for testing.

    - input-parameters/testclient/spec.json (from fixtures)
    - reference/*.json (symlinked from project)
    """
    temp_dir = tempfile.mkdtemp()
    _make_base(temp_dir, ['testclient'])
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def multi_base_path():
    """Two copies of the fixture client plus one broken client."""
    temp_dir = tempfile.mkdtemp()
    _make_base(temp_dir, ['clienta', 'clientb'])
    broken = os.path.join(temp_dir, 'input-parameters', 'broken')
    os.makedirs(broken)
    with open(os.path.join(broken, 'spec.json'), 'w') as f:
        json.dump({'persons': []}, f)
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


class TestLTCPlannerTools:
    """Tests for LTCPlannerTools class."""

    @pytest.fixture
    def tools(self, test_base_path):
        return LTCPlannerTools(test_base_path, 'testclient')

    def test_client_overview(self, tools):
        overview = tools.get_client_overview()

        assert overview['client_name'] == 'Test Client'
        assert overview['use_actual_policy_data'] is True
        assert [p['name'] for p in overview['persons']] == ['Taylor', 'Morgan']

        taylor, morgan = overview['persons']
        assert taylor['ltc_event'] == {'enabled': True, 'start_age': 80, 'duration': 3, 'annual_cost': 90000}
        assert taylor['policy']['illustrated'] is True
        assert morgan['ltc_event'] is None
        assert morgan['policy'] is None
        assert set(overview['legacy']) >= {'legacy_with_insurance', 'legacy_without_insurance'}

    def test_year_snapshot(self, tools):
        snapshot = tools.get_year_snapshot(65, person=1)

        assert snapshot['person'] == 1
        assert snapshot['name'] == 'Taylor'
        assert snapshot['age'] == 65
        assert snapshot['is_retired'] is True
        assert snapshot['work_income'] == 0

    def test_year_snapshot_second_person(self, tools):
        snapshot = tools.get_year_snapshot(60, person=2)

        assert snapshot['name'] == 'Morgan'
        assert snapshot['premium_expenses'] == 0

    def test_year_snapshot_out_of_range(self, tools):
        result = tools.get_year_snapshot(40)
        assert 'error' in result
        assert '60-90' in result['error']

    def test_year_snapshot_unknown_person_raises(self, tools):
        with pytest.raises(ValueError, match="Person 3"):
            tools.get_year_snapshot(65, person=3)

    def test_ltc_summary_all_persons(self, tools):
        result = tools.get_ltc_summary()
        summaries = result['ltc_summaries']

        assert [s['name'] for s in summaries] == ['Taylor', 'Morgan']
        taylor = summaries[0]
        assert taylor['ltc_ages'] == [80, 81, 82]
        assert len(taylor['years']) == 3
        assert taylor['total_ltc_benefits'] > 0
        assert 0 < taylor['coverage_ratio'] <= 1
        assert summaries[1]['ltc_ages'] == []

    def test_ltc_summary_one_person(self, tools):
        result = tools.get_ltc_summary(person=1)
        assert len(result['ltc_summaries']) == 1

    def test_ltc_benefit_capped_by_monthly_limit(self, tools):
        """Illustrated benefit never exceeds twelve times the monthly limit."""
        for year in tools.get_ltc_summary(person=1)['ltc_summaries'][0]['years']:
            assert year['ltc_benefits'] <= 120000
            assert year['ltc_benefits'] <= year['ltc_expenses']

    def test_policy_values_single_age(self, tools):
        values = tools.get_policy_values(age=60)

        assert values['age'] == 60
        assert values['policy_year'] == 6
        assert values['premium'] == 0
        assert values['illustrated_death_benefit'] > 0

    def test_policy_values_all_ages(self, tools):
        values = tools.get_policy_values()

        ages = [y['age'] for y in values['years']]
        assert ages[0] == 60
        assert ages[-1] == 90
        assert values['total_premiums'] > 0

    def test_policy_values_no_policy(self, tools):
        values = tools.get_policy_values(person=2)
        assert values['message'] == "No policy in force"

    def test_household_projection_range(self, tools):
        result = tools.get_household_projection(start_age=70, end_age=72)

        assert [y['person1_age'] for y in result['years']] == [70, 71, 72]
        assert [y['person2_age'] for y in result['years']] == [68, 69, 70]
        assert 'bankruptcy_age' in result

    def test_household_combines_both_persons(self, tools):
        year = tools.get_household_projection(start_age=60, end_age=60)['years'][0]
        taylor = tools.get_year_snapshot(60, person=1)
        morgan = tools.get_year_snapshot(58, person=2)

        assert year['retirement_assets'] == pytest.approx(
            taylor['retirement_assets'] + morgan['retirement_assets'], abs=0.02)

    def test_legacy_comparison(self, tools):
        result = tools.get_legacy_comparison()

        assert result['legacy_difference'] == pytest.approx(
            result['legacy_with_insurance'] - result['legacy_without_insurance'], abs=0.02)
        assert result['withdrawal_rate_assessment'] in ('sustainable', 'moderate', 'high')
        assert [p['name'] for p in result['per_person']] == ['Taylor', 'Morgan']

    def test_tax_efficiency(self, tools):
        result = tools.get_tax_efficiency()

        assert set(result['tax_by_phase']) >= {'pre_retirement', 'retirement', 'ltc_event'}
        assert result['strategies']
        assert result['total_strategy_savings'] == pytest.approx(
            sum(s['potential_savings'] for s in result['strategies']), abs=0.05)

    def test_search_with_age(self, tools):
        result = tools.search_projection_data("LTC benefits", age=80)

        assert result['age'] == 80
        assert 'ltc_benefits' in result['results']
        assert 'death_benefit' in result['results']

    def test_search_all_ages(self, tools):
        result = tools.search_projection_data("policy loan")
        assert set(result['ages'][70]) == {'policy_loan_balance', 'policy_loan_interest', 'policy_loan_taken'}
        assert len(result['ages']) == 31

    def test_search_no_match(self, tools):
        result = tools.search_projection_data("weather")
        assert 'No matching projection fields' in result['message']


class TestMultiClientTools:
    """Tests for MultiClientTools class."""

    def test_discovers_clients_and_skips_broken(self, multi_base_path):
        tools = MultiClientTools(multi_base_path)

        assert sorted(tools.clients) == ['clienta', 'clientb']
        assert tools.default_client == 'clienta'

    def test_explicit_default_client(self, multi_base_path):
        tools = MultiClientTools(multi_base_path, default_client='clientb')
        assert tools.default_client == 'clientb'

    def test_list_clients(self, multi_base_path):
        result = MultiClientTools(multi_base_path).list_clients()

        assert result['available_clients'] == ['clienta', 'clientb']
        assert result['clients_info']['clienta']['persons'] == ['Taylor', 'Morgan']

    def test_requires_client_when_several_exist(self, multi_base_path):
        tools = MultiClientTools(multi_base_path)
        with pytest.raises(ValueError, match="Multiple clients available"):
            tools.get_client_overview()

    def test_unknown_client(self, multi_base_path):
        tools = MultiClientTools(multi_base_path)
        with pytest.raises(ValueError, match="Client 'nobody' not found"):
            tools.get_legacy_comparison('nobody')

    def test_single_client_is_implicit(self, test_base_path):
        tools = MultiClientTools(test_base_path)

        overview = tools.get_client_overview()
        assert overview['client'] == 'testclient'
        assert tools.get_year_snapshot(70)['client'] == 'testclient'

    def test_named_client_recorded_in_result(self, multi_base_path):
        tools = MultiClientTools(multi_base_path)
        result = tools.get_policy_values(age=65, client='clientb')
        assert result['client'] == 'clientb'

    def test_reload_picks_up_new_client(self, multi_base_path):
        tools = MultiClientTools(multi_base_path)
        shutil.copytree(
            os.path.join(FIXTURES_PATH, 'testclient'),
            os.path.join(multi_base_path, 'input-parameters', 'clientc')
        )

        result = tools.reload_clients()

        assert result['status'] == 'success'
        assert result['changes']['added'] == ['clientc']
        assert result['changes']['reloaded'] == ['clienta', 'clientb']
        assert 'clientc' in tools.clients

    def test_empty_base_path(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            tools = MultiClientTools(temp_dir)
            assert tools.clients == {}
            assert tools.default_client is None

"""Tests for the Person configuration and global assumptions."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from model.Assumptions import GlobalAssumptions, load_reference_defaults
from model.Person import SPEC_KEYS, Person


class TestFromSpec:

    def test_camel_case_keys(self):
        person = Person.from_spec({
            "name": "Sam",
            "age": 62,
            "retirementAge": 66,
            "ltcEventEnabled": True,
            "ltcEventAge": 81,
            "policyBenefitPerYear": 60000,
        })
        assert person.name == "Sam"
        assert person.current_age == 62
        assert person.retirement_age == 66
        assert person.ltc_event_enabled is True
        assert person.ltc_event_age == 81
        assert person.policy_benefit_per_year == 60000

    def test_missing_keys_use_dataclass_defaults(self):
        person = Person.from_spec({"name": "Sam"})
        assert person.current_age == Person().current_age
        assert person.retirement_assets_tax_rate == 0.30

    def test_defaults_sit_beneath_data(self):
        person = Person.from_spec({"assetReturns": 0.04}, defaults={"assetReturns": 0.06, "ltcInflation": 0.03})
        assert person.asset_returns == 0.04
        assert person.ltc_inflation == 0.03

    def test_null_values_ignored(self):
        person = Person.from_spec({"income": None})
        assert person.income == Person().income

    def test_unknown_keys_ignored(self):
        person = Person.from_spec({"enabled": True, "policyIllustration": "sample"})
        assert person == Person()

    def test_to_spec_round_trip(self):
        person = Person(name="Sam", current_age=50, policy_enabled=True)
        spec = person.to_spec()
        assert set(spec) == set(SPEC_KEYS.values())
        assert Person.from_spec(spec) == person


class TestLtcEvent:

    def test_end_age_inclusive(self):
        person = Person(ltc_event_enabled=True, ltc_event_age=80, ltc_duration=3)
        assert person.ltc_event_end_age == 82
        assert [a for a in range(78, 85) if person.has_ltc_event_at(a)] == [80, 81, 82]

    def test_disabled_event(self):
        person = Person(ltc_event_enabled=False, ltc_event_age=80)
        assert not person.has_ltc_event_at(80)

    def test_zero_duration(self):
        person = Person(ltc_event_enabled=True, ltc_event_age=80, ltc_duration=0)
        assert not person.has_ltc_event_at(80)


class TestValidate:

    def test_default_person_is_valid(self):
        Person().validate()

    def test_death_before_current_age(self):
        with pytest.raises(ValueError, match="death age"):
            Person(current_age=70, death_age=65).validate()

    def test_ltc_event_outside_lifetime(self):
        with pytest.raises(ValueError, match="LTC event age"):
            Person(ltc_event_enabled=True, ltc_event_age=95, death_age=90).validate()

    def test_ltc_event_age_ignored_when_disabled(self):
        Person(ltc_event_enabled=False, ltc_event_age=95, death_age=90).validate()

    def test_tax_rate_of_one(self):
        with pytest.raises(ValueError, match="tax rate"):
            Person(retirement_assets_tax_rate=1.0).validate()

    def test_negative_durations(self):
        with pytest.raises(ValueError, match="LTC duration"):
            Person(ltc_duration=-1).validate()
        with pytest.raises(ValueError, match="benefit duration"):
            Person(policy_benefit_duration=-1).validate()


class TestGlobalAssumptions:

    def test_overrides_only_set_values(self):
        person = Person(general_inflation=0.02, asset_returns=0.05)
        result = GlobalAssumptions.from_spec({"generalInflation": 0.03}).apply_to(person)
        assert result.general_inflation == 0.03
        assert result.asset_returns == 0.05

    def test_empty_assumptions_return_same_person(self):
        person = Person()
        assert GlobalAssumptions.from_spec(None).apply_to(person) is person

    def test_person_is_not_mutated(self):
        person = Person(ltc_inflation=0.05)
        GlobalAssumptions(ltc_inflation=0.04).apply_to(person)
        assert person.ltc_inflation == 0.05

    def test_reference_defaults(self):
        reference = load_reference_defaults()
        assert reference["defaultPerson"]["ltcInflation"] == 0.05
        assert len(reference["taxStrategies"]) == 5

    def test_missing_reference_file(self, tmp_path):
        assert load_reference_defaults(str(tmp_path / "missing.json")) == {}

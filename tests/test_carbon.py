from __future__ import annotations

import dataclasses

import pytest

import carbon
from models import ConfigurationError, LocationData


def test_petrol_household_footprint(petrol_household):
    fp = carbon.calculate(petrol_household)
    assert fp.breakdown["home"] == pytest.approx(6.048)
    assert fp.breakdown["transport"] == pytest.approx(2.3)
    assert fp.breakdown["spending"] == pytest.approx(9.6)
    assert fp.total == pytest.approx(17.948)
    assert fp.grade == "E"
    assert fp.comparison == {"national": 12.7, "reduction": 0.0}


def test_light_walker_footprint(light_walker):
    fp = carbon.calculate(light_walker)
    assert fp.breakdown["home"] == pytest.approx(0.384)
    assert fp.breakdown["transport"] == pytest.approx(0.2)
    assert fp.breakdown["spending"] == pytest.approx(2.4)
    assert fp.total == pytest.approx(2.984)
    assert fp.grade == "A"
    assert fp.comparison["reduction"] == pytest.approx(12.7 - 2.984)


def test_total_is_sum_of_breakdown(petrol_household, light_walker):
    for profile in (petrol_household, light_walker):
        fp = carbon.calculate(profile)
        assert fp.total == pytest.approx(sum(fp.breakdown.values()))


@pytest.mark.parametrize(
    "total, grade",
    [(0.0, "A"), (5.99, "A"), (6.0, "B"), (7.99, "B"), (8.0, "C"), (11.99, "C"), (12.0, "D"), (15.99, "D"), (16.0, "E"), (40, "E")],
)
def test_grade_breakpoints(total, grade):
    assert carbon.grade_for(total) == grade


def test_grades_never_improve_as_total_grows():
    order = "ABCDE"
    grades = [order.index(carbon.grade_for(t / 10)) for t in range(0, 300)]
    assert grades == sorted(grades)


def test_student_home_uses_shared_multiplier(light_walker):
    student = dataclasses.replace(light_walker, home_type="student")
    assert carbon.home_emissions(student) == pytest.approx(carbon.home_emissions(light_walker))


def test_car_without_type_is_rejected(petrol_household):
    profile = dataclasses.replace(petrol_household, car_type=None)
    with pytest.raises(ConfigurationError, match="car type"):
        carbon.calculate(profile)


@pytest.mark.parametrize("field, value", [("home_type", "castle"), ("energy_source", "gas"), ("transport", "boat")])
def test_unknown_values_raise_configuration_error(light_walker, field, value):
    profile = dataclasses.replace(light_walker, **{field: value})
    with pytest.raises(ConfigurationError) as exc:
        carbon.calculate(profile)
    assert repr(value) in str(exc.value)


def test_animal_equivalent_picks_heaviest_fitting_animal():
    assert carbon.animal_equivalent(18.0).animal == "elephant"
    assert carbon.animal_equivalent(18.0).count == 3
    assert carbon.animal_equivalent(3.0).animal == "hippo"
    assert carbon.animal_equivalent(0.01).count == 1


def test_comparisons_without_location_use_national_average():
    comp = carbon.comparisons_for(5.0)
    assert comp.world_average == carbon.WORLD_AVERAGE_T
    assert comp.country_average == carbon.NATIONAL_AVERAGE_T
    assert comp.region_average == comp.country_average


def test_comparisons_apply_city_factor():
    london = LocationData("SW1A 1AA", "London", "United Kingdom", 51.5, -0.12, "SW")
    comp = carbon.comparisons_for(5.0, london)
    assert comp.country_average == 12.7
    assert comp.region_average == pytest.approx(12.7 * 0.85)


def test_calculate_full_adds_comparisons_and_savings(petrol_household):
    fp = carbon.calculate_full(petrol_household)
    assert fp.total == pytest.approx(17.948)
    assert fp.comparisons is not None
    assert fp.savings is not None
    # neither goal has a savings rule
    assert fp.savings.actions == []
    assert fp.savings.potential == 0


def test_savings_are_capped_at_total(light_walker):
    profile = dataclasses.replace(
        light_walker, goals=("use public transport", "walk more", "cycle more", "use less energy")
    )
    savings = carbon.savings_potential(profile, 1.0)
    assert savings.potential == 1.0
    assert savings.monthly_money == round((1200 + 600 + 600 + 500 * 12 * 0.10) / 12)
    assert savings.actions == list(profile.goals)


def test_savings_for_action_falls_back_to_default():
    assert carbon.savings_for_action("public_transport") == {"carbon": 2.3, "money": 5.50}
    assert carbon.savings_for_action("nope") == carbon.ACTION_SAVINGS["default"]
    carbon.savings_for_action("walking")["carbon"] = 99
    assert carbon.ACTION_SAVINGS["walking"]["carbon"] == 0.5

import pytest

from menuhub.core.errors import ValidationError
from menuhub.services.selection_rules import (
    default_selection,
    validate_ingredient_exclusions,
    validate_modifier_selection,
)

SIZE = {
    "id": "size",
    "name": "Size",
    "type": "single",
    "required": True,
    "min_selections": 1,
    "max_selections": 1,
    "options": [{"id": "s", "is_default": False}, {"id": "l", "is_default": False}],
}
TOPPINGS = {
    "id": "toppings",
    "name": "Toppings",
    "type": "multiple",
    "required": False,
    "min_selections": 2,
    "max_selections": 3,
    "options": [{"id": f"t{index}", "is_default": index == 0} for index in range(5)],
}


def test_valid_selection_passes():
    validate_modifier_selection([SIZE, TOPPINGS], ["l", "t1", "t2"])


def test_required_group_without_selection_fails():
    with pytest.raises(ValidationError) as excinfo:
        validate_modifier_selection([SIZE], [])

    assert excinfo.value.problems == ["'Size' requires a selection"]


def test_min_applies_once_an_optional_group_is_touched():
    validate_modifier_selection([TOPPINGS], [])

    with pytest.raises(ValidationError):
        validate_modifier_selection([TOPPINGS], ["t0"])


def test_max_selections_enforced():
    with pytest.raises(ValidationError):
        validate_modifier_selection([TOPPINGS], ["t0", "t1", "t2", "t3"])


def test_single_group_rejects_two_choices_without_max():
    group = dict(SIZE, max_selections=None, required=False, min_selections=0)

    with pytest.raises(ValidationError) as excinfo:
        validate_modifier_selection([group], ["s", "l"])

    assert "single choice" in excinfo.value.problems[0]


def test_every_problem_is_reported():
    with pytest.raises(ValidationError) as excinfo:
        validate_modifier_selection([SIZE, TOPPINGS], ["t0"])

    assert len(excinfo.value.problems) == 2


def test_ingredient_exclusions():
    ingredients = [
        {"id": 1, "name": "Onion", "can_exclude": True},
        {"id": 2, "name": "Bun", "can_exclude": False},
    ]
    validate_ingredient_exclusions(ingredients, [1])

    with pytest.raises(ValidationError) as excinfo:
        validate_ingredient_exclusions(ingredients, [2, 99])

    assert excinfo.value.problems == ["'Bun' cannot be removed", "Ingredient 99 is not part of this item"]


def test_default_selection_prefers_defaults_then_first_required_option():
    assert default_selection([SIZE, TOPPINGS]) == ["s", "t0"]

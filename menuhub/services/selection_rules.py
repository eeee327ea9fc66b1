from __future__ import annotations

from typing import Any, Iterable, Mapping

from menuhub.core.errors import ValidationError
from menuhub.models.modifier_group import GROUP_TYPE_BOOLEAN, GROUP_TYPE_SINGLE


def _selected_per_group(modifier_groups: list[Mapping[str, Any]], selected: set[str]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for group in modifier_groups:
        option_ids = {str(option["id"]) for option in group.get("options") or []}
        counts[str(group["id"])] = len(option_ids & selected)
    return counts


def validate_modifier_selection(
    modifier_groups: Iterable[Mapping[str, Any]],
    selected_option_ids: Iterable[Any],
) -> None:
    """Check a customer selection against each group's cardinality rules.

    Options that belong to none of the groups are ignored here; pricing
    ignores them too.
    """
    groups = list(modifier_groups)
    selected = {str(option_id) for option_id in selected_option_ids}
    counts = _selected_per_group(groups, selected)

    problems: list[str] = []
    for group in groups:
        name = group.get("name") or str(group["id"])
        count = counts[str(group["id"])]
        required = bool(group.get("required"))
        min_selections = int(group.get("min_selections") or 0)
        max_selections = group.get("max_selections")

        if required and count == 0:
            problems.append(f"'{name}' requires a selection")
            continue
        if (required or count > 0) and count < min_selections:
            problems.append(f"'{name}' requires at least {min_selections} selections")
        if max_selections is not None and count > int(max_selections):
            problems.append(f"'{name}' allows at most {int(max_selections)} selections")
        elif group.get("type") in (GROUP_TYPE_SINGLE, GROUP_TYPE_BOOLEAN) and count > 1:
            problems.append(f"'{name}' allows a single choice")

    if problems:
        raise ValidationError(problems=problems)


def validate_ingredient_exclusions(
    ingredients: Iterable[Mapping[str, Any]],
    excluded_ids: Iterable[Any],
) -> None:
    by_id = {str(ingredient["id"]): ingredient for ingredient in ingredients}
    problems: list[str] = []
    for excluded_id in dict.fromkeys(str(value) for value in excluded_ids):
        ingredient = by_id.get(excluded_id)
        if ingredient is None:
            problems.append(f"Ingredient {excluded_id} is not part of this item")
        elif not ingredient.get("can_exclude"):
            problems.append(f"'{ingredient.get('name')}' cannot be removed")
    if problems:
        raise ValidationError(problems=problems)


def default_selection(modifier_groups: Iterable[Mapping[str, Any]]) -> list[str]:
    """Preselected options: the group's defaults, else the first option of a required group."""
    selected: list[str] = []
    for group in modifier_groups:
        options = list(group.get("options") or [])
        defaults = [str(option["id"]) for option in options if option.get("is_default")]
        if group.get("type") in (GROUP_TYPE_SINGLE, GROUP_TYPE_BOOLEAN):
            defaults = defaults[:1]
        if defaults:
            selected.extend(defaults)
        elif group.get("required") and options:
            selected.append(str(options[0]["id"]))
    return selected

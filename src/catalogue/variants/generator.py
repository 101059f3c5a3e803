"""Variant combination generator.

Pure functions that expand per-dimension option values into the cartesian
product of combinations, and derive the canonical key that identifies a
combination regardless of the order its dimensions were declared in.

    >>> groups = [OptionGroup("SIZE", ["S", "M"]), OptionGroup("COLOR", ["Black"])]
    >>> [combination_key(c) for c in generate_combinations(groups)]
    ['COLOR:Black|SIZE:S', 'COLOR:Black|SIZE:M']
"""

from math import prod
from typing import NamedTuple

from protean.exceptions import ValidationError

# A product can vary along at most three dimensions (e.g. SIZE, COLOR, MATERIAL)
MAX_VARIANT_DIMENSIONS = 3

KEY_SEPARATOR = "|"
PAIR_SEPARATOR = ":"


class OptionGroup(NamedTuple):
    """One variant dimension and its ordered option values."""

    type: str
    values: list[str]


def generate_combinations(option_groups: list[OptionGroup]) -> list[dict[str, str]]:
    """Return every combination of one value per option group.

    The first group varies slowest: ``[COLOR: Black, White] x [SIZE: S, M]``
    yields Black/S, Black/M, White/S, White/M. An empty list of groups yields
    no combinations (the product stays a simple product).
    """
    if not option_groups:
        return []

    first, *rest = option_groups
    if not rest:
        return [{first.type: value} for value in first.values]

    rest_combinations = generate_combinations(rest)
    return [{first.type: value, **combination} for value in first.values for combination in rest_combinations]


def combination_key(option_values: dict[str, str]) -> str:
    """Canonical key for a combination: ``TYPE:value`` pairs sorted by type name."""
    return KEY_SEPARATOR.join(
        f"{option_type}{PAIR_SEPARATOR}{option_values[option_type]}" for option_type in sorted(option_values)
    )


def parse_combination_key(key: str) -> dict[str, str]:
    """Inverse of :func:`combination_key`."""
    if not key:
        return {}
    pairs = (pair.split(PAIR_SEPARATOR, 1) for pair in key.split(KEY_SEPARATOR))
    return {option_type: value for option_type, value in pairs}


def combination_count(option_groups: list[OptionGroup]) -> int:
    """Number of combinations :func:`generate_combinations` would produce."""
    if not option_groups:
        return 0
    return prod(len(group.values) for group in option_groups)


def validate_option_groups(option_groups: list[OptionGroup], max_combinations: int) -> None:
    """Reject option groups that cannot be generated safely.

    Raises ``ValidationError`` for more than three dimensions, repeated or
    blank dimension names, empty or blank values, repeated values within a
    dimension, and requests whose combination count exceeds
    ``max_combinations``.
    """
    if len(option_groups) > MAX_VARIANT_DIMENSIONS:
        raise ValidationError(
            {"options": [f"A product can have at most {MAX_VARIANT_DIMENSIONS} variant types, got {len(option_groups)}"]}
        )

    seen_types = set()
    for group in option_groups:
        if not group.type or not group.type.strip():
            raise ValidationError({"options": ["Variant type names cannot be blank"]})
        if PAIR_SEPARATOR in group.type or KEY_SEPARATOR in group.type:
            raise ValidationError(
                {"options": [f"Variant type '{group.type}' cannot contain '{PAIR_SEPARATOR}' or '{KEY_SEPARATOR}'"]}
            )
        if group.type in seen_types:
            raise ValidationError({"options": [f"Variant type '{group.type}' is listed more than once"]})
        seen_types.add(group.type)

        if not group.values:
            raise ValidationError({"options": [f"Variant type '{group.type}' needs at least one value"]})
        if any(not value or not value.strip() for value in group.values):
            raise ValidationError({"options": [f"Variant type '{group.type}' has a blank value"]})
        if any(KEY_SEPARATOR in value for value in group.values):
            raise ValidationError({"options": [f"Values of '{group.type}' cannot contain '{KEY_SEPARATOR}'"]})
        if len(set(group.values)) != len(group.values):
            raise ValidationError({"options": [f"Variant type '{group.type}' has repeated values"]})

    total = combination_count(option_groups)
    if total > max_combinations:
        raise ValidationError(
            {"options": [f"{total} combinations requested, the limit is {max_combinations} per product"]}
        )

"""Rubric point aggregation.

A rubric is a list of criteria stored as plain JSON::

    {"name": "Thesis", "description": "...",
     "levels": [{"label": "Excellent", "description": "...", "points": 5}, ...]}

A criterion is worth the points of its best level.
"""

from typing import Iterable, Mapping, Sequence


def criterion_max_points(criterion: Mapping) -> float:
    """Highest points across a criterion's levels, 0 when it has none."""
    levels = criterion.get("levels") or []
    if not levels:
        return 0
    return max(level.get("points", 0) for level in levels)


def rubric_total(criteria: Sequence[Mapping] | None) -> float:
    """Total points a rubric can award."""
    if not criteria:
        return 0
    return sum(criterion_max_points(criterion) for criterion in criteria)


def selected_points(criteria: Sequence[Mapping] | None, selections: Mapping[str, str]) -> float:
    """Sum the points of the level chosen for each criterion.

    Criteria without a selection contribute nothing. Raises ValueError when a
    selection names a criterion or level the rubric does not have.
    """
    by_name = {criterion.get("name"): criterion for criterion in criteria or []}
    total = 0
    for name, label in selections.items():
        criterion = by_name.get(name)
        if criterion is None:
            raise ValueError(f"Unknown rubric criterion: {name}")
        level = next((lv for lv in criterion.get("levels") or [] if lv.get("label") == label), None)
        if level is None:
            raise ValueError(f"Criterion '{name}' has no level '{label}'")
        total += level.get("points", 0)
    return total


def toggled_points(criteria: Sequence[Mapping] | None, names: Iterable[str]) -> float:
    """Sum the full points of every toggled-on criterion."""
    chosen = set(names)
    known = {criterion.get("name") for criterion in criteria or []}
    unknown = chosen - known
    if unknown:
        raise ValueError(f"Unknown rubric criteria: {', '.join(sorted(unknown))}")
    return sum(
        criterion_max_points(criterion)
        for criterion in criteria or []
        if criterion.get("name") in chosen
    )


def validate_rubric(criteria: Sequence[Mapping] | None) -> tuple[bool, str]:
    """Validate rubric structure."""
    if not criteria:
        return False, "Rubric must have at least one criterion"

    seen = set()
    for i, criterion in enumerate(criteria):
        name = criterion.get("name")
        if not name:
            return False, f"Criterion {i} must have a name"
        if name in seen:
            return False, f"Duplicate criterion name: {name}"
        seen.add(name)

        levels = criterion.get("levels") or []
        if not levels:
            return False, f"Criterion '{name}' must have at least one performance level"
        labels = set()
        for level in levels:
            points = level.get("points")
            if not isinstance(points, (int, float)) or points < 0:
                return False, f"Criterion '{name}' level points must be a non-negative number"
            if level.get("label") in labels:
                return False, f"Criterion '{name}' has duplicate level '{level.get('label')}'"
            labels.add(level.get("label"))

    return True, "Valid rubric"


def top_level_selections(criteria: Sequence[Mapping] | None, names: Iterable[str]) -> dict[str, str]:
    """Express toggled criteria as selections of each criterion's best level."""
    chosen = set(names)
    toggled_points(criteria, chosen)
    selections = {}
    for criterion in criteria or []:
        levels = criterion.get("levels") or []
        if criterion.get("name") in chosen and levels:
            best = max(levels, key=lambda level: level.get("points", 0))
            selections[criterion["name"]] = best.get("label")
    return selections

"""Grading policy: term weights and per-term component weights.

A policy is stored on the course as::

    [{"term": "Midterm", "weight": 50,
      "components": {"assignments": 40, "quizzes": 30, "activities": 20, "participation": 10}},
     {"term": "Finals", "weight": 50, "components": {...}}]
"""

import copy
from typing import Mapping, Sequence

DEFAULT_COMPONENTS = {
    "assignments": 40,
    "quizzes": 30,
    "activities": 20,
    "participation": 10,
}

DEFAULT_GRADING_POLICY = [
    {"term": "Midterm", "weight": 50, "components": DEFAULT_COMPONENTS},
    {"term": "Finals", "weight": 50, "components": DEFAULT_COMPONENTS},
]


class GradingPolicyError(ValueError):
    """Raised when a policy's weights do not add up."""
    pass


def default_grading_policy() -> list[dict]:
    return copy.deepcopy(DEFAULT_GRADING_POLICY)


def validate_grading_policy(terms: Sequence[Mapping]) -> None:
    """Reject a policy unless every weight group totals exactly 100."""
    if not terms:
        raise GradingPolicyError("A grading policy needs at least one term")

    names = [term.get("term") for term in terms]
    if len(set(names)) != len(names):
        raise GradingPolicyError("Term names must be unique")

    total = sum(term.get("weight", 0) for term in terms)
    if total != 100:
        raise GradingPolicyError(
            f"The term weights must total exactly 100%, but they currently total {total}%."
        )

    for term in terms:
        components = term.get("components") or {}
        component_total = sum(components.values())
        if component_total != 100:
            raise GradingPolicyError(
                f"The component weights for {term.get('term')} must total exactly 100%, "
                f"but they currently total {component_total}%."
            )


def compute_final_grade(terms: Sequence[Mapping], scores: Mapping[str, Mapping[str, float]]) -> float:
    """Weighted final percentage.

    ``scores`` maps term name to component name to a percentage (0-100).
    Missing components count as 0.
    """
    validate_grading_policy(terms)
    final = 0.0
    for term in terms:
        term_scores = scores.get(term["term"], {})
        term_grade = sum(
            weight / 100 * term_scores.get(component, 0)
            for component, weight in term["components"].items()
        )
        final += term["weight"] / 100 * term_grade
    return round(final, 2)

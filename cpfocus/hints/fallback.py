"""
Static hint text shown when no generated hint is available for a problem.
"""

from __future__ import annotations

FALLBACK_HINTS = {
    1: "Re-read the statement and the constraints. What do the examples have in common?",
    2: "Estimate the complexity the limits allow. Which data structure gets you there?",
    3: "Walk through the edge cases: empty input, a single element, the largest values.",
}


def fallback_hint(hint_number: int) -> str:
    return FALLBACK_HINTS.get(hint_number, FALLBACK_HINTS[1])

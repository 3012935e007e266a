"""Signal decision rules."""

from signalcore.strategy.decision import (
    DEFAULT_RULES,
    DecisionRules,
    classify_strength,
    decide,
)

__all__ = [
    "DEFAULT_RULES",
    "DecisionRules",
    "classify_strength",
    "decide",
]

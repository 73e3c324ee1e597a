"""
Trigger Condition Schemas.

A coverage pays out when ANY of its configured triggers matches the
aggregated oracle data. A condition set with nothing active can never pay
and is rejected when it is created.
"""

import operator
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Callable, Optional

from bioshield.config import settings
from bioshield.errors import InvalidTriggerConditionsError

BASIS_POINTS: int = 10_000


class ComparisonOperator(StrEnum):
    GREATER_THAN = ">"
    LESS_THAN = "<"
    EQUAL = "="
    NOT_EQUAL = "!="
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN_OR_EQUAL = "<="

    @classmethod
    def _missing_(cls, value):
        aliases = {"==": "=", "≠": "!=", "≥": ">=", "≤": "<="}
        if value in aliases:
            return cls(aliases[value])
        return None

    def compare(self, left: Decimal, right: Decimal) -> bool:
        return _OPERATORS[self](left, right)


_OPERATORS: dict[ComparisonOperator, Callable[[Decimal, Decimal], bool]] = {
    ComparisonOperator.GREATER_THAN: operator.gt,
    ComparisonOperator.LESS_THAN: operator.lt,
    ComparisonOperator.EQUAL: operator.eq,
    ComparisonOperator.NOT_EQUAL: operator.ne,
    ComparisonOperator.GREATER_THAN_OR_EQUAL: operator.ge,
    ComparisonOperator.LESS_THAN_OR_EQUAL: operator.le,
}


class SnapshotMetric(StrEnum):
    """Values a custom condition can compare against."""
    PRICE = "price"
    PRICE_RELATIVE_UNCERTAINTY = "price_relative_uncertainty"
    AGGREGATOR_VALUE = "aggregator_value"
    AGGREGATOR_CONFIDENCE = "aggregator_confidence"
    EFFICACY_SCORE = "efficacy_score"
    SAFETY_SCORE = "safety_score"
    COMPLETION_PERCENTAGE = "completion_percentage"
    SOURCE_COUNT = "source_count"


@dataclass(frozen=True)
class CustomCondition:
    """metric <operator> threshold."""
    condition_type: str
    threshold: Decimal
    comparison_operator: ComparisonOperator

    def __post_init__(self):
        # str() first so float thresholds keep their written value
        try:
            threshold = Decimal(str(self.threshold))
        except InvalidOperation as exc:
            raise InvalidTriggerConditionsError(
                f"threshold {self.threshold!r} for '{self.condition_type}' is not a number",
                details={"condition_type": self.condition_type},
            ) from exc
        try:
            comparison = ComparisonOperator(self.comparison_operator)
        except ValueError as exc:
            raise InvalidTriggerConditionsError(
                f"unknown comparison operator '{self.comparison_operator}'",
                details={"valid": [op.value for op in ComparisonOperator]},
            ) from exc
        object.__setattr__(self, "threshold", threshold)
        object.__setattr__(self, "comparison_operator", comparison)


@dataclass(frozen=True)
class TriggerConditions:
    """
    Configured triggers for one coverage.

    minimum_threshold is in basis points (0-10000) and applies to the
    efficacy score and the aggregator value.
    """
    clinical_trial_failure: bool = False
    regulatory_rejection: bool = False
    ip_invalidation: bool = False
    minimum_threshold: int = 0
    custom_conditions: tuple[CustomCondition, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "custom_conditions", tuple(self.custom_conditions))
        check_trigger_conditions(self)

    @property
    def threshold_fraction(self) -> Decimal:
        return Decimal(self.minimum_threshold) / BASIS_POINTS

    @property
    def has_active_trigger(self) -> bool:
        return (
            self.clinical_trial_failure
            or self.regulatory_rejection
            or self.ip_invalidation
            or bool(self.custom_conditions)
        )


def check_trigger_conditions(
    conditions: TriggerConditions,
    max_custom_conditions: Optional[int] = None,
) -> None:
    """Raise InvalidTriggerConditionsError unless the set can ever trigger."""
    if max_custom_conditions is None:
        max_custom_conditions = settings.max_custom_conditions

    if not conditions.has_active_trigger:
        raise InvalidTriggerConditionsError("no trigger flag set and no custom condition")

    if not 0 <= conditions.minimum_threshold <= BASIS_POINTS:
        raise InvalidTriggerConditionsError(
            f"minimum_threshold {conditions.minimum_threshold} outside 0-{BASIS_POINTS} bp",
            details={"minimum_threshold": conditions.minimum_threshold},
        )

    if len(conditions.custom_conditions) > max_custom_conditions:
        raise InvalidTriggerConditionsError(
            f"{len(conditions.custom_conditions)} custom conditions (max {max_custom_conditions})",
            details={"count": len(conditions.custom_conditions)},
        )

    known = {m.value for m in SnapshotMetric}
    for i, condition in enumerate(conditions.custom_conditions):
        if not condition.condition_type:
            raise InvalidTriggerConditionsError(
                f"custom_conditions[{i}] has an empty condition_type",
            )
        if condition.condition_type not in known:
            raise InvalidTriggerConditionsError(
                f"custom_conditions[{i}] unknown condition_type '{condition.condition_type}'",
                details={"valid": sorted(known)},
            )
        if not condition.threshold.is_finite():
            raise InvalidTriggerConditionsError(
                f"custom_conditions[{i}] threshold {condition.threshold} is not finite",
                details={"condition_type": condition.condition_type},
            )

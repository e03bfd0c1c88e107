# ==============================================
# Field Statistics (accumulators)
# ==============================================
#
# PURPOSE:
#   Small dataclasses that accumulate per-field evidence while the
#   dashboard walks the filtered records, then serialize the result.
#
# CLASSES:
# --------
# - NumericSummary
#     update(value: float) → count, total, minimum, maximum
#     average (property), to_dict() rounds everything to 2 decimals
#
# - CategoricalDistribution
#     update(label: str) → occurrence counter in first-seen order
#     pairs() → [ValueCount] sorted by count desc (stable on ties)
#
# - PivotBucket
#     update(sums: dict[field_key, float]) → count + running sums
#
# FUNCTION:
# ---------
# - round_half_up(value, places=2) -> float
#     Rounds half away from zero on the shortest decimal repr of the
#     float, so 2.675 → 2.68 and -2.675 → -2.68.
#     Precision grows with the magnitude; inf and nan pass through.
#
# ==============================================

import math
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Dict, List, Optional


def round_half_up(value: float, places: int = 2) -> float:
    # Sums of huge finite values can overflow to inf
    if not math.isfinite(value):
        return value
    exact = Decimal(repr(value))
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = max(28, exact.adjusted() + places + 2)
        return float(exact.quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass
class NumericSummary:
    """Running numeric statistics for one number field."""

    field_id: Any
    name: str
    count: int = 0
    total: float = 0.0
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    def update(self, value: float) -> None:
        self.count += 1
        self.total += value
        if self.minimum is None or value < self.minimum:
            self.minimum = value
        if self.maximum is None or value > self.maximum:
            self.maximum = value

    @property
    def average(self) -> Optional[float]:
        if self.count == 0:
            return None
        return self.total / self.count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field_id": self.field_id,
            "name": self.name,
            "count": self.count,
            "average": round_half_up(self.average),
            "minimum": round_half_up(self.minimum),
            "maximum": round_half_up(self.maximum),
            "sum": round_half_up(self.total),
        }


@dataclass(frozen=True)
class ValueCount:
    value: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "count": self.count}


@dataclass
class CategoricalDistribution:
    """Occurrence counts of each selector label for one field."""

    field_id: Any
    name: str
    counts: Dict[str, int] = field(default_factory=dict)

    def update(self, label: str) -> None:
        self.counts[label] = self.counts.get(label, 0) + 1

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def pairs(self) -> List[ValueCount]:
        # sorted() is stable, ties keep first-seen order
        ordered = sorted(self.counts.items(), key=lambda item: item[1], reverse=True)
        return [ValueCount(value, count) for value, count in ordered]

    def as_mapping(self) -> Dict[str, int]:
        return dict(self.counts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field_id": self.field_id,
            "name": self.name,
            "values": [pair.to_dict() for pair in self.pairs()],
        }


@dataclass
class PivotBucket:
    """One group of the pivot: how many records and their numeric sums."""

    key: str
    count: int = 0
    sums: Dict[str, float] = field(default_factory=dict)

    def update(self, values: Dict[str, float]) -> None:
        self.count += 1
        for field_key, value in values.items():
            self.sums[field_key] = self.sums.get(field_key, 0.0) + value

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "count": self.count, "sums": dict(self.sums)}

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

Number = Union[int, float, Decimal]

PROGRESS_CAP = 100.0


@dataclass(frozen=True)
class GoalProgress:
    percent: float
    remaining: float

    @property
    def is_complete(self) -> bool:
        return self.percent >= PROGRESS_CAP


def goal_progress(current_saved: Number, target_amount: Number) -> GoalProgress:
    """Percentage of a savings goal reached, capped at 100."""

    saved = float(current_saved or 0)
    target = float(target_amount or 0)
    if target <= 0:
        return GoalProgress(percent=PROGRESS_CAP, remaining=0.0)

    percent = min(saved / target * 100, PROGRESS_CAP)
    return GoalProgress(percent=percent, remaining=round(max(target - saved, 0.0), 2))

"""Monthly spend tracking for the two scoping tiers."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, TypeVar

from ftw_ai.log import get_logger

log = get_logger(__name__)

T = TypeVar("T")

QUICK_COST = 0.00025
DETAILED_COST = 0.003
RESET_AFTER = timedelta(days=30)


class BudgetExceededError(RuntimeError):
    """A tier has used up its share of the monthly budget."""


@dataclass
class BudgetStatus:
    quick_spent: float
    detailed_spent: float
    total_spent: float
    budget_remaining: float
    quick_calls: int
    detailed_calls: int
    total_calls: int
    budget_percentage: float


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BudgetController:
    """In-memory spend tracker; quick calls may use *quick_share* of the budget."""

    def __init__(
        self,
        monthly_budget: float = 120.0,
        quick_cost: float = QUICK_COST,
        detailed_cost: float = DETAILED_COST,
        quick_share: float = 0.67,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.monthly_budget = monthly_budget
        self.quick_cost = quick_cost
        self.detailed_cost = detailed_cost
        self.quick_share = quick_share
        self._clock = clock
        self.reset()

    def reset(self) -> None:
        self.quick_spent = 0.0
        self.detailed_spent = 0.0
        self.quick_calls = 0
        self.detailed_calls = 0
        self.reset_at = self._clock()

    def _reset_if_needed(self) -> None:
        if self._clock() - self.reset_at >= RESET_AFTER:
            log.info("Monthly AI budget window elapsed, resetting spend")
            self.reset()

    def status(self) -> BudgetStatus:
        self._reset_if_needed()
        total = self.quick_spent + self.detailed_spent
        return BudgetStatus(
            quick_spent=self.quick_spent,
            detailed_spent=self.detailed_spent,
            total_spent=total,
            budget_remaining=self.monthly_budget - total,
            quick_calls=self.quick_calls,
            detailed_calls=self.detailed_calls,
            total_calls=self.quick_calls + self.detailed_calls,
            budget_percentage=(total / self.monthly_budget * 100) if self.monthly_budget else 100.0,
        )

    def can_call(self, simple: bool) -> bool:
        self._reset_if_needed()
        if simple:
            return self.quick_spent + self.quick_cost <= self.monthly_budget * self.quick_share
        return self.detailed_spent + self.detailed_cost <= self.monthly_budget * (1 - self.quick_share)

    def record_call(self, simple: bool) -> None:
        self._reset_if_needed()
        if simple:
            self.quick_spent += self.quick_cost
            self.quick_calls += 1
        else:
            self.detailed_spent += self.detailed_cost
            self.detailed_calls += 1

    def call_with_budget(self, simple: bool, fn: Callable[[], T]) -> T:
        """Run *fn* if the tier has budget left, recording the spend on success."""
        if not self.can_call(simple):
            tier = "Quick" if simple else "Detailed"
            raise BudgetExceededError(f"{tier} budget exceeded. Monthly limit reached.")
        result = fn()
        self.record_call(simple)
        return result

    def cost_estimates(self) -> dict[str, float]:
        return {
            "quick_cost": self.quick_cost,
            "detailed_cost": self.detailed_cost,
            "monthly_budget": self.monthly_budget,
            "estimated_simple_jobs": int(self.monthly_budget * self.quick_share / self.quick_cost),
            "estimated_complex_jobs": int(
                self.monthly_budget * (1 - self.quick_share) / self.detailed_cost
            ),
        }

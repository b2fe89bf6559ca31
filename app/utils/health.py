from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from app.models.summary import CategoryTotal, HealthComponents, Totals
from app.utils.aggregation import round_half_up

if TYPE_CHECKING:
    from app.models.transaction import Transaction

logger = logging.getLogger(__name__)

MAX_HEALTH_SCORE = 100


class ScoreBand(BaseModel):
    threshold: float
    score: int


class DiversificationBand(BaseModel):
    min_categories: int
    # dominant category share must be strictly below this; None means no limit
    max_dominant_pct: Optional[float] = None
    score: int


class HealthThresholds(BaseModel):
    """
    Threshold tables for the four health sub-scores. Bands are checked in
    order and the first match wins; the fallback applies when none match.
    """

    max_component_score: int = 25

    # savings rate >= threshold
    savings: List[ScoreBand] = Field(
        default_factory=lambda: [
            ScoreBand(threshold=20, score=25),
            ScoreBand(threshold=10, score=18),
            ScoreBand(threshold=5, score=10),
        ]
    )
    savings_fallback_multiplier: float = 2.0

    # expense ratio (% of income) <= threshold
    expense_ratio: List[ScoreBand] = Field(
        default_factory=lambda: [
            ScoreBand(threshold=50, score=25),
            ScoreBand(threshold=70, score=20),
            ScoreBand(threshold=85, score=12),
        ]
    )
    expense_ratio_fallback: int = 5

    diversification: List[DiversificationBand] = Field(
        default_factory=lambda: [
            DiversificationBand(min_categories=4, max_dominant_pct=40, score=25),
            DiversificationBand(min_categories=3, max_dominant_pct=50, score=18),
            DiversificationBand(min_categories=2, score=12),
        ]
    )
    diversification_fallback: int = 5

    # number of income entries >= threshold
    consistency: List[ScoreBand] = Field(
        default_factory=lambda: [
            ScoreBand(threshold=3, score=25),
            ScoreBand(threshold=2, score=18),
            ScoreBand(threshold=1, score=12),
        ]
    )
    consistency_fallback: int = 0


class HealthScorer:
    """Combines savings, expense ratio, diversification and consistency into a 0-100 score."""

    def __init__(self, thresholds: Optional[HealthThresholds] = None) -> None:
        self.thresholds = thresholds or HealthThresholds()

    @classmethod
    def from_file(cls, path: Optional[str | Path]) -> "HealthScorer":
        if not path:
            return cls()

        thresholds_file = Path(path)
        if not thresholds_file.exists():
            logger.info(f"No health thresholds file at {thresholds_file}, using defaults")
            return cls()

        with thresholds_file.open() as fp:
            return cls(HealthThresholds.model_validate(json.load(fp)))

    def _cap(self, score: int) -> int:
        return max(0, min(self.thresholds.max_component_score, score))

    def savings_score(self, savings_rate: float) -> int:
        for band in self.thresholds.savings:
            if savings_rate >= band.threshold:
                return self._cap(band.score)
        if not savings_rate > 0:
            return 0
        scaled = round_half_up(savings_rate * self.thresholds.savings_fallback_multiplier)
        if scaled is None:
            return self._cap(self.thresholds.max_component_score)
        return self._cap(scaled)

    def expense_ratio_score(self, income: float, expenses: float) -> int:
        ratio = expenses / income * 100 if income > 0 else 100.0
        for band in self.thresholds.expense_ratio:
            if ratio <= band.threshold:
                return self._cap(band.score)
        return self._cap(self.thresholds.expense_ratio_fallback)

    def diversification_score(self, breakdown: Sequence[CategoryTotal], total_expenses: float) -> int:
        category_count = len(breakdown)
        if breakdown and total_expenses > 0:
            dominant_pct = max(item.total for item in breakdown) / total_expenses * 100
        else:
            dominant_pct = 100.0

        for band in self.thresholds.diversification:
            if category_count < band.min_categories:
                continue
            if band.max_dominant_pct is not None and not dominant_pct < band.max_dominant_pct:
                continue
            return self._cap(band.score)
        return self._cap(self.thresholds.diversification_fallback)

    def consistency_score(self, income_entries: int) -> int:
        for band in self.thresholds.consistency:
            if income_entries >= band.threshold:
                return self._cap(band.score)
        return self._cap(self.thresholds.consistency_fallback)

    def components(
        self,
        transactions: Iterable["Transaction"],
        totals: Totals,
        breakdown: Sequence[CategoryTotal],
    ) -> HealthComponents:
        income_entries = sum(1 for tx in transactions if tx.type == "income")
        return HealthComponents(
            savings=self.savings_score(totals.savings_rate),
            expense_ratio=self.expense_ratio_score(totals.income, totals.expenses),
            diversification=self.diversification_score(breakdown, totals.expenses),
            consistency=self.consistency_score(income_entries),
        )

    def score(
        self,
        transactions: Iterable["Transaction"],
        totals: Totals,
        breakdown: Sequence[CategoryTotal],
    ) -> int:
        parts = self.components(transactions, totals, breakdown)
        total = parts.savings + parts.expense_ratio + parts.diversification + parts.consistency
        return max(0, min(MAX_HEALTH_SCORE, total))


_default_scorer = HealthScorer()


def compute_health_score(
    transactions: Iterable["Transaction"],
    totals: Totals,
    breakdown: Sequence[CategoryTotal],
) -> int:
    return _default_scorer.score(transactions, totals, breakdown)

"""
Post-processing of finalized series into results.

The aggregator turns per-element series into a :class:`YieldResult`:
slot labels, per-element and total series, and per-element totals. The
total of each slot is the sum of the element values in that slot.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import numpy as np

from .constants import MONTH_ABBREVIATIONS
from .models.clock import days_in_month
from .models.results import YieldResult
from .models.state import CollectorFamily, Granularity
from .solaryield_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = get_logger(__name__)


class ResultStore(Protocol):
    def publish(self, result: YieldResult) -> None: ...


class InMemoryResultStore:
    """
    Keeps the latest result per (family, granularity) and per-element totals.

    Example:
        store = InMemoryResultStore()
        scheduler = SimulationScheduler(..., result_store=store)
        ...
        store.get(CollectorFamily.FLAT_PANEL, Granularity.DAILY).to_records()
    """

    def __init__(self) -> None:
        self.results: dict[tuple[CollectorFamily, Granularity], YieldResult] = {}
        self.element_yields: dict[tuple[Granularity, str], float] = {}

    def publish(self, result: YieldResult) -> None:
        self.results[(result.family, result.granularity)] = result
        for eid, total in result.element_totals.items():
            self.element_yields[(result.granularity, eid)] = total

    def get(self, family: CollectorFamily, granularity: Granularity) -> YieldResult | None:
        return self.results.get((family, granularity))


def _stack_total(series: dict[str, NDArray[np.floating]], length: int) -> NDArray[np.floating]:
    if not series:
        return np.zeros(length)
    return np.sum(np.stack(list(series.values())), axis=0)


class YieldAggregator:
    """
    Builds results for one family.

    Args:
        family: Collector family.
        individual: Whether records list each element separately.
    """

    def __init__(self, family: CollectorFamily, individual: bool = False):
        self.family = family
        self.individual = individual

    def daily(
        self,
        series: dict[str, NDArray[np.floating]],
        labels: dict[str, str],
        extras: dict[str, dict[str, NDArray[np.floating]]] | None = None,
    ) -> YieldResult:
        """
        Result for a daily run.

        Args:
            series: Finalized 24-slot series per element id.
            labels: Display label per element id.
            extras: Secondary hourly series.
        """
        element_series = {eid: np.asarray(s, dtype=np.float64).copy() for eid, s in series.items()}
        for eid, s in element_series.items():
            if s.shape != (24,):
                raise ValueError(f"Daily series for '{eid}' must have 24 entries, got {s.shape}")
        return YieldResult(
            family=self.family,
            granularity=Granularity.DAILY,
            slot_labels=list(range(24)),
            element_series=element_series,
            element_labels=dict(labels),
            total=_stack_total(element_series, 24),
            element_totals={eid: float(s.sum()) for eid, s in element_series.items()},
            individual=self.individual,
            extras=extras or {},
        )

    def yearly(
        self,
        series: dict[str, NDArray[np.floating]],
        labels: dict[str, str],
        sampled_months: list[int],
        year: int,
    ) -> YieldResult:
        """
        Result for a yearly run.

        Each sampled day's energy is multiplied by the length of its month
        so a slot holds that month's energy. An element's annual total
        counts each sampled day once for every day of the months it stands
        for, up to the next sampled month.

        Args:
            series: Per-day energy per element id, one value per sampled day.
            labels: Display label per element id.
            sampled_months: Zero-based month of each sampled day.
            year: Calendar year of the run (for leap years).
        """
        month_interval = 12 // len(sampled_months) if sampled_months else 1
        month_days = np.array([days_in_month(year, m) for m in sampled_months], dtype=np.float64)
        covered_days = np.array(
            [sum(days_in_month(year, (m + j) % 12) for j in range(month_interval)) for m in sampled_months],
            dtype=np.float64,
        )
        element_series = {eid: np.asarray(s, dtype=np.float64) * month_days for eid, s in series.items()}
        logger.debug(f"Yearly aggregation: {len(element_series)} elements, {len(sampled_months)} sampled months")
        return YieldResult(
            family=self.family,
            granularity=Granularity.YEARLY,
            slot_labels=[MONTH_ABBREVIATIONS[m] for m in sampled_months],
            element_series=element_series,
            element_labels=dict(labels),
            total=_stack_total(element_series, len(sampled_months)),
            element_totals={eid: float(np.asarray(s, dtype=np.float64) @ covered_days) for eid, s in series.items()},
            individual=self.individual,
        )

"""Finalized simulation results."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from ..constants import TOTAL_LABEL
from .state import CollectorFamily, Granularity

if TYPE_CHECKING:
    from numpy.typing import NDArray

_UNITS = {
    CollectorFamily.LIGHT_SENSOR: "kWh/m²",
}


@dataclass
class YieldResult:
    """
    Scaled output of one completed run.

    Attributes:
        family: Collector family simulated.
        granularity: Daily or yearly.
        slot_labels: One label per slot: hours 0-23, or month abbreviations.
        element_series: Finalized series per element id.
        element_labels: Display label per element id.
        total: Slot-wise sum over all elements.
        element_totals: Total energy per element over the simulated period.
        individual: Whether records list each element separately.
        extras: Secondary series (e.g. chimney temperature) keyed by name then element id.
        metadata: Run provenance (see :mod:`solaryield.metadata`).
    """

    family: CollectorFamily
    granularity: Granularity
    slot_labels: list[str | int]
    element_series: dict[str, NDArray[np.floating]]
    element_labels: dict[str, str]
    total: NDArray[np.floating]
    element_totals: dict[str, float]
    individual: bool = False
    extras: dict[str, dict[str, NDArray[np.floating]]] = field(default_factory=dict)
    metadata: dict | None = None

    @property
    def slot_key(self) -> str:
        return "Hour" if self.granularity == Granularity.DAILY else "Month"

    @property
    def unit(self) -> str:
        return _UNITS.get(self.family, "kWh")

    @property
    def grand_total(self) -> float:
        return float(sum(self.element_totals.values()))

    def to_records(self) -> list[dict[str, float | str | int]]:
        """
        Chart-ready rows, one per slot.

        Each row carries the slot key ("Hour" or "Month"), the "Total" column
        and, for individual results, one column per element label.
        """
        records = []
        for i, slot in enumerate(self.slot_labels):
            row: dict[str, float | str | int] = {self.slot_key: slot}
            if self.individual:
                for eid, series in self.element_series.items():
                    row[self.element_labels[eid]] = float(series[i])
            row[TOTAL_LABEL] = float(self.total[i])
            records.append(row)
        return records

    def report(self) -> str:
        """Return a human-readable summary report.

        Returns:
            Multi-line report string.
        """
        if not self.element_series:
            return f"{self.family.value} {self.granularity.value} yield: no elements"

        lines = [
            f"{self.family.value} {self.granularity.value} yield: {len(self.element_series)} elements, "
            f"total {self.grand_total:.2f} {self.unit}"
        ]
        peak = int(np.argmax(self.total))
        lines.append(f"  Peak {self.slot_key.lower()}: {self.slot_labels[peak]} ({self.total[peak]:.3f} {self.unit})")
        for eid, total in self.element_totals.items():
            lines.append(f"  {self.element_labels[eid]}: {total:.2f} {self.unit}")
        return "\n".join(lines)

    def plot(self, save_path: str | Path | None = None, figsize: tuple[float, float] = (10, 5)) -> None:
        """Plot the result as a bar chart.

        Requires ``matplotlib``. If ``save_path`` is provided, the figure is
        saved to that path instead of being shown interactively.

        Args:
            save_path: File path to save the figure (e.g. ``"daily.png"``).
            figsize: Figure size as ``(width, height)`` in inches.
        """
        try:
            import matplotlib.pyplot as plt
        except ImportError:
            raise ImportError("matplotlib is required for plotting. Install it with: pip install matplotlib") from None

        fig, ax = plt.subplots(figsize=figsize)
        x = np.arange(len(self.slot_labels))
        if self.individual and self.element_series:
            bottom = np.zeros(len(x))
            for eid, series in self.element_series.items():
                ax.bar(x, series, bottom=bottom, label=self.element_labels[eid])
                bottom += series
            ax.legend(loc="upper right", fontsize="small")
        else:
            ax.bar(x, self.total, label=TOTAL_LABEL)
        ax.set_xticks(x)
        ax.set_xticklabels([str(s) for s in self.slot_labels])
        ax.set_xlabel(self.slot_key)
        ax.set_ylabel(f"Yield ({self.unit})")
        ax.set_title(f"{self.family.value.replace('_', ' ').title()} {self.granularity.value} yield")
        fig.tight_layout()

        if save_path is not None:
            fig.savefig(save_path, dpi=150)
            plt.close(fig)
        else:
            plt.show()

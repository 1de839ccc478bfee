"""Simulation job state.

A :class:`SimulationJob` tags one run of one collector family at one
granularity. The scheduler drives ``state``; the host only flips the
``run`` and ``pause`` flags and reads ``results_ready``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SimulationState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    STEPPING = "stepping"
    PAUSED = "paused"
    FINISHING = "finishing"
    ABORTED = "aborted"


class Granularity(str, Enum):
    DAILY = "daily"
    YEARLY = "yearly"


class CollectorFamily(str, Enum):
    FLAT_PANEL = "flat_panel"
    HELIOSTAT = "heliostat"
    PARABOLIC_TROUGH = "parabolic_trough"
    PARABOLIC_DISH = "parabolic_dish"
    FRESNEL_REFLECTOR = "fresnel_reflector"
    UPDRAFT_TOWER = "updraft_tower"
    LIGHT_SENSOR = "light_sensor"


class Notification(str, Enum):
    """User-facing events emitted by a scheduler."""

    COMPLETED = "completed"
    ABORTED = "aborted"
    PAUSED = "paused"
    RESUMED = "resumed"


@dataclass
class SimulationJob:
    """
    Control record for one (family, granularity) run.

    Attributes:
        family: Collector family being simulated.
        granularity: Daily (24 hourly slots) or yearly (sampled days).
        state: Current scheduler state.
        run: Host-controlled run flag. Setting it starts a run; clearing it
            before completion aborts the run.
        pause: Host-controlled pause flag.
        results_ready: Set when a run finished and published its results.
        diagnostics: Recoverable per-element problems met during the run.
    """

    family: CollectorFamily
    granularity: Granularity
    state: SimulationState = SimulationState.IDLE
    run: bool = False
    pause: bool = False
    results_ready: bool = False
    diagnostics: list[str] = field(default_factory=list)

    @property
    def key(self) -> tuple[CollectorFamily, Granularity]:
        return (self.family, self.granularity)

    @property
    def is_active(self) -> bool:
        return self.state not in (SimulationState.IDLE, SimulationState.ABORTED)

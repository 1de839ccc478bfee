"""
Simulation scheduler: a host-pumped state machine for daily and yearly runs.

States::

    IDLE -> INITIALIZING -> STEPPING <-> PAUSED -> FINISHING -> IDLE
                               |            |
                               +--> ABORTED <+

The host sets the job's ``run``/``pause`` flags (or calls the ``request_*``
helpers) and calls :meth:`SimulationScheduler.step` once per frame. Each
step advances the simulated clock by one interval and integrates every
element of the scheduler's collector family; between steps the host may
re-render moving parts. Flag changes take effect at the next step.

Example:
    scheduler = SimulationScheduler(FlatPanelCalculator(), Granularity.DAILY,
                                    store, site, weather, SimulatedClock(now))
    scheduler.request_run()
    while scheduler.step() not in (SimulationState.IDLE, SimulationState.ABORTED):
        render()
    print(scheduler.result.report())
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any

import numpy as np

from .aggregator import ResultStore, YieldAggregator
from .buffers import BufferPool, SeriesBuffers
from .components.base import YieldCalculator, YieldContext, time_factor
from .constants import MINUTES_PER_DAY, YEARLY_SAMPLE_DAY, ZERO_TOLERANCE
from .errors import ConfigurationError, InvalidElementData, SchedulerStateError
from .metadata import create_run_metadata
from .models.clock import SimulatedClock, day_of_year, hour_bucket
from .models.config import SimulationConfig
from .models.state import Granularity, Notification, SimulationJob, SimulationState
from .occlusion import OcclusionTester, SceneNode, ShadowCaster
from .physics.radiation import ClearSkyModel, RadiationModel
from .physics.sun_position import SunMinutes, sun_direction, sunrise_sunset
from .progress import ProgressReporter, get_progress_iterator
from .sampling import SurfaceSampler
from .scene import build_scene
from .solaryield_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from .models.elements import CollectorElement, ElementStore
    from .models.results import YieldResult
    from .models.weather import Site, WeatherProfile

logger = get_logger(__name__)

NotifyCallback = Callable[[Notification, SimulationJob], None]


class SimulationRegistry:
    """
    Guarantees at most one active scheduler per (family, granularity).

    Example:
        registry = SimulationRegistry()
        daily = SimulationScheduler(..., registry=registry)
        other = SimulationScheduler(..., registry=registry)  # same family
        daily.request_run(); daily.step()
        other.request_run(); other.step()  # raises SchedulerStateError
    """

    def __init__(self) -> None:
        self._active: dict[tuple, SimulationScheduler] = {}

    def acquire(self, scheduler: SimulationScheduler) -> None:
        key = scheduler.job.key
        holder = self._active.get(key)
        if holder is not None and holder is not scheduler:
            raise SchedulerStateError(
                holder.job.state.value,
                "start",
                f"{key[0].value} {key[1].value} simulation already driven by another scheduler",
            )
        self._active[key] = scheduler

    def release(self, scheduler: SimulationScheduler) -> None:
        key = scheduler.job.key
        if self._active.get(key) is scheduler:
            del self._active[key]

    def active(self, key: tuple) -> SimulationScheduler | None:
        return self._active.get(key)


class SimulationScheduler:
    """
    Drives one collector family through a daily or yearly run.

    Args:
        calculator: Yield capability of the family to simulate.
        granularity: DAILY (24 hourly slots of the clock's date) or YEARLY
            (``days_per_year`` sampled days of the clock's year).
        store: Element store (read only).
        site: Latitude, longitude and ground albedo.
        weather: Monthly sunshine hours, elevation and temperatures.
        clock: Simulated clock. Restored to its pre-run value when the run
            finishes or is aborted.
        config: Simulation settings (defaults if None).
        scene: Scene root or iterable of shadow casters. None builds boxes
            from the store at each run start.
        radiation_model: Radiation policy (ClearSkyModel if None).
        result_store: Receives the result of each completed run.
        registry: Shared registry enforcing one scheduler per job key.
        on_time_advanced: Called with the new simulated time after each
            clock advance, before yields are computed.
        notify: Called with completion, abort, pause and resume events.
    """

    def __init__(
        self,
        calculator: YieldCalculator,
        granularity: Granularity,
        store: ElementStore,
        site: Site,
        weather: WeatherProfile,
        clock: SimulatedClock,
        config: SimulationConfig | None = None,
        scene: SceneNode | Iterable[ShadowCaster] | None = None,
        radiation_model: RadiationModel | None = None,
        result_store: ResultStore | None = None,
        registry: SimulationRegistry | None = None,
        on_time_advanced: Callable[[datetime], Any] | None = None,
        notify: NotifyCallback | None = None,
    ):
        self.calculator = calculator
        self.store = store
        self.site = site
        self.weather = weather
        self.clock = clock
        self.config = config if config is not None else SimulationConfig.defaults()
        self.scene = scene
        self.radiation_model = radiation_model if radiation_model is not None else ClearSkyModel()
        self.result_store = result_store
        self.registry = registry
        self.on_time_advanced = on_time_advanced
        self.notify = notify

        self.job = SimulationJob(calculator.family, Granularity(granularity))
        self.pool = BufferPool()
        self.sampler = SurfaceSampler(self.pool)
        self.occlusion = OcclusionTester()
        self.result: YieldResult | None = None
        self.steps = 0
        self.estimated_steps = 0

        self._ctx: YieldContext | None = None
        self._elements: list[CollectorElement] = []
        self._labels: dict[str, str] = {}
        self._daily: SeriesBuffers | None = None
        self._yearly: SeriesBuffers | None = None
        self._sampled_months: list[int] = []
        self._day_index = 0
        self._day: date | None = None
        self._day_minutes = 0.0
        self._end_minutes = 0.0
        self._sun_minutes: SunMinutes | None = None
        self._saved_date: datetime | None = None
        self._paused_at: datetime | None = None
        self._reported: set[str] = set()

    # ------------------------------------------------------------------
    # Host controls
    # ------------------------------------------------------------------

    @property
    def state(self) -> SimulationState:
        return self.job.state

    @property
    def is_running(self) -> bool:
        return self.job.state in (
            SimulationState.INITIALIZING,
            SimulationState.STEPPING,
            SimulationState.PAUSED,
            SimulationState.FINISHING,
        )

    @property
    def interval(self) -> float:
        return self.config.step_minutes

    def request_run(self) -> None:
        self.job.run = True
        self.job.pause = False

    def request_pause(self) -> None:
        if self.job.state != SimulationState.STEPPING:
            raise SchedulerStateError(self.job.state.value, "pause")
        self.job.pause = True

    def request_resume(self) -> None:
        if self.job.state != SimulationState.PAUSED and not self.job.pause:
            raise SchedulerStateError(self.job.state.value, "resume")
        self.job.pause = False

    def request_cancel(self) -> None:
        self.job.run = False

    def has_moving_parts(self) -> bool:
        return any(self.calculator.has_moving_parts(e) for e in self.calculator.elements(self.store))

    # ------------------------------------------------------------------
    # Pump
    # ------------------------------------------------------------------

    def step(self) -> SimulationState:
        """
        Advance the state machine by one host frame.

        Returns:
            The state after the step.
        """
        state = self.job.state
        if state in (SimulationState.IDLE, SimulationState.ABORTED):
            if self.job.run:
                if not self.config.animate and not self.has_moving_parts():
                    self._run_static()
                else:
                    if not self.config.animate:
                        logger.warning(
                            f"{self.job.family.value}: moving parts present, static evaluation unavailable; animating"
                        )
                    self._initialize()
            return self.job.state

        if not self.job.run:
            self._abort()
            return self.job.state

        if state == SimulationState.PAUSED:
            if self.job.pause:
                return state
            self._resume()
        elif self.job.pause:
            self._pause()
            return self.job.state

        self._advance()
        return self.job.state

    def run_to_completion(
        self,
        progress: bool = True,
        feedback: Any = None,
        max_steps: int | None = None,
    ) -> YieldResult | None:
        """
        Pump :meth:`step` until the run finishes, aborts or pauses.

        Args:
            progress: Show a progress bar.
            feedback: Host feedback object; its cancel request aborts the run.
            max_steps: Safety limit on the number of steps.

        Returns:
            The result if the run completed, otherwise None.
        """
        if not self.job.run:
            self.request_run()
        reporter = ProgressReporter(
            total=0, desc=f"{self.job.family.value} {self.job.granularity.value}", feedback=feedback, disable=not progress
        )
        count = 0
        try:
            state = self.step()
            reporter.set_total(self.estimated_steps)
            while state in (SimulationState.STEPPING, SimulationState.INITIALIZING, SimulationState.FINISHING):
                if reporter.is_cancelled():
                    self.request_cancel()
                state = self.step()
                reporter.update(1)
                count += 1
                if max_steps is not None and count >= max_steps:
                    break
        finally:
            reporter.close()
        return self.result if self.job.results_ready and not self.is_running else None

    def run_static(self, progress: bool = False) -> YieldResult:
        """
        Evaluate the whole run at once at fixed sample instants.

        Only valid when no element moves, since nothing is re-rendered
        between samples.

        Raises:
            ConfigurationError: If any element has moving parts.
        """
        if self.has_moving_parts():
            raise ConfigurationError("animate", "static evaluation requires elements without moving parts")
        if self.is_running:
            raise SchedulerStateError(self.job.state.value, "run static")
        self.job.run = True
        self._run_static(progress)
        return self.result

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _initialize(self) -> None:
        self.job.state = SimulationState.INITIALIZING
        try:
            if self.registry is not None:
                self.registry.acquire(self)
        except SchedulerStateError:
            self.job.state = SimulationState.IDLE
            self.job.run = False
            raise

        self._saved_date = self.clock.snapshot()
        self._paused_at = None
        self.job.results_ready = False
        self.job.pause = False
        self.job.diagnostics.clear()
        self._reported.clear()
        self.steps = 0

        self._elements = self.calculator.elements(self.store)
        self._labels = {e.id: self.calculator.label(e, i) for i, e in enumerate(self._elements)}
        ids = list(self._labels)

        self.sampler.reset()
        self.occlusion.snapshot(self.scene if self.scene is not None else build_scene(self.store))
        self._ctx = YieldContext(
            store=self.store,
            site=self.site,
            weather=self.weather,
            config=self.config,
            radiation=self.radiation_model,
            occlusion=self.occlusion,
            sampler=self.sampler,
            pool=self.pool,
        )

        self._daily = SeriesBuffers(ids, 24)
        if self.job.granularity == Granularity.YEARLY:
            self._yearly = SeriesBuffers(ids, self.config.days_per_year)
            self._sampled_months = [k * self.config.month_interval for k in range(self.config.days_per_year)]
            self._day_index = 0
            self._start_day(self._sampled_date(0))
        else:
            self._yearly = None
            self._sampled_months = []
            self._start_day(self._saved_date.date())

        steps_per_day = max(1, math.ceil((self._end_minutes - self._day_minutes) / self.interval) + 1)
        self.estimated_steps = steps_per_day * (self.config.days_per_year if self._yearly is not None else 1)
        self.job.state = SimulationState.STEPPING
        logger.info(
            f"{self.job.family.value} {self.job.granularity.value} run started: "
            f"{len(self._elements)} elements, {self.config.times_per_hour} samples/hour"
        )

    def _pause(self) -> None:
        self._paused_at = self.clock.snapshot()
        self.job.state = SimulationState.PAUSED
        logger.info(f"{self.job.family.value} {self.job.granularity.value} run paused at {self._paused_at:%Y-%m-%d %H:%M}")
        self._emit(Notification.PAUSED)

    def _resume(self) -> None:
        if self._paused_at is not None:
            self.clock.restore(self._paused_at)
        self._paused_at = None
        self.job.state = SimulationState.STEPPING
        logger.info(f"{self.job.family.value} {self.job.granularity.value} run resumed")
        self._emit(Notification.RESUMED)

    def _abort(self) -> None:
        if self._saved_date is not None:
            self.clock.restore(self._saved_date)
        if self._daily is not None:
            self._daily.discard()
        if self._yearly is not None:
            self._yearly.discard()
        self._ctx = None
        self.job.pause = False
        self.job.results_ready = False
        self.job.state = SimulationState.ABORTED
        if self.registry is not None:
            self.registry.release(self)
        logger.info(f"{self.job.family.value} {self.job.granularity.value} run aborted after {self.steps} steps")
        self._emit(Notification.ABORTED)

    def _finish(self) -> None:
        self.job.state = SimulationState.FINISHING
        aggregator = YieldAggregator(self.job.family, self.config.individual_outputs)
        if self._yearly is not None:
            result = aggregator.yearly(
                self._yearly.snapshot(), self._labels, self._sampled_months, self._saved_date.year
            )
        else:
            series, extras = self._finalize_day()
            result = aggregator.daily(series, self._labels, extras)

        result.metadata = create_run_metadata(
            self.job, self.site, self.weather, self.config, list(self._labels), self._saved_date
        )
        self.result = result
        if self.result_store is not None:
            self.result_store.publish(result)

        self.clock.restore(self._saved_date)
        if self.registry is not None:
            self.registry.release(self)
        self._ctx = None
        self.job.run = False
        self.job.pause = False
        self.job.results_ready = True
        self.job.state = SimulationState.IDLE
        logger.info(
            f"{self.job.family.value} {self.job.granularity.value} run completed: "
            f"{result.grand_total:.3f} {result.unit} in {self.steps} steps"
        )
        self._emit(Notification.COMPLETED)

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def _sampled_date(self, index: int) -> date:
        return date(self._saved_date.year, self._sampled_months[index] + 1, YEARLY_SAMPLE_DAY)

    def _start_day(self, day: date) -> None:
        """Reset the daily buffer and put the clock half an interval before the sunrise hour."""
        self._day = day
        self._sun_minutes = sunrise_sunset(day, self.site.latitude)
        start = math.floor(self._sun_minutes.sunrise / 60.0) * 60.0 - 0.5 * self.interval
        self._day_minutes = start
        self._end_minutes = min(self._sun_minutes.sunset, MINUTES_PER_DAY - self.interval)
        self.clock.set_minutes_into_day(start, day)
        self._daily.reset()

    def _advance(self) -> None:
        if self._day_minutes >= self._end_minutes:
            if self._yearly is None:
                self._finish()
                return
            self._close_day()
            self._day_index += 1
            if self._day_index >= self.config.days_per_year:
                self._finish()
                return
            self._start_day(self._sampled_date(self._day_index))
            logger.debug(f"Sampled day {self._day_index + 1}/{self.config.days_per_year}: {self._day}")
            return

        self._day_minutes += self.interval
        now = self.clock.advance(self.interval)
        if self.on_time_advanced is not None:
            self.on_time_advanced(now)
        self._sample(now)
        self.steps += 1

    def _sample(self, now: datetime) -> None:
        """Accumulate every element's contribution at ``now`` into its hourly slot."""
        sun = sun_direction(now, self.site.latitude)
        if sun[2] <= ZERO_TOLERANCE:
            return
        slot = hour_bucket(now)
        doy = day_of_year(now)
        month = now.month - 1
        for element in self._elements:
            try:
                value = self.calculator.yield_contribution(element, self._ctx, sun, doy, month)
            except InvalidElementData as exc:
                self._skip(element, exc)
                continue
            self._daily[element.id][slot] += value

    def _skip(self, element: CollectorElement, exc: InvalidElementData) -> None:
        if element.id in self._reported:
            return
        self._reported.add(element.id)
        self.job.diagnostics.append(str(exc))
        logger.warning(f"Skipping {element.id}: {exc}")

    def _finalize_day(self) -> tuple[dict[str, NDArray[np.floating]], dict[str, dict[str, NDArray[np.floating]]]]:
        month = self._day.month - 1
        factor = time_factor(self.weather, month, self._sun_minutes, self.config.times_per_hour)
        series: dict[str, NDArray[np.floating]] = {}
        extras: dict[str, dict[str, NDArray[np.floating]]] = {}
        for element in self._elements:
            try:
                output = self.calculator.finalize_day(element, self._daily[element.id], factor, self._ctx, month)
            except InvalidElementData as exc:
                self._skip(element, exc)
                series[element.id] = np.zeros(24)
                continue
            series[element.id] = output.series
            for name, values in output.extras.items():
                extras.setdefault(name, {})[element.id] = values
        return series, extras

    def _close_day(self) -> None:
        series, _ = self._finalize_day()
        for eid, values in series.items():
            self._yearly[eid][self._day_index] = float(values.sum())

    # ------------------------------------------------------------------
    # Static evaluation
    # ------------------------------------------------------------------

    def _static_day(self, day: date) -> None:
        """Sample a whole day at the instants the animated run would reach."""
        self._start_day(day)
        midnight = datetime(day.year, day.month, day.day, tzinfo=self._saved_date.tzinfo)
        for hour in range(24):
            for j in range(self.config.times_per_hour):
                minutes = hour * 60 + (j + 0.5) * self.interval - 30.0
                self._sample(midnight + timedelta(minutes=minutes % MINUTES_PER_DAY))
                self.steps += 1

    def _run_static(self, progress: bool = False) -> None:
        self._initialize()
        if self._yearly is None:
            self._static_day(self._day)
        else:
            for index in get_progress_iterator(
                range(self.config.days_per_year), desc=f"{self.job.family.value} yearly", disable=not progress
            ):
                self._day_index = index
                self._static_day(self._sampled_date(index))
                self._close_day()
        self._finish()

    def _emit(self, event: Notification) -> None:
        if self.notify is not None:
            self.notify(event, self.job)

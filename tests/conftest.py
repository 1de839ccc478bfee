"""Shared pytest configuration and builders."""

from datetime import datetime

import pytest
from solaryield.api import (
    ElementStore,
    Foundation,
    SimulatedClock,
    SimulationConfig,
    Site,
    SolarPanel,
    WeatherProfile,
)

BOSTON_SUNSHINE = [164, 169, 213, 228, 266, 287, 300, 278, 237, 207, 145, 143]

SUMMER_SOLSTICE = datetime(2024, 6, 21, 12, 0)


def make_site(latitude: float = 42.3, ground_albedo: float = 0.3) -> Site:
    return Site(latitude=latitude, longitude=-71.0, ground_albedo=ground_albedo)


def make_weather(sunshine_hours=None, elevation: float = 0.0, temperatures: bool = False) -> WeatherProfile:
    """Weather profile; full sunshine (300 h in every month) unless given."""
    kwargs = {}
    if temperatures:
        kwargs["lowest_temperatures"] = [-5.0, -4.0, 0.0, 5.0, 10.0, 15.0, 18.0, 18.0, 14.0, 8.0, 3.0, -2.0]
        kwargs["highest_temperatures"] = [2.0, 4.0, 8.0, 14.0, 19.0, 25.0, 28.0, 27.0, 23.0, 17.0, 11.0, 5.0]
    return WeatherProfile(
        city="Test",
        sunshine_hours=sunshine_hours if sunshine_hours is not None else [300.0] * 12,
        elevation=elevation,
        **kwargs,
    )


def make_config(**overrides) -> SimulationConfig:
    """Config with a lossless chain and coarse cells so tests run fast."""
    values = {"dust_loss": 0.0, "inverter_efficiency": 1.0, "cell_size": 0.5}
    values.update(overrides)
    return SimulationConfig(**values)


def make_foundation(fid: str = "f1", **kwargs) -> Foundation:
    return Foundation(fid, **kwargs)


def make_panel(pid: str = "p1", parent_id: str = "f1", **kwargs) -> SolarPanel:
    """Unit-efficiency 2 m × 2 m panel at the foundation centre."""
    values = {
        "lx": 2.0,
        "ly": 2.0,
        "efficiency": 1.0,
        "pmax_temperature_coefficient": 0.0,
        "dust_loss": 0.0,
    }
    values.update(kwargs)
    return SolarPanel(pid, parent_id=parent_id, **values)


def make_store(*items) -> ElementStore:
    return ElementStore(items)


def panel_store(count: int = 1, spacing: float = 5.0) -> ElementStore:
    """One foundation carrying ``count`` panels in a row along x."""
    store = ElementStore([make_foundation()])
    for i in range(count):
        store.add(make_panel(f"p{i + 1}", cx=(i - (count - 1) / 2) * spacing))
    return store


@pytest.fixture
def site() -> Site:
    return make_site()


@pytest.fixture
def weather() -> WeatherProfile:
    return make_weather()


@pytest.fixture
def clock() -> SimulatedClock:
    return SimulatedClock(SUMMER_SOLSTICE)


def make_context(store: ElementStore, config=None, site=None, weather=None, scene=None):
    """Run context with a clear-sky model and a shadow snapshot of ``store``."""
    from solaryield.buffers import BufferPool
    from solaryield.components import YieldContext
    from solaryield.occlusion import OcclusionTester
    from solaryield.physics import ClearSkyModel
    from solaryield.sampling import SurfaceSampler
    from solaryield.scene import build_scene

    pool = BufferPool()
    occlusion = OcclusionTester()
    occlusion.snapshot(build_scene(store) if scene is None else scene)
    return YieldContext(
        store=store,
        site=site or make_site(),
        weather=weather or make_weather(),
        config=config or make_config(),
        radiation=ClearSkyModel(),
        occlusion=occlusion,
        sampler=SurfaceSampler(pool),
        pool=pool,
    )

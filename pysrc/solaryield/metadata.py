"""Run metadata and provenance tracking."""

from __future__ import annotations

import json
from datetime import datetime as dt
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .models import SimulationConfig, SimulationJob, Site, WeatherProfile


def create_run_metadata(
    job: SimulationJob,
    site: Site,
    weather: WeatherProfile,
    config: SimulationConfig,
    element_ids: list[str],
    simulated_date: datetime,
) -> dict:
    """
    Create run metadata dictionary for provenance tracking.

    Args:
        job: The job that produced the results.
        site: Site of the simulation.
        weather: Weather profile used for time scaling.
        config: Simulation configuration.
        element_ids: Ids of the simulated elements.
        simulated_date: Simulated date the run was started from.

    Returns:
        Dictionary containing run metadata.
    """
    from . import __version__

    return {
        "solaryield_version": __version__,
        "run_timestamp": dt.now().isoformat(),
        "job": {
            "family": job.family.value,
            "granularity": job.granularity.value,
            "diagnostics": list(job.diagnostics),
        },
        "site": {
            "latitude": site.latitude,
            "longitude": site.longitude,
            "ground_albedo": site.ground_albedo,
        },
        "weather": {
            "city": weather.city,
            "elevation": weather.elevation,
            "sunshine_hours": list(weather.sunshine_hours),
        },
        "simulated_date": simulated_date.isoformat(),
        "config": config.to_dict(),
        "elements": list(element_ids),
    }


def save_run_metadata(metadata: dict, output_dir: str | Path, filename: str = "run_metadata.json") -> Path:
    """
    Save run metadata to JSON file.

    Args:
        metadata: Metadata dictionary from create_run_metadata().
        output_dir: Output directory.
        filename: Filename for metadata JSON (default: run_metadata.json).

    Returns:
        Path to saved metadata file.
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    metadata_path = output_path / filename

    with open(metadata_path, "w") as f:
        json.dump(metadata, f, indent=2)

    return metadata_path


def load_run_metadata(metadata_path: str | Path) -> dict:
    """
    Load run metadata from JSON file.

    Args:
        metadata_path: Path to metadata JSON file.

    Returns:
        Metadata dictionary.
    """
    with open(metadata_path) as f:
        metadata = json.load(f)

    return metadata

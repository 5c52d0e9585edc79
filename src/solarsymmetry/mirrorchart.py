"""CLI entry point for daylight chart generation.

Edit the where/year/month variables at the top, then run:
    uv run python src/solarsymmetry/mirrorchart.py
"""

import asyncio
import logging
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

from solarsymmetry.config import load_config  # noqa: E402
from solarsymmetry.geocoding import GeocodingError, search_locations  # noqa: E402
from solarsymmetry.models import MonthDataset, ViewMode  # noqa: E402
from solarsymmetry.pipeline import MonthPipeline  # noqa: E402
from solarsymmetry.renderers.static import save_static_chart  # noqa: E402
from solarsymmetry.twilight import TwilightCache, TwilightClient  # noqa: E402

where = "Montreal"
year = 2025
month = 9

logger = logging.getLogger("solarsymmetry.mirrorchart")


def _progress(dataset: MonthDataset) -> None:
    logger.info("%s: %d/%d chunks", dataset.state.value, dataset.chunks_done, dataset.chunks_total)


def main() -> None:
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        matches = search_locations(
            where,
            base_url=config.nominatim_url,
            user_agent=config.user_agent,
            timeout=config.request_timeout,
        )
    except GeocodingError as e:
        raise SystemExit(f"Geocoding failed: {e}")
    if not matches:
        raise SystemExit(f"Address not found: {where}")
    location = matches[0]

    client = TwilightClient(
        base_url=config.twilight_url,
        cache=TwilightCache(max_age=timedelta(hours=config.cache_hours)),
        timeout=config.request_timeout,
        user_agent=config.user_agent,
    )
    pipeline = MonthPipeline(client.get_twilight_times, _progress, config.pipeline_options())
    request = pipeline.begin(year, month, ViewMode.SYMMETRY, [location])
    dataset = asyncio.run(pipeline.run(request))
    if dataset is None:
        raise SystemExit(f"No data produced for {where} {year}-{month:02d}")

    path = save_static_chart(dataset)
    print(f"Saved: {path}")


if __name__ == "__main__":
    main()

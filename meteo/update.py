from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from meteo.adapters.base import BulletinAdapter
from meteo.adapters.noaa import NoaaBulletinAdapter
from meteo.adapters.sample import SampleBulletinAdapter
from meteo.bulletin import split_bulletin
from meteo.config import Settings, load_settings
from meteo.exceptions import MeteoError
from meteo.parsers.metar import parse_metar
from meteo.parsers.taf import parse_taf
from meteo.store import SupabaseStore, create_store

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 10


@dataclass
class UpdateSummary:
    total: int = 0
    processed: int = 0
    metar_success: int = 0
    taf_success: int = 0


def update_metar(ident: str, adapter: BulletinAdapter, store: SupabaseStore | None) -> bool:
    try:
        bulletin = split_bulletin(ident, adapter.fetch_metar(ident).text, "metar")
        if bulletin is None:
            return False
        record = parse_metar(bulletin.body, bulletin.issued_at)
        if record is None:
            logger.warning("METAR %s: no record produced from %r", ident, bulletin.body)
            return False
        if record.issues:
            logger.debug("METAR %s issues: %s", ident, record.issues)
        if store is not None:
            store.save_metar(record)
    except MeteoError as exc:
        logger.error("METAR %s: %s", ident, exc)
        return False
    return True


def update_taf(ident: str, adapter: BulletinAdapter, store: SupabaseStore | None) -> bool:
    try:
        bulletin = split_bulletin(ident, adapter.fetch_taf(ident).text, "taf")
        if bulletin is None:
            return False
        record = parse_taf(bulletin.body, bulletin.issued_at)
        if record is None:
            logger.warning("TAF %s: no record produced from %r", ident, bulletin.body)
            return False
        if record.issues:
            logger.debug("TAF %s issues: %s", ident, record.issues)
        if store is not None:
            store.save_taf(record)
    except MeteoError as exc:
        logger.error("TAF %s: %s", ident, exc)
        return False
    return True


def run_update(
    stations: Iterable[str],
    adapter: BulletinAdapter,
    store: SupabaseStore | None,
    settings: Settings,
    sleep: Callable[[float], None] = time.sleep,
) -> UpdateSummary:
    idents = [code.strip().upper() for code in stations if code and len(code.strip()) == 4]
    summary = UpdateSummary(total=len(idents))
    logger.info("Found %d aerodromes", summary.total)

    for ident in idents:
        if update_metar(ident, adapter, store):
            summary.metar_success += 1
        if update_taf(ident, adapter, store):
            summary.taf_success += 1
        summary.processed += 1
        if summary.processed % PROGRESS_EVERY == 0:
            logger.info("Progress: %d/%d aerodromes processed", summary.processed, summary.total)
        sleep(settings.pause_for(ident))

    logger.info(
        "Done: %d aerodromes processed, %d METARs and %d TAFs updated",
        summary.processed,
        summary.metar_success,
        summary.taf_success,
    )
    return summary


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch, parse and store METAR/TAF bulletins")
    parser.add_argument("--stations", nargs="*", default=None, help="ICAO codes (default: aerodromes table)")
    parser.add_argument("--sample-dir", type=Path, default=None, help="Read bulletins from sample files")
    parser.add_argument("--dry-run", action="store_true", help="Parse without writing to Supabase")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting METAR/TAF update")

    try:
        settings = load_settings()
        store = None if args.dry_run else create_store(settings)
        if args.stations:
            stations = args.stations
        elif store is not None:
            stations = store.list_stations()
        else:
            logger.error("--dry-run needs --stations")
            return 1
    except MeteoError as exc:
        logger.error("Update aborted: %s", exc)
        return 1

    if args.sample_dir:
        adapter: BulletinAdapter = SampleBulletinAdapter(args.sample_dir)
    else:
        adapter = NoaaBulletinAdapter(settings.metar_url, settings.taf_url, settings.http_timeout_s)

    run_update(stations, adapter, store, settings)
    return 0


if __name__ == "__main__":
    sys.exit(main())

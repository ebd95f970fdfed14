from __future__ import annotations

from pathlib import Path

from meteo.adapters.base import RawBulletin
from meteo.exceptions import FetchError


class SampleBulletinAdapter:
    def __init__(self, samples_dir: Path) -> None:
        self.metar_dir = samples_dir / "metar"
        self.taf_dir = samples_dir / "taf"

    def _read(self, directory: Path, ident: str) -> str:
        path = directory / f"{ident}.TXT"
        if not path.exists():
            raise FetchError(f"No sample bulletin at {path}")
        return path.read_text(encoding="utf-8").strip()

    def fetch_metar(self, ident: str) -> RawBulletin:
        return RawBulletin(ident=ident, text=self._read(self.metar_dir, ident), source="SAMPLE")

    def fetch_taf(self, ident: str) -> RawBulletin:
        return RawBulletin(ident=ident, text=self._read(self.taf_dir, ident), source="SAMPLE")

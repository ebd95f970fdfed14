from __future__ import annotations

import requests

from meteo.adapters.base import RawBulletin
from meteo.config import DEFAULT_METAR_URL, DEFAULT_TAF_URL
from meteo.exceptions import FetchError


class NoaaBulletinAdapter:
    user_agent = "meteo-ingest (METAR/TAF update job)"

    def __init__(
        self,
        metar_url_template: str = DEFAULT_METAR_URL,
        taf_url_template: str = DEFAULT_TAF_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.metar_url_template = metar_url_template
        self.taf_url_template = taf_url_template
        self.timeout = timeout
        self.session = session or requests.Session()

    def _fetch(self, url: str) -> str:
        try:
            resp = self.session.get(url, timeout=self.timeout, headers={"User-Agent": self.user_agent})
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(f"GET {url} failed: {exc}") from exc
        return resp.text.strip()

    def fetch_metar(self, ident: str) -> RawBulletin:
        text = self._fetch(self.metar_url_template.format(ident=ident))
        return RawBulletin(ident=ident, text=text, source="NOAA")

    def fetch_taf(self, ident: str) -> RawBulletin:
        text = self._fetch(self.taf_url_template.format(ident=ident))
        return RawBulletin(ident=ident, text=text, source="NOAA")

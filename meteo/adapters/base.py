from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass
class RawBulletin:
    ident: str
    text: str
    source: str


class BulletinAdapter(Protocol):
    def fetch_metar(self, ident: str) -> RawBulletin: ...

    def fetch_taf(self, ident: str) -> RawBulletin: ...

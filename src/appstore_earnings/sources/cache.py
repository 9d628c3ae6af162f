"""
File-backed caches for downloaded reports and the product mapping.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from ..models.cache import CacheEnvelope
from ..models.earnings import ProductInfo
from ..utils.fiscal_calendar import CalendarMonth
from .interfaces import CacheStore

logger = logging.getLogger(__name__)


class FileReportCache(CacheStore):
    """
    Stores raw report text as <reports_dir>/<key>.tsv.

    Keys are calendar months ("2025-09"). Closed months never change, so
    cached reports do not expire; the file modification time is the
    envelope timestamp.
    """

    def __init__(self, reports_dir: Path):
        self.reports_dir = Path(reports_dir)

    def _path(self, key: str) -> Path:
        return self.reports_dir / f"{key}.tsv"

    def read(self, key: str) -> Optional[CacheEnvelope]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            text = path.read_text(encoding="utf-8")
            timestamp = path.stat().st_mtime
        except OSError as e:
            logger.warning(f"Ignoring unreadable cached report {path}: {e}")
            return None
        return CacheEnvelope(timestamp=timestamp, payload=text)

    def write(self, key: str, payload, now: Optional[float] = None) -> CacheEnvelope:
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        path.write_text(payload, encoding="utf-8")
        logger.debug(f"Cached report at {path}")
        return CacheEnvelope.wrap(payload, now)

    # Month-level conveniences

    def is_cached(self, month: CalendarMonth) -> bool:
        return self.contains(month.cache_key)

    def read_report(self, month: CalendarMonth) -> Optional[str]:
        envelope = self.read(month.cache_key)
        return envelope.payload if envelope else None

    def write_report(self, month: CalendarMonth, text: str) -> None:
        self.write(month.cache_key, text)


class FileMappingCache(CacheStore):
    """
    Stores the product mapping as one JSON envelope:
    {"timestamp": <epoch seconds>, "data": {product_id: ProductInfo, ...}}

    The store holds a single entry; the key argument is accepted for the
    CacheStore interface and ignored.
    """

    KEY = "product-mapping"

    def __init__(self, mapping_file: Path):
        self.mapping_file = Path(mapping_file)

    def read(self, key: str = KEY) -> Optional[CacheEnvelope]:
        if not self.mapping_file.exists():
            return None
        try:
            with open(self.mapping_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable mapping cache {self.mapping_file}: {e}")
            return None
        return CacheEnvelope.from_dict(data)

    def write(self, key: str = KEY, payload=None, now: Optional[float] = None) -> CacheEnvelope:
        envelope = CacheEnvelope.wrap(payload or {}, now)
        self.mapping_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.mapping_file, "w", encoding="utf-8") as f:
            json.dump(envelope.to_dict(), f, indent=2)
        return envelope

    # Mapping-level conveniences

    def is_valid(self, now: float, ttl_seconds: float) -> bool:
        envelope = self.read()
        return envelope is not None and envelope.is_valid(now, ttl_seconds)

    def read_mapping(self) -> Optional[Dict[str, ProductInfo]]:
        """Cached mapping regardless of age, or None when absent or unreadable."""
        envelope = self.read()
        if envelope is None or not isinstance(envelope.payload, dict):
            return None
        try:
            return {key: ProductInfo.from_dict(value) for key, value in envelope.payload.items()}
        except AttributeError:
            logger.warning(f"Ignoring malformed mapping cache {self.mapping_file}")
            return None

    def write_mapping(self, mapping: Dict[str, ProductInfo], now: Optional[float] = None) -> CacheEnvelope:
        return self.write(self.KEY, {key: info.to_dict() for key, info in mapping.items()}, now)

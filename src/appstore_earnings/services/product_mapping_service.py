"""
Product mapping service.
Serves the product to parent app mapping from cache, rebuilding it when stale.
"""

import time
import logging
from typing import Dict, Optional

from ..models.earnings import ProductInfo
from ..sources.cache import FileMappingCache
from ..sources.interfaces import MappingSource

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60


class ProductMappingService:
    """Cache-first access to the product mapping."""

    def __init__(self, mapping_source: Optional[MappingSource], mapping_cache: FileMappingCache,
                 ttl_seconds: float = DEFAULT_TTL_SECONDS):
        """
        Args:
            mapping_source: Catalog source, or None when App Manager credentials
                are not configured (grouping is then disabled)
            mapping_cache: Where the mapping envelope is persisted
            ttl_seconds: Maximum age of a cached mapping
        """
        self.mapping_source = mapping_source
        self.mapping_cache = mapping_cache
        self.ttl_seconds = ttl_seconds

    @property
    def is_configured(self) -> bool:
        return self.mapping_source is not None

    def get_product_mapping(self, refresh: bool = False,
                            now: Optional[float] = None) -> Optional[Dict[str, ProductInfo]]:
        """
        Return the product mapping, or None when it is unavailable.

        A valid cached mapping is used unless `refresh` is set. A failed
        rebuild falls back to the stale cache before giving up.
        """
        if self.mapping_source is None:
            logger.debug("No App Manager credentials, skipping product mapping")
            return None

        now = time.time() if now is None else now

        if not refresh and self.mapping_cache.is_valid(now, self.ttl_seconds):
            mapping = self.mapping_cache.read_mapping()
            if mapping is not None:
                logger.info(f"Using cached product mapping ({len(mapping)} products)")
                return mapping

        logger.info("Building product mapping...")
        try:
            mapping = self.mapping_source.build_mapping()
        except Exception as e:
            # Grouping is optional; any failure here degrades to the stale cache or a flat list
            stale = self.mapping_cache.read_mapping()
            if stale:
                logger.warning(f"Could not build product mapping, using stale cache: {e}")
                return stale
            logger.warning(f"Could not build product mapping, showing products ungrouped: {e}")
            return None

        try:
            self.mapping_cache.write_mapping(mapping, now)
            logger.info(f"Product mapping cached ({len(mapping)} products)")
        except OSError as e:
            logger.warning(f"Could not cache product mapping: {e}")
        return mapping

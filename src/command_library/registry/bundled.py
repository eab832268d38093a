"""Bundled catalog loading.

The bundled catalog is read-only. It is served from the registry cache when
a fresh snapshot exists, otherwise located on disk, parsed, and written back
to the cache.
"""

import logging
from datetime import datetime
from pathlib import Path

from command_library.cache.capabilities import RegistryCache
from command_library.core.time.abc import Time
from command_library.errors import BundledCatalogNotFoundError, CacheError, CatalogFormatError
from command_library.registry.catalog_io import (
    catalog_from_mapping,
    catalog_to_mapping,
    read_catalog,
)
from command_library.registry.types import Catalog, CatalogEntry, search_entries

logger = logging.getLogger(__name__)

CATALOG_FILE_NAME = "slash_repos.yaml"

# Tried in order at every directory level while walking upward
CANDIDATE_PATHS = (
    Path("src") / "command_library" / "data" / CATALOG_FILE_NAME,
    Path("data") / CATALOG_FILE_NAME,
    Path("assets") / CATALOG_FILE_NAME,
    Path(CATALOG_FILE_NAME),
)


def packaged_catalog_path() -> Path:
    """Path of the catalog shipped inside the installed package."""
    return Path(__file__).parent.parent / "data" / CATALOG_FILE_NAME


def find_catalog_file(start_dir: Path, packaged_path: Path | None) -> Path | None:
    """Walk up from `start_dir` trying each candidate path, then fall back to the packaged asset."""
    cur = start_dir.resolve()
    for parent in [cur, *cur.parents]:
        for relative in CANDIDATE_PATHS:
            candidate = parent / relative
            if candidate.is_file():
                return candidate

    if packaged_path is not None and packaged_path.is_file():
        return packaged_path
    return None


class BundledRegistryLoader:
    """Loads the bundled catalog and answers queries over its flattened entries."""

    def __init__(
        self,
        start_dir: Path,
        time: Time,
        *,
        cache: RegistryCache | None = None,
        packaged_path: Path | None = None,
    ) -> None:
        self._start_dir = start_dir
        self._time = time
        self._cache = cache
        self._packaged_path = packaged_path
        self._catalog: Catalog | None = None
        self._entries: list[CatalogEntry] = []
        self._loaded_at: datetime | None = None
        self._source_path: Path | None = None

    @property
    def catalog(self) -> Catalog | None:
        return self._catalog

    @property
    def is_loaded(self) -> bool:
        return self._catalog is not None

    @property
    def loaded_at(self) -> datetime | None:
        return self._loaded_at

    @property
    def source_path(self) -> Path | None:
        """File the catalog was read from, or None when served from the cache."""
        return self._source_path

    def load(self, *, bypass_cache: bool = False) -> Catalog:
        """Load the bundled catalog.

        Args:
            bypass_cache: Skip the cache read (the result is still written back)

        Returns:
            The loaded catalog

        Raises:
            BundledCatalogNotFoundError: If no catalog file can be found
            CatalogFormatError: If the catalog file is malformed
        """
        catalog = None if bypass_cache else self._load_from_cache()

        if catalog is None:
            path = find_catalog_file(self._start_dir, self._packaged_path)
            if path is None:
                raise BundledCatalogNotFoundError(self._start_dir)
            logger.debug("Loading bundled catalog from %s", path)
            catalog = read_catalog(path)
            self._source_path = path
            self._store_in_cache(catalog)
        else:
            self._source_path = None

        self._catalog = catalog
        self._entries = catalog.entries()
        self._loaded_at = self._time.now()
        return catalog

    def _load_from_cache(self) -> Catalog | None:
        if self._cache is None or not self._cache.is_enabled():
            return None

        cached = self._cache.get_registry()
        if cached is None or cached.is_expired:
            return None

        try:
            catalog = catalog_from_mapping(cached.payload)
        except CatalogFormatError as e:
            logger.debug("Ignoring undecodable registry snapshot: %s", e)
            return None

        logger.debug("Bundled catalog served from cache (cached at %s)", cached.cached_at)
        return catalog

    def _store_in_cache(self, catalog: Catalog) -> None:
        if self._cache is None or not self._cache.is_enabled():
            return
        try:
            self._cache.put_registry(catalog_to_mapping(catalog), validator="")
        except CacheError as e:
            logger.warning("Failed to cache bundled catalog: %s", e)

    def all_entries(self) -> list[CatalogEntry]:
        return list(self._entries)

    def search(self, query: str) -> list[CatalogEntry]:
        return search_entries(self._entries, query)

    def filter_by_tags(self, tags: list[str]) -> list[CatalogEntry]:
        """Entries carrying any of `tags` (case-insensitive exact match)."""
        if not tags:
            return list(self._entries)
        return [entry for entry in self._entries if entry.has_any_tag(tags)]

    def filter_by_category(self, key: str) -> list[CatalogEntry]:
        if not key:
            return list(self._entries)
        return [entry for entry in self._entries if entry.category_key == key]

    def category_entries(self, key: str) -> list[CatalogEntry]:
        if self._catalog is None:
            return []
        category = self._catalog.category(key)
        if category is None:
            return []
        return list(category.attributed_entries())

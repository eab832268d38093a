"""The user's personal catalog at ``~/.config/command_library/slash_repos.yaml``.

Every mutation replaces the in-memory catalog and saves before returning. A
file that exists but cannot be parsed is never overwritten.
"""

import logging
from dataclasses import replace
from pathlib import Path

import yaml

from command_library.core.time.abc import Time
from command_library.errors import CatalogFormatError, UserRegistryCorruptError, UserRegistryError
from command_library.registry.catalog_io import catalog_from_mapping, write_catalog
from command_library.registry.types import Catalog, CatalogEntry, Category

logger = logging.getLogger(__name__)


def normalize_key(key: str) -> str:
    """Lowercase a category key and replace spaces with underscores."""
    return key.strip().lower().replace(" ", "_")


class UserRegistryStore:
    def __init__(self, path: Path, time: Time) -> None:
        self._path = path
        self._time = time
        self._catalog: Catalog | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_loaded(self) -> bool:
        return self._catalog is not None

    @property
    def catalog(self) -> Catalog:
        return self._require_loaded()

    @property
    def categories(self) -> tuple[Category, ...]:
        if self._catalog is None:
            return ()
        return self._catalog.categories

    def load(self) -> Catalog:
        """Load the user catalog, creating and saving an empty one when the file is missing.

        Raises:
            UserRegistryCorruptError: If the file exists but cannot be parsed
        """
        if not self._path.exists():
            logger.debug("Creating empty user registry at %s", self._path)
            self._catalog = Catalog.empty(self._today())
            self.save()
            return self._catalog

        content = self._path.read_text(encoding="utf-8")
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise UserRegistryCorruptError(self._path, f"invalid YAML: {e}") from e

        if data is None:
            self._catalog = Catalog.empty(self._today())
            return self._catalog

        try:
            self._catalog = catalog_from_mapping(data, self._path)
        except CatalogFormatError as e:
            raise UserRegistryCorruptError(self._path, e.reason) from e
        return self._catalog

    def save(self) -> None:
        """Stamp last_updated and write the catalog atomically."""
        catalog = self._require_loaded().with_last_updated(self._today())
        write_catalog(self._path, catalog)
        self._catalog = catalog

    def add_category(self, key: str, name: str, description: str = "", icon: str = "") -> str:
        """Create a user category.

        Returns:
            The normalised category key

        Raises:
            UserRegistryError: If the key is empty or already exists
        """
        catalog = self._require_loaded()
        normalized = normalize_key(key)
        if not normalized:
            raise UserRegistryError("Category key cannot be empty")
        if catalog.category(normalized) is not None:
            raise UserRegistryError(f"Category '{normalized}' already exists")

        category = Category(
            key=normalized,
            name=name or normalized,
            description=description,
            icon=icon,
            user_created=True,
        )
        self._replace(catalog.with_category(category))
        return normalized

    def add_repository(self, category_key: str, entry: CatalogEntry) -> CatalogEntry:
        """Append an entry to a category.

        The stored entry gets `added_at` set to now and is never marked verified.

        Raises:
            UserRegistryError: If the category is unknown or already has the URL
        """
        catalog = self._require_loaded()
        category = self._require_category(catalog, category_key)
        if category.has_url(entry.url):
            raise UserRegistryError(
                f"Repository with URL '{entry.url}' already exists in category '{category.key}'"
            )

        stored = replace(entry.without_category(), added_at=self._time.now(), verified=False)
        self._replace(catalog.with_category(category.with_entries((*category.entries, stored))))
        return stored.with_category(category)

    def remove_repository(self, category_key: str, url: str) -> None:
        """Remove the entry with `url` from a category.

        Raises:
            UserRegistryError: If the category or the URL is not found
        """
        catalog = self._require_loaded()
        category = self._require_category(catalog, category_key)
        if not category.has_url(url):
            raise UserRegistryError(
                f"Repository with URL '{url}' not found in category '{category.key}'"
            )

        remaining = tuple(entry for entry in category.entries if entry.url != url)
        self._replace(catalog.with_category(category.with_entries(remaining)))

    def update_repository(self, category_key: str, url: str, entry: CatalogEntry) -> CatalogEntry:
        """Replace the entry with `url`, keeping its original `added_at`.

        Raises:
            UserRegistryError: If the category or the URL is not found
        """
        catalog = self._require_loaded()
        category = self._require_category(catalog, category_key)
        if entry.url != url and category.has_url(entry.url):
            raise UserRegistryError(
                f"Repository with URL '{entry.url}' already exists in category '{category.key}'"
            )

        updated_entries: list[CatalogEntry] = []
        stored: CatalogEntry | None = None
        for existing in category.entries:
            if existing.url == url and stored is None:
                stored = replace(
                    entry.without_category(),
                    added_at=existing.added_at,
                    last_checked=self._time.now(),
                )
                updated_entries.append(stored)
            else:
                updated_entries.append(existing)

        if stored is None:
            raise UserRegistryError(
                f"Repository with URL '{url}' not found in category '{category.key}'"
            )

        self._replace(catalog.with_category(category.with_entries(tuple(updated_entries))))
        return stored.with_category(category)

    def move_repository(
        self, from_key: str, to_key: str, url: str, entry: CatalogEntry
    ) -> CatalogEntry:
        """Move the entry with `url` into another category, replacing it with `entry`.

        Both categories change in a single save. A rejected move writes nothing.
        The original `added_at` is kept and `last_checked` is stamped.

        Raises:
            UserRegistryError: If either category is unknown, the URL is not in the
                source category, or the destination already has the entry's URL
        """
        catalog = self._require_loaded()
        source = self._require_category(catalog, from_key)
        destination = self._require_category(catalog, to_key)

        existing = next((e for e in source.entries if e.url == url), None)
        if existing is None:
            raise UserRegistryError(
                f"Repository with URL '{url}' not found in category '{source.key}'"
            )
        if destination.has_url(entry.url):
            raise UserRegistryError(
                f"Repository with URL '{entry.url}' already exists in category "
                f"'{destination.key}'"
            )

        stored = replace(
            entry.without_category(),
            added_at=existing.added_at,
            last_checked=self._time.now(),
            verified=False,
        )
        remaining = tuple(e for e in source.entries if e.url != url)
        moved = catalog.with_category(source.with_entries(remaining)).with_category(
            destination.with_entries((*destination.entries, stored))
        )
        self._replace(moved)
        return stored.with_category(destination)

    def find(self, url: str) -> tuple[CatalogEntry, str] | None:
        """Return the first entry with `url` (attributed) and its category key."""
        if self._catalog is None:
            return None
        for category in self._catalog.categories:
            for entry in category.entries:
                if entry.url == url:
                    return entry.with_category(category), category.key
        return None

    def has_repository(self, url: str) -> bool:
        return self.find(url) is not None

    def all_entries(self) -> list[CatalogEntry]:
        if self._catalog is None:
            return []
        return self._catalog.entries()

    def category_entries(self, key: str) -> list[CatalogEntry]:
        if self._catalog is None:
            return []
        category = self._catalog.category(normalize_key(key))
        if category is None:
            return []
        return list(category.attributed_entries())

    def _replace(self, catalog: Catalog) -> None:
        self._catalog = catalog
        self.save()

    def _require_loaded(self) -> Catalog:
        if self._catalog is None:
            raise RuntimeError("User registry not loaded; call load() first")
        return self._catalog

    def _require_category(self, catalog: Catalog, key: str) -> Category:
        category = catalog.category(normalize_key(key))
        if category is None:
            raise UserRegistryError(f"Category '{key}' does not exist")
        return category

    def _today(self) -> str:
        return self._time.now().strftime("%Y-%m-%d")

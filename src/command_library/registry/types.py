"""Catalog data model shared by the bundled loader, user store and merger."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from pathlib import Path

DEFAULT_CATALOG_VERSION = "1.0"


@dataclass(frozen=True)
class CatalogEntry:
    """One curated repository.

    The ``category_*`` fields are attribution attached when the entry is read
    or merged; they are never written back to a catalog file.
    """

    name: str
    url: str
    description: str = ""
    author: str = ""
    tags: tuple[str, ...] = ()
    verified: bool = False
    language: str | None = None
    difficulty: str | None = None
    last_checked: datetime | None = None
    added_at: datetime | None = None
    category_key: str = ""
    category_name: str = ""
    category_icon: str = ""

    def with_category(self, category: "Category") -> "CatalogEntry":
        return replace(
            self,
            category_key=category.key,
            category_name=category.name,
            category_icon=category.icon,
        )

    def without_category(self) -> "CatalogEntry":
        return replace(self, category_key="", category_name="", category_icon="")

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on name, description, author, tags and category name.

        `query` must already be lowercased.
        """
        fields = [self.name, self.description, self.author, *self.tags, self.category_name]
        return any(query in field.lower() for field in fields)

    def has_any_tag(self, tags: list[str]) -> bool:
        wanted = {tag.lower() for tag in tags}
        return any(tag.lower() in wanted for tag in self.tags)


def search_entries(entries: list[CatalogEntry], query: str) -> list[CatalogEntry]:
    """Filter entries by a free-text query; an empty query returns everything."""
    normalized = query.strip().lower()
    if not normalized:
        return list(entries)
    return [entry for entry in entries if entry.matches(normalized)]


@dataclass(frozen=True)
class Category:
    key: str
    name: str
    description: str = ""
    icon: str = ""
    user_created: bool = False
    entries: tuple[CatalogEntry, ...] = ()

    def with_entries(self, entries: tuple[CatalogEntry, ...]) -> "Category":
        return replace(self, entries=entries)

    def attributed_entries(self) -> tuple[CatalogEntry, ...]:
        return tuple(entry.with_category(self) for entry in self.entries)

    def has_url(self, url: str) -> bool:
        return any(entry.url == url for entry in self.entries)


def _find_category(categories: tuple[Category, ...], key: str) -> Category | None:
    for category in categories:
        if category.key == key:
            return category
    return None


def _flatten(categories: tuple[Category, ...]) -> list[CatalogEntry]:
    return [entry for category in categories for entry in category.attributed_entries()]


@dataclass(frozen=True)
class Catalog:
    """A catalog document: the bundled registry or the user registry.

    Categories keep file order. Mutations return a new Catalog.
    """

    version: str
    last_updated: str
    categories: tuple[Category, ...] = ()

    def category(self, key: str) -> Category | None:
        return _find_category(self.categories, key)

    def entries(self) -> list[CatalogEntry]:
        return _flatten(self.categories)

    def with_category(self, category: Category) -> "Catalog":
        """Return a catalog with `category` replacing the one with the same key, or appended."""
        if self.category(category.key) is None:
            return replace(self, categories=(*self.categories, category))
        return replace(
            self,
            categories=tuple(category if c.key == category.key else c for c in self.categories),
        )

    def with_last_updated(self, last_updated: str) -> "Catalog":
        return replace(self, last_updated=last_updated)

    @staticmethod
    def empty(today: str) -> "Catalog":
        return Catalog(version=DEFAULT_CATALOG_VERSION, last_updated=today, categories=())


@dataclass(frozen=True)
class MergedRegistry:
    """Bundled and user catalogs combined. Recomputed from scratch on every change."""

    version: str
    last_updated: str
    categories: tuple[Category, ...]
    has_bundled_registry: bool
    has_user_registry: bool
    user_registry_path: Path | None

    def category(self, key: str) -> Category | None:
        return _find_category(self.categories, key)

    def entries(self) -> list[CatalogEntry]:
        return _flatten(self.categories)


class RepositorySource(Enum):
    BUNDLED = "bundled"
    USER = "user"


@dataclass(frozen=True)
class RepositoryMetadata:
    source: RepositorySource
    user_created: bool
    added_at: datetime | None
    last_checked: datetime | None


@dataclass(frozen=True)
class CategoryInput:
    """Category selection for a new repository; `is_new` creates it first."""

    key: str
    is_new: bool = False
    name: str = ""
    description: str = ""
    icon: str = ""


@dataclass(frozen=True)
class RepositoryInput:
    url: str
    name: str
    category: CategoryInput
    description: str = ""
    author: str = ""
    tags: tuple[str, ...] = ()

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(
            name=self.name,
            url=self.url,
            description=self.description,
            author=self.author,
            tags=self.tags,
        )

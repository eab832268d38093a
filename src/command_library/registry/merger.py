"""Combines the bundled and user catalogs into one view."""

from pathlib import Path

from command_library.registry.types import (
    DEFAULT_CATALOG_VERSION,
    Catalog,
    CatalogEntry,
    Category,
    MergedRegistry,
    RepositoryMetadata,
    RepositorySource,
    search_entries,
)


def merge_catalogs(
    bundled: Catalog | None, user: Catalog | None, user_registry_path: Path | None
) -> MergedRegistry:
    """Merge the two catalogs.

    Bundled categories come first in file order. A user category with the
    same key contributes only entries whose URL is not already present in
    that category; any other user category is appended unchanged. Categories
    are never renamed or dropped, and the result depends only on the inputs.
    """
    categories: dict[str, Category] = {}

    if bundled is not None:
        for category in bundled.categories:
            categories[category.key] = Category(
                key=category.key,
                name=category.name,
                description=category.description,
                icon=category.icon,
                user_created=False,
                entries=category.entries,
            )

    if user is not None:
        for user_category in user.categories:
            existing = categories.get(user_category.key)
            if existing is None:
                categories[user_category.key] = user_category
                continue

            seen = {entry.url for entry in existing.entries}
            additions: list[CatalogEntry] = []
            for entry in user_category.entries:
                if entry.url in seen:
                    continue
                seen.add(entry.url)
                additions.append(entry)
            categories[user_category.key] = existing.with_entries((*existing.entries, *additions))

    return MergedRegistry(
        version=_merged_version(bundled, user),
        last_updated=_merged_last_updated(bundled, user),
        categories=tuple(categories.values()),
        has_bundled_registry=bundled is not None,
        has_user_registry=user is not None,
        user_registry_path=user_registry_path,
    )


def _merged_version(bundled: Catalog | None, user: Catalog | None) -> str:
    if bundled is not None and bundled.version:
        return bundled.version
    if user is not None and user.version:
        return user.version
    return DEFAULT_CATALOG_VERSION


def _merged_last_updated(bundled: Catalog | None, user: Catalog | None) -> str:
    stamps = [c.last_updated for c in (bundled, user) if c is not None and c.last_updated]
    # ISO dates order lexicographically
    return max(stamps, default="")


class RegistryMerger:
    """Holds the latest merge result and answers queries against it."""

    def __init__(
        self,
        bundled: Catalog | None,
        user: Catalog | None,
        user_registry_path: Path | None = None,
    ) -> None:
        self._bundled = bundled
        self._user = user
        self._user_registry_path = user_registry_path
        self._merged: MergedRegistry | None = None

    @property
    def merged(self) -> MergedRegistry | None:
        return self._merged

    def merge(self) -> MergedRegistry:
        self._merged = merge_catalogs(self._bundled, self._user, self._user_registry_path)
        return self._merged

    def all_entries(self) -> list[CatalogEntry]:
        if self._merged is None:
            return []
        return self._merged.entries()

    def category_entries(self, key: str) -> list[CatalogEntry]:
        if self._merged is None:
            return []
        category = self._merged.category(key)
        if category is None:
            return []
        return list(category.attributed_entries())

    def search(self, query: str) -> list[CatalogEntry]:
        return search_entries(self.all_entries(), query)

    def find_entry(self, url: str) -> CatalogEntry | None:
        """First entry with `url` in merged order (bundled categories first)."""
        for entry in self.all_entries():
            if entry.url == url:
                return entry
        return None

    def is_user_repository(self, url: str) -> bool:
        if self._user is None:
            return False
        return any(category.has_url(url) for category in self._user.categories)

    def repository_source(self, url: str) -> RepositorySource:
        if self.is_user_repository(url):
            return RepositorySource.USER
        return RepositorySource.BUNDLED

    def repository_metadata(self, url: str) -> RepositoryMetadata | None:
        if self._user is not None:
            for entry in self._user.entries():
                if entry.url == url:
                    return RepositoryMetadata(
                        source=RepositorySource.USER,
                        user_created=True,
                        added_at=entry.added_at,
                        last_checked=entry.last_checked,
                    )

        if self._bundled is not None:
            for entry in self._bundled.entries():
                if entry.url == url:
                    return RepositoryMetadata(
                        source=RepositorySource.BUNDLED,
                        user_created=False,
                        added_at=None,
                        last_checked=entry.last_checked,
                    )
        return None

    def validate_merge(self) -> list[str]:
        """Advisory diagnostics about the inputs and the merge result."""
        if self._bundled is None and self._user is None:
            return ["No registries available to merge"]

        warnings: list[str] = []
        if self._bundled is None:
            warnings.append("No bundled registry found - only user repositories will be available")
        if self._user is None:
            warnings.append("No user registry found - only bundled repositories will be available")

        if self._merged is not None:
            url_categories: dict[str, list[str]] = {}
            for category in self._merged.categories:
                for entry in category.entries:
                    keys = url_categories.setdefault(entry.url, [])
                    if category.key not in keys:
                        keys.append(category.key)

            for url, keys in url_categories.items():
                if len(keys) > 1:
                    warnings.append(
                        f"Repository URL '{url}' appears in multiple categories: {', '.join(keys)}"
                    )

        return warnings

"""Registry orchestration: bundled loader + user store + merger."""

import logging

from command_library.cache.capabilities import RepositoryCache
from command_library.errors import (
    BundledCatalogNotFoundError,
    CacheError,
    CatalogFormatError,
    InvalidRepositoryUrlError,
    UserRegistryError,
)
from command_library.registry.bundled import BundledRegistryLoader
from command_library.registry.merger import RegistryMerger
from command_library.registry.types import (
    CatalogEntry,
    Category,
    CategoryInput,
    MergedRegistry,
    RepositoryInput,
)
from command_library.registry.user_store import UserRegistryStore, normalize_key
from command_library.remote.url_parser import parse_repository_url

logger = logging.getLogger(__name__)


class RegistryService:
    """Single entry point for reading and editing the combined registry.

    Every mutation of the user catalog is saved by the store and followed by
    a fresh merge, so `merged` always reflects what is on disk.
    """

    def __init__(
        self,
        bundled: BundledRegistryLoader,
        user_store: UserRegistryStore,
        *,
        repository_cache: RepositoryCache | None = None,
    ) -> None:
        self._bundled = bundled
        self._user_store = user_store
        self._repository_cache = repository_cache
        self._merger: RegistryMerger | None = None
        self._warnings: list[str] = []

    @property
    def is_loaded(self) -> bool:
        return self._merger is not None and self._merger.merged is not None

    @property
    def merged(self) -> MergedRegistry | None:
        if self._merger is None:
            return None
        return self._merger.merged

    @property
    def warnings(self) -> list[str]:
        return list(self._warnings)

    @property
    def user_store(self) -> UserRegistryStore:
        return self._user_store

    def load_registries(self) -> list[str]:
        """Load both catalogs and merge them.

        A missing or malformed bundled catalog is reported as a warning and
        the merge goes ahead without it. User registry errors propagate.

        Returns:
            Advisories from loading and merging
        """
        load_warnings: list[str] = []
        try:
            self._bundled.load()
        except (BundledCatalogNotFoundError, CatalogFormatError) as e:
            logger.warning("%s", e)
            load_warnings.append(f"Failed to load bundled registry: {e}")

        self._user_store.load()
        self._remerge(load_warnings)
        return self.warnings

    def refresh_bundled(self) -> None:
        """Reload the bundled catalog from disk and re-merge.

        Raises:
            BundledCatalogNotFoundError: If no catalog file can be found
        """
        self._bundled.load(bypass_cache=True)
        self._remerge([])

    def add_custom_repository(self, repo_input: RepositoryInput) -> CatalogEntry:
        """Add a repository to the user catalog, creating its category when asked.

        Raises:
            UserRegistryError: If the category or URL is rejected
        """
        category_key = self._ensure_user_category(repo_input.category)
        stored = self._user_store.add_repository(category_key, repo_input.to_entry())
        logger.info("Added %s to category '%s'", stored.url, category_key)
        self._remerge([])
        return stored

    def remove_custom_repository(self, url: str) -> None:
        """Remove a user repository and evict its cached listing.

        Raises:
            UserRegistryError: If the URL is not in the user catalog
        """
        found = self._user_store.find(url)
        if found is None:
            raise UserRegistryError(f"Repository not found in user registry: {url}")

        _, category_key = found
        self._user_store.remove_repository(category_key, url)
        logger.info("Removed %s from category '%s'", url, category_key)
        self._evict_listing(url)
        self._remerge([])

    def update_custom_repository(self, url: str, repo_input: RepositoryInput) -> CatalogEntry:
        """Update a user repository, moving it when the category changes.

        Raises:
            UserRegistryError: If the URL is not in the user catalog, or the
                target category already holds the new URL
        """
        found = self._user_store.find(url)
        if found is None:
            raise UserRegistryError(f"Repository not found in user registry: {url}")

        _, old_category_key = found
        new_category_key = self._ensure_user_category(repo_input.category)
        entry = repo_input.to_entry()

        if new_category_key != old_category_key:
            stored = self._user_store.move_repository(
                old_category_key, new_category_key, url, entry
            )
        else:
            stored = self._user_store.update_repository(old_category_key, url, entry)

        if repo_input.url != url:
            self._evict_listing(url)
        self._remerge([])
        return stored

    def search(self, query: str) -> list[CatalogEntry]:
        if self._merger is None:
            return []
        return self._merger.search(query)

    def all_entries(self) -> list[CatalogEntry]:
        if self._merger is None:
            return []
        return self._merger.all_entries()

    def category_entries(self, key: str) -> list[CatalogEntry]:
        if self._merger is None:
            return []
        return self._merger.category_entries(key)

    def find_entry(self, url: str) -> CatalogEntry | None:
        if self._merger is None:
            return None
        return self._merger.find_entry(url)

    def is_custom_repository(self, url: str) -> bool:
        if self._merger is None:
            return False
        return self._merger.is_user_repository(url)

    def get_custom_repository(self, url: str) -> CatalogEntry | None:
        found = self._user_store.find(url)
        if found is None:
            return None
        return found[0]

    def user_categories(self) -> tuple[Category, ...]:
        return self._user_store.categories

    def available_categories(self) -> dict[str, str]:
        """Category key to display name for every merged category."""
        merged = self.merged
        if merged is None:
            return {}
        return {category.key: category.name for category in merged.categories}

    def _ensure_user_category(self, category_input: CategoryInput) -> str:
        if category_input.is_new:
            return self._user_store.add_category(
                category_input.key,
                category_input.name,
                category_input.description,
                category_input.icon,
            )

        key = normalize_key(category_input.key)
        if self._user_store.catalog.category(key) is not None:
            return key

        # Adding to a bundled category: mirror it in the user catalog
        bundled_category = self.merged.category(key) if self.merged is not None else None
        if bundled_category is None:
            raise UserRegistryError(f"Category '{category_input.key}' does not exist")
        return self._user_store.add_category(
            key, bundled_category.name, bundled_category.description, bundled_category.icon
        )

    def _evict_listing(self, url: str) -> None:
        if self._repository_cache is None or not self._repository_cache.is_enabled():
            return
        try:
            source = parse_repository_url(url)
        except InvalidRepositoryUrlError:
            logger.debug("Not evicting listing for unparseable URL %s", url)
            return

        key = self._repository_cache.repository_key(
            source.owner, source.repo, source.branch, source.path
        )
        try:
            self._repository_cache.evict_repository(key)
        except CacheError as e:
            logger.warning("Failed to evict cached listing for %s: %s", url, e)

    def _remerge(self, load_warnings: list[str]) -> None:
        self._merger = RegistryMerger(
            self._bundled.catalog,
            self._user_store.catalog if self._user_store.is_loaded else None,
            self._user_store.path,
        )
        self._merger.merge()
        advisories = self._merger.validate_merge()
        for advisory in advisories:
            logger.warning("Registry merge warning: %s", advisory)
        self._warnings = [*load_warnings, *advisories]

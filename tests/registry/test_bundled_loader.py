"""Tests for bundled catalog discovery, caching and queries."""

from pathlib import Path

import pytest

from command_library.cache.store import CacheStore
from command_library.core.config import CacheSettings
from command_library.core.time.fake import FakeTime
from command_library.errors import BundledCatalogNotFoundError
from command_library.registry.bundled import (
    BundledRegistryLoader,
    find_catalog_file,
    packaged_catalog_path,
)
from tests.test_utils.builders import SAMPLE_CATALOG_YAML, write_bundled_catalog


def _missing(tmp_path: Path) -> Path:
    return tmp_path / "missing" / "slash_repos.yaml"


def test_find_catalog_file_walks_up(tmp_path: Path) -> None:
    """Test the catalog is found in a candidate location of an ancestor directory."""
    catalog_path = write_bundled_catalog(tmp_path)
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert find_catalog_file(nested, None) == catalog_path.resolve()


def test_find_catalog_file_prefers_earlier_candidates(tmp_path: Path) -> None:
    """Test src/command_library/data wins over data/ in the same directory."""
    write_bundled_catalog(tmp_path)
    preferred = tmp_path / "src" / "command_library" / "data" / "slash_repos.yaml"
    preferred.parent.mkdir(parents=True)
    preferred.write_text(SAMPLE_CATALOG_YAML, encoding="utf-8")

    assert find_catalog_file(tmp_path, None) == preferred.resolve()


def test_find_catalog_file_falls_back_to_packaged(tmp_path: Path) -> None:
    """Test the packaged asset is used when nothing is found walking up."""
    project = tmp_path / "project"
    project.mkdir()
    packaged = tmp_path / "pkg" / "slash_repos.yaml"
    packaged.parent.mkdir()
    packaged.write_text(SAMPLE_CATALOG_YAML, encoding="utf-8")

    assert find_catalog_file(project, packaged) == packaged


def test_packaged_catalog_ships_with_package() -> None:
    """Test the installed package carries a catalog file."""
    assert packaged_catalog_path().is_file()


def test_load_without_catalog_raises(tmp_path: Path) -> None:
    """Test a missing catalog raises BundledCatalogNotFoundError."""
    project = tmp_path / "project"
    project.mkdir()
    loader = BundledRegistryLoader(project, FakeTime(), packaged_path=_missing(tmp_path))

    with pytest.raises(BundledCatalogNotFoundError):
        loader.load()

    assert loader.is_loaded is False


def test_load_from_file_records_source(tmp_path: Path) -> None:
    """Test loading from disk records the file and load time."""
    time = FakeTime()
    catalog_path = write_bundled_catalog(tmp_path)
    loader = BundledRegistryLoader(tmp_path, time, packaged_path=_missing(tmp_path))

    catalog = loader.load()

    assert loader.is_loaded is True
    assert loader.source_path == catalog_path.resolve()
    assert loader.loaded_at == time.now()
    assert len(catalog.entries()) == 3


def test_load_is_served_from_cache(tmp_path: Path) -> None:
    """Test a second loader reads the fresh snapshot without touching the file."""
    time = FakeTime()
    project = tmp_path / "project"
    catalog_path = write_bundled_catalog(project)
    cache = CacheStore(CacheSettings(), tmp_path / "cache", time)

    BundledRegistryLoader(project, time, cache=cache, packaged_path=_missing(tmp_path)).load()
    catalog_path.unlink()

    second = BundledRegistryLoader(project, time, cache=cache, packaged_path=_missing(tmp_path))
    catalog = second.load()

    assert second.source_path is None
    assert [c.key for c in catalog.categories] == ["development", "security"]
    assert cache.get_stats().registry_hits == 1


def test_expired_snapshot_reloads_from_file(tmp_path: Path) -> None:
    """Test an expired snapshot is ignored in favour of the file."""
    time = FakeTime()
    project = tmp_path / "project"
    write_bundled_catalog(project)
    cache = CacheStore(CacheSettings(ttl_hours=1), tmp_path / "cache", time)
    BundledRegistryLoader(project, time, cache=cache, packaged_path=_missing(tmp_path)).load()

    time.sleep(3600)
    loader = BundledRegistryLoader(project, time, cache=cache, packaged_path=_missing(tmp_path))
    loader.load()

    assert loader.source_path is not None


def test_bypass_cache_reads_file(tmp_path: Path) -> None:
    """Test bypass_cache skips a fresh snapshot."""
    time = FakeTime()
    project = tmp_path / "project"
    write_bundled_catalog(project)
    cache = CacheStore(CacheSettings(), tmp_path / "cache", time)
    loader = BundledRegistryLoader(project, time, cache=cache, packaged_path=_missing(tmp_path))
    loader.load()

    loader.load(bypass_cache=True)

    assert loader.source_path is not None


def _loaded(tmp_path: Path) -> BundledRegistryLoader:
    write_bundled_catalog(tmp_path)
    loader = BundledRegistryLoader(tmp_path, FakeTime(), packaged_path=_missing(tmp_path))
    loader.load()
    return loader


def test_search_matches_tags_by_substring(tmp_path: Path) -> None:
    """Test search covers tags, so 'secur' matches security and security-audit."""
    loader = _loaded(tmp_path)

    names = [entry.name for entry in loader.search("SECUR")]

    assert names == ["Claude Command Suite", "Audit Commands"]


def test_search_empty_query_returns_all(tmp_path: Path) -> None:
    """Test a blank query returns every entry."""
    loader = _loaded(tmp_path)

    assert len(loader.search("  ")) == 3


def test_filter_by_tags_is_exact(tmp_path: Path) -> None:
    """Test tag filtering needs a whole-tag match, case-insensitively."""
    loader = _loaded(tmp_path)

    assert [e.name for e in loader.filter_by_tags(["WORKFLOW"])] == ["Workflow Tools"]
    assert loader.filter_by_tags(["secur"]) == []
    assert len(loader.filter_by_tags([])) == 3


def test_filter_by_category(tmp_path: Path) -> None:
    """Test category filtering and lookup of an unknown category."""
    loader = _loaded(tmp_path)

    assert [e.name for e in loader.filter_by_category("security")] == ["Audit Commands"]
    assert len(loader.category_entries("development")) == 2
    assert loader.category_entries("unknown") == []

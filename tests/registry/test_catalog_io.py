"""Tests for catalog YAML reading and writing."""

from datetime import UTC, datetime
from pathlib import Path

import pytest
import yaml

from command_library.errors import CatalogFormatError
from command_library.registry.catalog_io import (
    catalog_from_mapping,
    catalog_to_mapping,
    read_catalog,
    write_catalog,
)
from command_library.registry.types import Catalog, CatalogEntry, Category
from tests.test_utils.builders import SAMPLE_CATALOG_YAML


def test_read_catalog_keeps_category_order(tmp_path: Path) -> None:
    """Test categories and entries come back in file order."""
    path = tmp_path / "slash_repos.yaml"
    path.write_text(SAMPLE_CATALOG_YAML, encoding="utf-8")

    catalog = read_catalog(path)

    assert catalog.version == "1.0"
    assert catalog.last_updated == "2024-01-10"
    assert [c.key for c in catalog.categories] == ["development", "security"]
    development = catalog.category("development")
    assert development is not None
    assert [e.name for e in development.entries] == ["Claude Command Suite", "Workflow Tools"]
    assert development.entries[0].tags == ("code-review", "security")
    assert development.entries[0].verified is True


def test_entries_are_attributed_with_category(tmp_path: Path) -> None:
    """Test flattened entries carry their category key, name and icon."""
    path = tmp_path / "slash_repos.yaml"
    path.write_text(SAMPLE_CATALOG_YAML, encoding="utf-8")

    entries = read_catalog(path).entries()

    assert entries[-1].category_key == "security"
    assert entries[-1].category_name == "Security"
    assert entries[-1].category_icon == "🔒"


def test_unquoted_yaml_dates_are_accepted() -> None:
    """Test YAML date scalars become UTC datetimes and ISO strings."""
    data = yaml.safe_load(
        "last_updated: 2024-01-10\n"
        "categories:\n"
        "  tools:\n"
        "    name: Tools\n"
        "    repositories:\n"
        "      - name: A\n"
        "        url: https://github.com/a/a\n"
        "        last_checked: 2024-01-09\n"
    )

    catalog = catalog_from_mapping(data)

    assert catalog.last_updated == "2024-01-10"
    assert catalog.entries()[0].last_checked == datetime(2024, 1, 9, tzinfo=UTC)


@pytest.mark.parametrize(
    ("document", "reason"),
    [
        ([], "document is not a mapping"),
        ({"categories": []}, "'categories' must be a mapping"),
        ({"categories": {"x": {"repositories": [{"url": "u"}]}}}, "has no name"),
        ({"categories": {"x": {"repositories": [{"name": "n"}]}}}, "has no url"),
        (
            {"categories": {"x": {"repositories": [{"name": "n", "url": "u", "tags": "a"}]}}},
            "must be a list",
        ),
        (
            {"categories": {"x": {"repositories": [{"name": "n", "url": "u", "added_at": "x"}]}}},
            "invalid added_at timestamp",
        ),
    ],
)
def test_malformed_documents(document: object, reason: str) -> None:
    """Test shape errors raise CatalogFormatError with a specific reason."""
    with pytest.raises(CatalogFormatError, match=reason):
        catalog_from_mapping(document)


def test_invalid_yaml_raises_format_error(tmp_path: Path) -> None:
    """Test unparseable YAML is reported as a format error naming the file."""
    path = tmp_path / "broken.yaml"
    path.write_text("categories: [unclosed", encoding="utf-8")

    with pytest.raises(CatalogFormatError) as exc_info:
        read_catalog(path)

    assert exc_info.value.path == path


def test_write_catalog_drops_attribution(tmp_path: Path) -> None:
    """Test written entries never include the category attribution fields."""
    category = Category(key="mine", name="Mine", user_created=True)
    entry = CatalogEntry(
        name="A",
        url="https://github.com/a/a",
        added_at=datetime(2024, 1, 15, 12, tzinfo=UTC),
    ).with_category(category)
    catalog = Catalog(
        version="1.0",
        last_updated="2024-01-15",
        categories=(category.with_entries((entry,)),),
    )
    path = tmp_path / "nested" / "slash_repos.yaml"

    write_catalog(path, catalog)

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    written = data["categories"]["mine"]["repositories"][0]
    assert "category_key" not in written
    assert written["added_at"] == "2024-01-15T12:00:00+00:00"
    assert data["categories"]["mine"]["user_created"] is True
    assert not path.with_suffix(".yaml.tmp").exists()


def test_mapping_omits_user_created_for_bundled_categories() -> None:
    """Test user_created is only written when true."""
    catalog = Catalog(
        version="1.0", last_updated="", categories=(Category(key="dev", name="Dev"),)
    )

    assert "user_created" not in catalog_to_mapping(catalog)["categories"]["dev"]

"""Catalog YAML I/O.

The same mapping shape backs the bundled catalog, the user catalog and the
registry cache payload::

    version: "1.0"
    last_updated: "2024-01-15"
    categories:
      <key>:
        name: ...
        description: ...
        icon: ...
        user_created: false      # user catalog only
        repositories:
          - name: ...
            url: ...
            description: ...
            author: ...
            tags: [...]
            verified: true
            language: ...         # optional
            difficulty: ...       # optional
            last_checked: ...     # optional
            added_at: ...         # user catalog only
"""

from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import yaml

from command_library.errors import CatalogFormatError
from command_library.registry.types import (
    DEFAULT_CATALOG_VERSION,
    Catalog,
    CatalogEntry,
    Category,
)


def _parse_timestamp(value: Any, path: Path | None, field: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise CatalogFormatError(path, f"invalid {field} timestamp {value!r}") from e
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    raise CatalogFormatError(path, f"invalid {field} timestamp {value!r}")


def _parse_entry(data: Any, category_key: str, path: Path | None) -> CatalogEntry:
    if not isinstance(data, dict):
        raise CatalogFormatError(path, f"repository in category '{category_key}' is not a mapping")

    name = data.get("name")
    url = data.get("url")
    if not isinstance(name, str) or not name:
        raise CatalogFormatError(path, f"repository in category '{category_key}' has no name")
    if not isinstance(url, str) or not url:
        raise CatalogFormatError(path, f"repository '{name}' has no url")

    tags = data.get("tags") or []
    if not isinstance(tags, list):
        raise CatalogFormatError(path, f"tags of repository '{name}' must be a list")

    return CatalogEntry(
        name=name,
        url=url,
        description=str(data.get("description") or ""),
        author=str(data.get("author") or ""),
        tags=tuple(str(tag) for tag in tags),
        verified=bool(data.get("verified", False)),
        language=data.get("language"),
        difficulty=data.get("difficulty"),
        last_checked=_parse_timestamp(data.get("last_checked"), path, "last_checked"),
        added_at=_parse_timestamp(data.get("added_at"), path, "added_at"),
    )


def _parse_category(key: Any, data: Any, path: Path | None) -> Category:
    if not isinstance(data, dict):
        raise CatalogFormatError(path, f"category '{key}' is not a mapping")

    repositories = data.get("repositories") or []
    if not isinstance(repositories, list):
        raise CatalogFormatError(path, f"repositories of category '{key}' must be a list")

    key = str(key)
    return Category(
        key=key,
        name=str(data.get("name") or key),
        description=str(data.get("description") or ""),
        icon=str(data.get("icon") or ""),
        user_created=bool(data.get("user_created", False)),
        entries=tuple(_parse_entry(repo, key, path) for repo in repositories),
    )


def catalog_from_mapping(data: Any, path: Path | None = None) -> Catalog:
    """Build a Catalog from a decoded YAML/JSON document.

    Raises:
        CatalogFormatError: If the document does not have the catalog shape
    """
    if not isinstance(data, dict):
        raise CatalogFormatError(path, "document is not a mapping")

    categories = data.get("categories") or {}
    if not isinstance(categories, dict):
        raise CatalogFormatError(path, "'categories' must be a mapping")

    last_updated = data.get("last_updated") or ""
    if isinstance(last_updated, date):
        last_updated = last_updated.isoformat()

    return Catalog(
        version=str(data.get("version") or DEFAULT_CATALOG_VERSION),
        last_updated=str(last_updated),
        categories=tuple(_parse_category(key, value, path) for key, value in categories.items()),
    )


def _entry_to_mapping(entry: CatalogEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": entry.name,
        "url": entry.url,
        "description": entry.description,
        "author": entry.author,
        "tags": list(entry.tags),
        "verified": entry.verified,
    }
    if entry.language is not None:
        data["language"] = entry.language
    if entry.difficulty is not None:
        data["difficulty"] = entry.difficulty
    if entry.added_at is not None:
        data["added_at"] = entry.added_at.isoformat()
    if entry.last_checked is not None:
        data["last_checked"] = entry.last_checked.isoformat()
    return data


def catalog_to_mapping(catalog: Catalog) -> dict[str, Any]:
    """Serialise a Catalog to plain YAML/JSON-compatible data.

    Attribution fields are dropped.
    """
    categories: dict[str, Any] = {}
    for category in catalog.categories:
        category_data: dict[str, Any] = {
            "name": category.name,
            "description": category.description,
            "icon": category.icon,
        }
        if category.user_created:
            category_data["user_created"] = True
        category_data["repositories"] = [_entry_to_mapping(e) for e in category.entries]
        categories[category.key] = category_data

    return {
        "version": catalog.version,
        "last_updated": catalog.last_updated,
        "categories": categories,
    }


def read_catalog(path: Path) -> Catalog:
    """Read and parse a catalog YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        CatalogFormatError: If the file is not UTF-8 YAML or has the wrong shape
    """
    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise CatalogFormatError(path, f"not valid UTF-8: {e}") from e
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise CatalogFormatError(path, f"invalid YAML: {e}") from e
    return catalog_from_mapping(data, path)


def write_catalog(path: Path, catalog: Catalog) -> None:
    """Write a catalog atomically, creating the parent directory."""
    path.parent.mkdir(parents=True, exist_ok=True)

    yaml_content = yaml.safe_dump(
        catalog_to_mapping(catalog),
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    )

    temp_path = path.with_suffix(path.suffix + ".tmp")
    temp_path.write_text(yaml_content, encoding="utf-8")
    temp_path.replace(path)

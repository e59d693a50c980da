"""Schema access utilities.

Provides runtime access to the bundled SQL schema of the tree store and the
JSON schemas describing the stored document layout.

Lookup order:
- importlib.resources first (installed package)
- file reading next to this module (development checkout)
- FileNotFoundError if neither location has the schema

USAGE:
    >>> from topictree.schemas import get_sql_schema, get_type_schema, list_type_schemas
    >>> store_sql = get_sql_schema('store')
    >>> item_schema = get_type_schema('Item')
    >>> list_type_schemas()
    ['HierarchyAnalysis', 'Item', 'Tree']
"""

from __future__ import annotations

import json
import re
from pathlib import Path

try:
    from importlib.resources import files as resource_files
    HAS_RESOURCE_FILES = True
except ImportError:
    HAS_RESOURCE_FILES = False


VALID_LAYERS = {"store"}


def _schema_filename(type_name: str) -> str:
    # HierarchyAnalysis -> hierarchy_analysis.schema.json
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", type_name).lower()
    return f"{snake}.schema.json"


def get_sql_schema(layer: str = "store") -> str:
    """Get SQL schema content.

    Args:
        layer: Schema layer (only 'store')

    Returns:
        SQL schema content as string

    Raises:
        ValueError: If layer is unknown
        FileNotFoundError: If schema file not found in bundled or file locations
    """
    if layer not in VALID_LAYERS:
        raise ValueError(
            f"Invalid layer: {layer!r}. Must be one of: {sorted(VALID_LAYERS)}"
        )

    if HAS_RESOURCE_FILES:
        try:
            schema_file = resource_files("topictree") / "schemas" / "sql" / f"{layer}.sql"
            if schema_file.is_file():
                return schema_file.read_text(encoding="utf-8")
        except (FileNotFoundError, AttributeError):
            pass

    file_path = Path(__file__).parent / "schemas" / "sql" / f"{layer}.sql"
    if file_path.exists():
        return file_path.read_text(encoding="utf-8")

    raise FileNotFoundError(
        f"SQL schema file not found for layer '{layer}'. Searched: {file_path}"
    )


def get_type_schema(type_name: str) -> dict:
    """Get the JSON schema of a stored document type.

    Args:
        type_name: Type name ('Item', 'Tree', 'HierarchyAnalysis')

    Returns:
        JSON schema as Python dict

    Raises:
        FileNotFoundError: If schema file not found
        ValueError: If the schema file is not valid JSON
    """
    schema_filename = _schema_filename(type_name)

    if HAS_RESOURCE_FILES:
        try:
            schema_file = resource_files("topictree") / "schemas" / "types" / schema_filename
            if schema_file.is_file():
                return json.loads(schema_file.read_text(encoding="utf-8"))
        except (FileNotFoundError, AttributeError, json.JSONDecodeError):
            pass

    file_path = Path(__file__).parent / "schemas" / "types" / schema_filename
    if file_path.exists():
        try:
            return json.loads(file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in schema file {file_path}: {e}") from e

    raise FileNotFoundError(
        f"Type schema file not found: type_name={type_name!r}. Searched: {file_path}"
    )


def list_type_schemas() -> list[str]:
    """List available document type schemas by title."""
    type_names: set[str] = set()
    dir_path = Path(__file__).parent / "schemas" / "types"

    if HAS_RESOURCE_FILES:
        try:
            schema_dir = resource_files("topictree") / "schemas" / "types"
            if schema_dir.is_dir():
                for entry in schema_dir.iterdir():
                    if entry.is_file() and entry.name.endswith(".schema.json"):
                        schema = json.loads(entry.read_text(encoding="utf-8"))
                        type_names.add(schema["title"])
        except (FileNotFoundError, AttributeError, json.JSONDecodeError, KeyError):
            pass

    if not type_names and dir_path.is_dir():
        for schema_file in dir_path.glob("*.schema.json"):
            try:
                schema = json.loads(schema_file.read_text(encoding="utf-8"))
                type_names.add(schema["title"])
            except (json.JSONDecodeError, KeyError):
                type_names.add(schema_file.name.removesuffix(".schema.json").title())

    if not type_names:
        raise FileNotFoundError(f"No type schemas found. Searched: {dir_path}")

    return sorted(type_names)

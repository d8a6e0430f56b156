"""Load the flower catalog from the bundled JSON or a user-supplied file."""
import json
from pathlib import Path
from typing import Optional

import yaml

from floral_tutor.exceptions import CatalogError
from floral_tutor.models import Item

CONTENT_DIR = Path(__file__).parent / "content"
DEFAULT_CATALOG = CONTENT_DIR / "flowers.json"


def read_catalog_data(file_path: str) -> object:
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    return json.loads(path.read_text(encoding="utf-8"))


def parse_catalog(data: object) -> list[Item]:
    """Validate raw catalog data. Accepts a list or ``{"flowers": [...]}``."""
    if isinstance(data, dict):
        data = data.get("flowers")
    if not isinstance(data, list):
        raise CatalogError("catalog must be a list of flowers")
    items = []
    seen = set()
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise CatalogError(f"entry {i} is not a mapping")
        scientific = entry.get("scientific")
        common = entry.get("common")
        priority = entry.get("listPriority", entry.get("list_priority"))
        if not scientific or not isinstance(scientific, str):
            raise CatalogError(f"entry {i} has no scientific name")
        if isinstance(common, str):
            common = [common]
        if not common or not all(isinstance(name, str) and name for name in common):
            raise CatalogError(f"{scientific} needs at least one common name")
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise CatalogError(f"{scientific} has no integer listPriority")
        if scientific in seen:
            raise CatalogError(f"duplicate flower: {scientific}")
        seen.add(scientific)
        items.append(Item(scientific_name=scientific, common_names=tuple(common), list_priority=priority))
    return items


def load_catalog(file_path: Optional[str] = None) -> list[Item]:
    path = file_path or str(DEFAULT_CATALOG)
    try:
        data = read_catalog_data(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise CatalogError(f"could not read catalog {path}: {e}") from e
    return parse_catalog(data)

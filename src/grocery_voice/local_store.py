"""On-device fallback cache for Grocery Voice.

Categories and items are kept as two whole-collection JSON blobs. Every write
replaces a collection in full through a temporary file, so a reader never sees
a partially written collection.
"""

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any
from uuid import UUID

from .models import Category, GroceryItem, by_creation, new_id, utc_now


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for our data types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.isoformat()
        return super().default(obj)


class LocalStore:
    """Manages the JSON file cache for categories and items."""

    def __init__(self, data_dir: Path | None = None):
        """Initialize local store.

        Args:
            data_dir: Directory for cache files. Defaults to ./data
        """
        self.data_dir = data_dir or Path.cwd() / "data"
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _collection_path(self, name: str) -> Path:
        """Path to a named collection file."""
        return self.data_dir / f"{name}.json"

    def _read(self, name: str) -> list[dict[str, Any]]:
        path = self._collection_path(name)
        if not path.exists():
            return []

        with open(path) as f:
            return json.load(f)

    def _write(self, name: str, records: list[dict[str, Any]]) -> None:
        path = self._collection_path(name)
        tmp_path = path.with_suffix(".json.tmp")

        with open(tmp_path, "w") as f:
            json.dump(records, f, cls=JSONEncoder, indent=2)

        tmp_path.replace(path)

    # --- Categories ---

    def load_categories(self) -> list[Category]:
        """Load all cached categories, oldest first."""
        return by_creation([Category(**c) for c in self._read("categories")])

    def save_categories(self, categories: list[Category]) -> None:
        """Overwrite the cached category collection."""
        self._write("categories", [c.model_dump() for c in categories])

    def insert_category(self, name: str, image_url: str = "") -> Category:
        """Synthesize a category with a fresh id and timestamp and cache it.

        Args:
            name: Category name
            image_url: Optional display image reference

        Returns:
            The created Category
        """
        category = Category(id=new_id(), name=name, image_url=image_url, created_at=utc_now())
        self.upsert_category(category)
        return category

    def upsert_category(self, category: Category) -> None:
        """Add or replace a single category in the cache."""
        categories = [c for c in self.load_categories() if c.id != category.id]
        categories.append(category)
        self.save_categories(categories)

    def find_category_by_name(self, name: str) -> Category | None:
        """First category whose name matches case-insensitively."""
        wanted = name.strip().lower()
        for category in self.load_categories():
            if category.name.lower() == wanted:
                return category
        return None

    def delete_category(self, category_id: str) -> bool:
        """Delete a category and every item that belongs to it.

        Items are written first so an interrupted delete never leaves
        items pointing at a missing category.

        Returns:
            True if the category existed in the cache
        """
        items = self.load_items()
        self.save_items([i for i in items if i.category_id != category_id])

        categories = self.load_categories()
        remaining = [c for c in categories if c.id != category_id]
        self.save_categories(remaining)
        return len(remaining) != len(categories)

    # --- Items ---

    def load_items(self, category_id: str | None = None) -> list[GroceryItem]:
        """Load cached items, optionally for one category, oldest first."""
        items = [GroceryItem(**i) for i in self._read("items")]
        if category_id is not None:
            items = [i for i in items if i.category_id == category_id]
        return by_creation(items)

    def save_items(self, items: list[GroceryItem]) -> None:
        """Overwrite the cached item collection."""
        self._write("items", [i.model_dump() for i in items])

    def replace_category_items(self, category_id: str, items: list[GroceryItem]) -> None:
        """Replace the cached slice of items for one category."""
        others = [i for i in self.load_items() if i.category_id != category_id]
        self.save_items(others + items)

    def insert_item(self, name: str, category_id: str, quantity: int = 1) -> GroceryItem:
        """Synthesize an item with a fresh id and timestamp and cache it."""
        item = GroceryItem(
            id=new_id(),
            category_id=category_id,
            name=name,
            quantity=quantity,
            created_at=utc_now(),
        )
        self.upsert_item(item)
        return item

    def upsert_item(self, item: GroceryItem) -> None:
        """Add or replace a single item in the cache."""
        items = [i for i in self.load_items() if i.id != item.id]
        items.append(item)
        self.save_items(items)

    def get_item(self, item_id: str) -> GroceryItem | None:
        """Get a cached item by id."""
        for item in self.load_items():
            if item.id == item_id:
                return item
        return None

    def find_item_by_name(self, name: str) -> GroceryItem | None:
        """First item across all categories whose name matches case-insensitively."""
        wanted = name.strip().lower()
        for item in self.load_items():
            if item.name.lower() == wanted:
                return item
        return None

    def update_item_quantity(self, item_id: str, quantity: int) -> bool:
        """Set the quantity of a cached item.

        Returns:
            True if the item was found and updated
        """
        items = self.load_items()
        for index, item in enumerate(items):
            if item.id == item_id:
                items[index] = item.model_copy(update={"quantity": quantity})
                self.save_items(items)
                return True
        return False

    def delete_item(self, item_id: str) -> bool:
        """Delete a cached item.

        Returns:
            True if the item existed in the cache
        """
        items = self.load_items()
        remaining = [i for i in items if i.id != item_id]
        if len(remaining) == len(items):
            return False
        self.save_items(remaining)
        return True

"""In-memory snapshot of categories and items for UI callers."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from .interpreter import CommandInterpreter, CommandResult
from .models import Category, GroceryItem, StoreResult, SyncStatus
from .repository import GroceryRepository

logger = logging.getLogger(__name__)


class GroceryError(Exception):
    """Base class for errors raised by the state store."""


class EmptyNameError(GroceryError, ValueError):
    """Raised when a category or item name is blank."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"{kind.capitalize()} name must not be empty")


class NegativeQuantityError(GroceryError, ValueError):
    """Raised when a quantity below zero is requested."""

    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__(f"Quantity must be zero or more (got {quantity})")


class GroceryState:
    """Holds the category and item snapshot and keeps it in step with storage.

    ``items`` is a partial cache keyed by category id. A missing key means the
    category's items were never loaded, which is different from an empty list.
    """

    def __init__(
        self,
        repository: GroceryRepository,
        interpreter: CommandInterpreter | None = None,
    ):
        """Initialize state store.

        Args:
            repository: Persistence adapter
            interpreter: Command interpreter. Built over the same repository
                         if not provided.
        """
        self.repository = repository
        self.interpreter = interpreter or CommandInterpreter(repository)
        self.categories: list[Category] = []
        self.items: dict[str, list[GroceryItem]] = {}
        self.loading_categories = False
        self._item_loads = 0
        self.last_status: SyncStatus | None = None

    @property
    def loading_items(self) -> bool:
        """Whether any category's items are being loaded."""
        return self._item_loads > 0

    @property
    def degraded(self) -> bool:
        """Whether the last persistence call was served by the local cache."""
        return self.last_status == SyncStatus.FALLBACK

    def _record(self, result: StoreResult) -> StoreResult:
        self.last_status = result.status
        return result

    @contextmanager
    def _loading_categories(self) -> Iterator[None]:
        self.loading_categories = True
        try:
            yield
        finally:
            self.loading_categories = False

    @contextmanager
    def _loading_items(self) -> Iterator[None]:
        self._item_loads += 1
        try:
            yield
        finally:
            self._item_loads -= 1

    # --- Refresh ---

    async def refresh_categories(self) -> None:
        """Replace the category list with the persisted one."""
        with self._loading_categories():
            result = self._record(await self.repository.fetch_categories())
            self.categories = list(result.value)

    async def refresh_items(self, category_id: str) -> None:
        """Replace one category's items with the persisted ones."""
        with self._loading_items():
            result = self._record(await self.repository.fetch_items(category_id))
            self.items[category_id] = list(result.value)

    # --- Mutations ---

    async def create_category(self, name: str, image_url: str = "") -> Category | None:
        """Create a category and append it to the snapshot.

        Raises:
            EmptyNameError: If name is blank
        """
        name = name.strip()
        if not name:
            raise EmptyNameError("category")

        result = self._record(await self.repository.add_category(name, image_url))
        category = result.value
        if category is not None and all(c.id != category.id for c in self.categories):
            self.categories.append(category)
        return category

    async def create_item(self, name: str, category_id: str) -> GroceryItem | None:
        """Create an item and append it to its category if loaded.

        Raises:
            EmptyNameError: If name is blank
        """
        name = name.strip()
        if not name:
            raise EmptyNameError("item")

        result = self._record(await self.repository.add_item(name, category_id))
        item = result.value
        if item is not None and category_id in self.items:
            self.items[category_id].append(item)
        return item

    async def remove_category(self, category_id: str) -> bool:
        """Delete a category and forget its items entirely."""
        result = self._record(await self.repository.delete_category(category_id))
        if result.value:
            self.categories = [c for c in self.categories if c.id != category_id]
            self.items.pop(category_id, None)
        return bool(result.value)

    async def remove_item(self, item_id: str) -> bool:
        """Delete an item from whichever loaded category holds it."""
        result = self._record(await self.repository.delete_item(item_id))
        if result.value:
            for category_id, items in self.items.items():
                self.items[category_id] = [i for i in items if i.id != item_id]
        return bool(result.value)

    async def update_quantity(self, item_id: str, quantity: int) -> bool:
        """Set an item's quantity in storage and in every loaded category.

        Raises:
            NegativeQuantityError: If quantity is below zero
        """
        if quantity < 0:
            raise NegativeQuantityError(quantity)

        result = self._record(await self.repository.update_item_quantity(item_id, quantity))
        if result.value:
            for category_id, items in self.items.items():
                self.items[category_id] = [
                    i.model_copy(update={"quantity": quantity}) if i.id == item_id else i
                    for i in items
                ]
        return bool(result.value)

    async def upload_image(
        self, filename: str, content: bytes, content_type: str = "application/octet-stream"
    ) -> str | None:
        """Store a category image and return its URL."""
        result = self._record(
            await self.repository.upload_image(filename, content, content_type)
        )
        return result.value

    async def handle_voice_command(self, text: str) -> CommandResult:
        """Run a voice command, then resynchronize the whole snapshot.

        Categories and every category already present in ``items`` are
        refreshed whether or not the command succeeded.
        """
        result = await self.interpreter.execute(text)
        logger.debug("Voice command %r -> %s", text, result.message)

        await self.refresh_categories()
        for category_id in list(self.items):
            await self.refresh_items(category_id)

        return result

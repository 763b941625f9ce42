"""Category and item persistence with remote-first, local-fallback semantics.

Every operation tries the remote store and falls back to the local cache when
the remote store is missing or fails. Successful remote calls are mirrored
into the local cache so the cache tracks the last known outcome. No method
raises; each returns a StoreResult saying which store served it.
"""

import logging
import secrets
from collections.abc import Awaitable, Callable
from pathlib import Path, PurePath
from typing import Any, TypeVar

from .config import ConfigManager
from .local_store import LocalStore
from .models import Category, GroceryItem, StoreResult
from .remote_store import RemoteStore
from .resilience import RecordNotFoundError, resilient

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOCAL_IMAGE_SCHEME = "local-image://"
IMAGE_FOLDER = "category-images"


class GroceryRepository:
    """Persistence adapter over a remote store and a local cache."""

    def __init__(self, local: LocalStore, remote: RemoteStore | None = None):
        """Initialize repository.

        Args:
            local: Local JSON cache, always available
            remote: Remote store. None runs in offline mode.
        """
        self.local = local
        self.remote = remote
        self._local_images: dict[str, bytes] = {}

    async def __aenter__(self) -> "GroceryRepository":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the remote store's connections."""
        if self.remote is not None:
            await self.remote.aclose()

    def _primary(
        self, call: Callable[[RemoteStore], Awaitable[T]]
    ) -> Callable[[], Awaitable[T]] | None:
        if self.remote is None:
            return None
        remote = self.remote
        return lambda: call(remote)

    def _mirror(self, operation: str, write: Callable[[], object]) -> None:
        """Copy a remote outcome into the local cache."""
        try:
            write()
        except Exception as e:
            logger.error("Could not mirror %s into local cache: %s", operation, e)

    # --- Categories ---

    async def fetch_categories(self) -> StoreResult:
        """All categories, oldest first."""

        async def primary(remote: RemoteStore) -> list[Category]:
            categories = await remote.fetch_categories()
            self._mirror("fetch_categories", lambda: self.local.save_categories(categories))
            return categories

        return await resilient(
            "fetch_categories", self._primary(primary), self.local.load_categories, []
        )

    async def add_category(self, name: str, image_url: str = "") -> StoreResult:
        """Create a category. The value is the new Category or None.

        Transient ``local-image://`` references are not stored, since they
        do not outlive the process that uploaded them.
        """
        if image_url.startswith(LOCAL_IMAGE_SCHEME):
            logger.info("Dropping transient image reference for category %s", name)
            image_url = ""

        async def primary(remote: RemoteStore) -> Category:
            category = await remote.insert_category(name, image_url)
            self._mirror("add_category", lambda: self.local.upsert_category(category))
            return category

        return await resilient(
            "add_category",
            self._primary(primary),
            lambda: self.local.insert_category(name, image_url),
            None,
        )

    async def delete_category(self, category_id: str) -> StoreResult:
        """Delete a category together with all of its items."""

        async def primary(remote: RemoteStore) -> bool:
            await remote.delete_category(category_id)
            self._mirror("delete_category", lambda: self.local.delete_category(category_id))
            return True

        def fallback() -> bool:
            if not self.local.delete_category(category_id):
                raise RecordNotFoundError("category", category_id)
            return True

        return await resilient("delete_category", self._primary(primary), fallback, False)

    async def find_category_by_name(self, name: str) -> StoreResult:
        """First category matching ``name`` case-insensitively, or None."""
        return await resilient(
            "find_category_by_name",
            self._primary(lambda remote: remote.find_category_by_name(name)),
            lambda: self.local.find_category_by_name(name),
            None,
        )

    # --- Items ---

    def default_quantity_for(self, category_id: str) -> int:
        """Starting quantity for new items in a category."""
        return 1

    async def fetch_items(self, category_id: str) -> StoreResult:
        """Items in one category, oldest first."""

        async def primary(remote: RemoteStore) -> list[GroceryItem]:
            items = await remote.fetch_items(category_id)
            self._mirror(
                "fetch_items", lambda: self.local.replace_category_items(category_id, items)
            )
            return items

        return await resilient(
            "fetch_items",
            self._primary(primary),
            lambda: self.local.load_items(category_id),
            [],
        )

    async def add_item(self, name: str, category_id: str) -> StoreResult:
        """Create an item. The value is the new GroceryItem or None."""
        quantity = self.default_quantity_for(category_id)

        async def primary(remote: RemoteStore) -> GroceryItem:
            item = await remote.insert_item(name, category_id, quantity)
            self._mirror("add_item", lambda: self.local.upsert_item(item))
            return item

        def fallback() -> GroceryItem:
            if not any(c.id == category_id for c in self.local.load_categories()):
                raise RecordNotFoundError("category", category_id)
            return self.local.insert_item(name, category_id, quantity)

        return await resilient("add_item", self._primary(primary), fallback, None)

    async def update_item_quantity(self, item_id: str, quantity: int) -> StoreResult:
        """Set an item's absolute quantity."""

        async def primary(remote: RemoteStore) -> bool:
            item = await remote.update_item_quantity(item_id, quantity)
            self._mirror("update_item_quantity", lambda: self.local.upsert_item(item))
            return True

        def fallback() -> bool:
            if not self.local.update_item_quantity(item_id, quantity):
                raise RecordNotFoundError("item", item_id)
            return True

        return await resilient("update_item_quantity", self._primary(primary), fallback, False)

    async def delete_item(self, item_id: str) -> StoreResult:
        """Delete an item by id."""

        async def primary(remote: RemoteStore) -> bool:
            await remote.delete_item(item_id)
            self._mirror("delete_item", lambda: self.local.delete_item(item_id))
            return True

        def fallback() -> bool:
            if not self.local.delete_item(item_id):
                raise RecordNotFoundError("item", item_id)
            return True

        return await resilient("delete_item", self._primary(primary), fallback, False)

    async def find_item_by_name(self, name: str) -> StoreResult:
        """First item in any category matching ``name`` case-insensitively, or None."""
        return await resilient(
            "find_item_by_name",
            self._primary(lambda remote: remote.find_item_by_name(name)),
            lambda: self.local.find_item_by_name(name),
            None,
        )

    # --- Images ---

    async def upload_image(
        self, filename: str, content: bytes, content_type: str = "application/octet-stream"
    ) -> StoreResult:
        """Store image bytes and return a URL for them.

        Falls back to a ``local-image://`` reference that only resolves
        within this process.
        """
        suffix = PurePath(filename).suffix.lstrip(".") or "bin"
        path = f"{IMAGE_FOLDER}/{secrets.token_hex(8)}.{suffix}"

        def fallback() -> str:
            ref = f"{LOCAL_IMAGE_SCHEME}{path}"
            self._local_images[ref] = content
            return ref

        return await resilient(
            "upload_image",
            self._primary(lambda remote: remote.upload_image(path, content, content_type)),
            fallback,
            None,
        )

    def resolve_local_image(self, ref: str) -> bytes | None:
        """Bytes behind a transient local image reference."""
        return self._local_images.get(ref)


def create_repository(
    config: ConfigManager,
    data_dir: Path | None = None,
    offline: bool = False,
) -> GroceryRepository:
    """Create a repository from configuration.

    Args:
        config: Loaded configuration
        data_dir: Overrides the configured local cache directory
        offline: Skip the remote store even if one is configured

    Returns:
        A GroceryRepository, offline-only when no remote URL is set
    """
    local = LocalStore(data_dir=data_dir or config.data.storage_dir)
    remote = None
    if config.remote.enabled and not offline:
        remote = RemoteStore(
            url=config.remote.url,
            api_key=config.remote.api_key,
            bucket=config.remote.bucket,
            timeout=config.remote.timeout,
        )
    return GroceryRepository(local=local, remote=remote)


"""Client for the hosted data service backing Grocery Voice.

The service exposes the ``categories`` and ``items`` tables through a
PostgREST-style REST interface and stores category images in an object
storage bucket.
"""

from typing import Any

import httpx

from .models import Category, GroceryItem

CATEGORIES_TABLE = "categories"
ITEMS_TABLE = "items"


class RemoteStoreError(Exception):
    """Raised when the remote store rejects a request."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Remote store returned {status_code}: {detail}")


def _ilike_exact(value: str) -> str:
    """Build a case-insensitive exact-match filter value."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"ilike.{escaped}"


class RemoteStore:
    """Async access to the remote tables and image bucket."""

    def __init__(
        self,
        url: str,
        api_key: str = "",
        bucket: str = "grocery-images",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize remote store.

        Args:
            url: Base URL of the data service
            api_key: Anonymous or service key sent with every request
            bucket: Storage bucket for category images
            timeout: Request timeout in seconds
            client: Optional pre-built HTTP client (tests pass one backed
                    by a mock transport)
        """
        self.url = url.rstrip("/")
        self.bucket = bucket
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        if api_key:
            self.client.headers.update(
                {"apikey": api_key, "Authorization": f"Bearer {api_key}"}
            )

    async def __aenter__(self) -> "RemoteStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._owns_client:
            await self.client.aclose()

    def _table_url(self, table: str) -> str:
        return f"{self.url}/rest/v1/{table}"

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> list[dict[str, Any]]:
        headers = {}
        if method in ("POST", "PATCH", "DELETE"):
            headers["Prefer"] = "return=representation"

        response = await self.client.request(
            method, self._table_url(table), params=params, json=json, headers=headers
        )
        if response.is_error:
            raise RemoteStoreError(response.status_code, response.text)
        if not response.content:
            return []
        return response.json()

    async def _select(self, table: str, **filters: str) -> list[dict[str, Any]]:
        params = {"select": "*", "order": "created_at.asc", **filters}
        return await self._request("GET", table, params=params)

    # --- Categories ---

    async def fetch_categories(self) -> list[Category]:
        """All categories, oldest first."""
        rows = await self._select(CATEGORIES_TABLE)
        return [Category(**row) for row in rows]

    async def find_category_by_name(self, name: str) -> Category | None:
        """First category whose name matches case-insensitively."""
        rows = await self._select(CATEGORIES_TABLE, name=_ilike_exact(name), limit="1")
        return Category(**rows[0]) if rows else None

    async def insert_category(self, name: str, image_url: str = "") -> Category:
        """Insert a category and return the stored row."""
        rows = await self._request(
            "POST", CATEGORIES_TABLE, json=[{"name": name, "image_url": image_url}]
        )
        if not rows:
            raise RemoteStoreError(204, "insert returned no row")
        return Category(**rows[0])

    async def delete_category(self, category_id: str) -> None:
        """Delete a category's items, then the category itself."""
        await self._request("DELETE", ITEMS_TABLE, params={"category_id": f"eq.{category_id}"})
        await self._request("DELETE", CATEGORIES_TABLE, params={"id": f"eq.{category_id}"})

    # --- Items ---

    async def fetch_items(self, category_id: str) -> list[GroceryItem]:
        """Items in one category, oldest first."""
        rows = await self._select(ITEMS_TABLE, category_id=f"eq.{category_id}")
        return [GroceryItem(**row) for row in rows]

    async def find_item_by_name(self, name: str) -> GroceryItem | None:
        """First item in any category whose name matches case-insensitively."""
        rows = await self._select(ITEMS_TABLE, name=_ilike_exact(name), limit="1")
        return GroceryItem(**rows[0]) if rows else None

    async def insert_item(self, name: str, category_id: str, quantity: int = 1) -> GroceryItem:
        """Insert an item and return the stored row."""
        rows = await self._request(
            "POST",
            ITEMS_TABLE,
            json=[{"name": name, "category_id": category_id, "quantity": quantity}],
        )
        if not rows:
            raise RemoteStoreError(204, "insert returned no row")
        return GroceryItem(**rows[0])

    async def update_item_quantity(self, item_id: str, quantity: int) -> GroceryItem:
        """Set an item's quantity and return the updated row."""
        rows = await self._request(
            "PATCH", ITEMS_TABLE, params={"id": f"eq.{item_id}"}, json={"quantity": quantity}
        )
        if not rows:
            raise RemoteStoreError(404, f"item {item_id} not found")
        return GroceryItem(**rows[0])

    async def delete_item(self, item_id: str) -> None:
        """Delete an item by id."""
        await self._request("DELETE", ITEMS_TABLE, params={"id": f"eq.{item_id}"})

    # --- Images ---

    def public_url(self, path: str) -> str:
        """Publicly resolvable URL of an object in the image bucket."""
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{path}"

    async def upload_image(self, path: str, content: bytes, content_type: str) -> str:
        """Upload image bytes to the bucket and return the public URL."""
        response = await self.client.post(
            f"{self.url}/storage/v1/object/{self.bucket}/{path}",
            content=content,
            headers={"Content-Type": content_type},
        )
        if response.is_error:
            raise RemoteStoreError(response.status_code, response.text)
        return self.public_url(path)

"""Shared test fixtures for Grocery Voice."""

import pytest

from grocery_voice.local_store import LocalStore
from grocery_voice.models import Category, GroceryItem, by_creation
from grocery_voice.remote_store import RemoteStoreError
from grocery_voice.repository import GroceryRepository
from grocery_voice.state import GroceryState


class FakeRemoteStore:
    """In-memory stand-in for RemoteStore with the same coroutine interface."""

    def __init__(self):
        self.categories: list[Category] = []
        self.items: list[GroceryItem] = []
        self.uploads: dict[str, bytes] = {}
        self.closed = False

    async def aclose(self):
        self.closed = True

    async def fetch_categories(self):
        return by_creation(self.categories)

    async def find_category_by_name(self, name):
        for category in by_creation(self.categories):
            if category.name.lower() == name.lower():
                return category
        return None

    async def insert_category(self, name, image_url=""):
        category = Category(name=name, image_url=image_url)
        self.categories.append(category)
        return category

    async def delete_category(self, category_id):
        self.items = [i for i in self.items if i.category_id != category_id]
        self.categories = [c for c in self.categories if c.id != category_id]

    async def fetch_items(self, category_id):
        return by_creation([i for i in self.items if i.category_id == category_id])

    async def find_item_by_name(self, name):
        for item in by_creation(self.items):
            if item.name.lower() == name.lower():
                return item
        return None

    async def insert_item(self, name, category_id, quantity=1):
        item = GroceryItem(name=name, category_id=category_id, quantity=quantity)
        self.items.append(item)
        return item

    async def update_item_quantity(self, item_id, quantity):
        for index, item in enumerate(self.items):
            if item.id == item_id:
                self.items[index] = item.model_copy(update={"quantity": quantity})
                return self.items[index]
        raise RemoteStoreError(404, f"item {item_id} not found")

    async def delete_item(self, item_id):
        self.items = [i for i in self.items if i.id != item_id]

    async def upload_image(self, path, content, content_type):
        self.uploads[path] = content
        return f"https://example.test/storage/v1/object/public/grocery-images/{path}"


class FailingRemoteStore:
    """Remote store whose every call fails as if the network were down."""

    def __init__(self):
        self.calls = 0

    async def aclose(self):
        pass

    def __getattr__(self, name):
        async def fail(*args, **kwargs):
            self.calls += 1
            raise RemoteStoreError(503, "service unavailable")

        return fail


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary data directory."""
    data_dir = tmp_path / "test_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def local_store(temp_data_dir):
    """Create a LocalStore with temporary directory."""
    return LocalStore(data_dir=temp_data_dir)


@pytest.fixture
def fake_remote():
    """Create a working in-memory remote store."""
    return FakeRemoteStore()


@pytest.fixture
def failing_remote():
    """Create a remote store that is always unreachable."""
    return FailingRemoteStore()


@pytest.fixture
def repository(local_store, fake_remote):
    """Create a repository backed by the fake remote store."""
    return GroceryRepository(local=local_store, remote=fake_remote)


@pytest.fixture
def offline_repository(local_store, failing_remote):
    """Create a repository whose remote store always fails."""
    return GroceryRepository(local=local_store, remote=failing_remote)


@pytest.fixture
def state(repository):
    """Create a GroceryState over the working repository."""
    return GroceryState(repository)


@pytest.fixture
def offline_state(offline_repository):
    """Create a GroceryState over the failing repository."""
    return GroceryState(offline_repository)

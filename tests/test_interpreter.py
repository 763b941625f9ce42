"""Tests for free-text command interpretation."""

import pytest

from grocery_voice.interpreter import (
    CommandInterpreter,
    FailureReason,
    Intent,
    parse_command,
)


@pytest.fixture
def interpreter(repository):
    """Create a CommandInterpreter over the working repository."""
    return CommandInterpreter(repository)


@pytest.fixture
def offline_interpreter(offline_repository):
    """Create a CommandInterpreter whose remote store always fails."""
    return CommandInterpreter(offline_repository)


async def add_apples(repository, quantity):
    """Create a Produce category holding apples at ``quantity``."""
    produce = (await repository.add_category("Produce", "")).value
    apples = (await repository.add_item("apples", produce.id)).value
    await repository.update_item_quantity(apples.id, quantity)
    return apples


class TestParseCommand:
    """Tests for pattern matching alone."""

    def test_add_item(self):
        command = parse_command("Add Milk to Dairy")
        assert command.intent == Intent.ADD_ITEM
        assert command.item == "milk"
        assert command.category == "dairy"

    def test_add_item_splits_at_first_to(self):
        command = parse_command("add tomato sauce to pantry to go")
        assert command.item == "tomato sauce"
        assert command.category == "pantry to go"

    def test_create_category(self):
        command = parse_command("create category Frozen Foods")
        assert command.intent == Intent.CREATE_CATEGORY
        assert command.category == "frozen foods"

    def test_increase_with_amount(self):
        command = parse_command("increase apples by 2")
        assert command.intent == Intent.INCREASE_QUANTITY
        assert command.item == "apples"
        assert command.amount == 2

    def test_increase_default_amount(self):
        command = parse_command("increase green apples")
        assert command.item == "green apples"
        assert command.amount == 1

    def test_decrease(self):
        command = parse_command("DECREASE eggs by 12")
        assert command.intent == Intent.DECREASE_QUANTITY
        assert command.item == "eggs"
        assert command.amount == 12

    def test_non_numeric_amount_is_part_of_name(self):
        command = parse_command("decrease eggs by a lot")
        assert command.item == "eggs by a lot"
        assert command.amount == 1

    def test_add_takes_priority(self):
        """Earlier patterns win over later ones in the same utterance."""
        command = parse_command("increase the pressure and add salt to soup")
        assert command.intent == Intent.ADD_ITEM

    def test_unrecognized(self):
        assert parse_command("what's the weather") is None
        assert parse_command("") is None


class TestAddItem:
    """Tests for 'add <item> to <category>'."""

    async def test_adds_to_existing_category(self, interpreter, repository):
        dairy = (await repository.add_category("Dairy", "")).value

        result = await interpreter.execute("add milk to dairy")

        assert result.success is True
        assert result.intent == Intent.ADD_ITEM
        items = (await repository.fetch_items(dairy.id)).value
        assert [(i.name, i.quantity) for i in items] == [("milk", 1)]

    async def test_missing_category_creates_nothing(self, interpreter, fake_remote):
        result = await interpreter.execute("add milk to dairy")

        assert result.success is False
        assert result.reason == FailureReason.CATEGORY_NOT_FOUND
        assert 'Category "dairy" not found' in result.message
        assert fake_remote.categories == []
        assert fake_remote.items == []

    async def test_offline_uses_cached_category(self, offline_interpreter, offline_repository):
        dairy = (await offline_repository.add_category("Dairy", "")).value

        result = await offline_interpreter.execute("add cheese to DAIRY")

        assert result.success is True
        assert result.degraded is True
        items = (await offline_repository.fetch_items(dairy.id)).value
        assert [i.name for i in items] == ["cheese"]


class TestCreateCategory:
    """Tests for 'create category <name>'."""

    async def test_creates_with_empty_image(self, interpreter, fake_remote):
        result = await interpreter.execute("create category snacks")

        assert result.success is True
        assert [(c.name, c.image_url) for c in fake_remote.categories] == [("snacks", "")]


class TestQuantityCommands:
    """Tests for increase/decrease."""

    async def test_increase_by_amount(self, interpreter, repository, fake_remote):
        apples = await add_apples(repository, 3)

        result = await interpreter.execute("increase apples by 2")

        assert result.success is True
        assert "5" in result.message
        assert (await fake_remote.find_item_by_name("apples")).quantity == 5
        assert apples.id == fake_remote.items[0].id

    async def test_decrease_default_amount(self, interpreter, repository, fake_remote):
        await add_apples(repository, 5)

        result = await interpreter.execute("decrease apples")

        assert result.success is True
        assert fake_remote.items[0].quantity == 4

    async def test_decrease_floors_at_zero(self, interpreter, repository, fake_remote):
        await add_apples(repository, 3)

        result = await interpreter.execute("decrease apples by 100")

        assert result.success is True
        assert fake_remote.items[0].quantity == 0

    async def test_item_lookup_is_case_insensitive(self, interpreter, repository, fake_remote):
        produce = (await repository.add_category("Produce", "")).value
        await repository.add_item("Bananas", produce.id)

        result = await interpreter.execute("Increase BANANAS")

        assert result.success is True
        assert fake_remote.items[0].quantity == 2

    async def test_first_match_wins_across_categories(
        self, interpreter, repository, fake_remote
    ):
        produce = (await repository.add_category("Produce", "")).value
        snacks = (await repository.add_category("Snacks", "")).value
        await repository.add_item("apples", produce.id)
        await repository.add_item("apples", snacks.id)

        await interpreter.execute("increase apples")

        assert [i.quantity for i in fake_remote.items] == [2, 1]

    async def test_missing_item(self, interpreter):
        result = await interpreter.execute("increase apples by 2")

        assert result.success is False
        assert result.reason == FailureReason.ITEM_NOT_FOUND
        assert result.intent == Intent.INCREASE_QUANTITY


class TestUnrecognized:
    """Tests for text matching no pattern."""

    async def test_no_mutation(self, interpreter, fake_remote, local_store):
        result = await interpreter.execute("what's the weather")

        assert result.success is False
        assert result.reason == FailureReason.NOT_UNDERSTOOD
        assert result.intent is None
        assert fake_remote.categories == []
        assert local_store.load_categories() == []

    async def test_to_dict(self, interpreter):
        result = await interpreter.execute("sing a song")
        assert result.to_dict() == {
            "success": False,
            "message": "I didn't understand that command",
            "intent": None,
            "reason": "not_understood",
            "degraded": False,
        }

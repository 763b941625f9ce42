"""CLI entry point for Grocery Voice."""

import asyncio
import logging
import mimetypes
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler

from .config import ConfigManager
from .output_formatter import OutputFormatter
from .repository import LOCAL_IMAGE_SCHEME, create_repository
from .state import EmptyNameError, GroceryState, NegativeQuantityError

T = TypeVar("T")

app = typer.Typer(
    name="grocery",
    help="Grocery lists by category, with voice-style commands",
    no_args_is_help=True,
)

# Global options (set by callback)
formatter: OutputFormatter = OutputFormatter()
config: ConfigManager | None = None
data_dir_override: Path | None = None
offline_mode: bool = False


def get_config() -> ConfigManager:
    """Get or create ConfigManager instance."""
    global config
    if config is None:
        config = ConfigManager()
    return config


def configure_logging(level: str) -> None:
    """Send package logs to stderr through Rich."""
    logger = logging.getLogger("grocery_voice")
    logger.handlers.clear()
    logger.addHandler(
        RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
    )
    if level not in logging.getLevelNamesMapping():
        logger.setLevel(logging.WARNING)
        logger.warning("Unknown log level %r, using WARNING", level)
        return
    logger.setLevel(level)


def run_with_state(action: Callable[[GroceryState], Awaitable[T]]) -> T:
    """Build a state store for one command, run ``action``, then close it."""

    async def runner() -> T:
        repository = create_repository(
            get_config(), data_dir=data_dir_override, offline=offline_mode
        )
        async with repository:
            return await action(GroceryState(repository))

    return asyncio.run(runner())


def _dump(records: list[Any]) -> list[dict]:
    return [r.model_dump(mode="json") for r in records]


def _degraded(state: GroceryState) -> bool:
    """Whether the remote store was configured but the local cache answered."""
    return state.degraded and state.repository.remote is not None


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON for programmatic use")
    ] = False,
    data_dir: Annotated[
        Path | None, typer.Option("--data-dir", help="Local cache directory")
    ] = None,
    offline: Annotated[
        bool, typer.Option("--offline", help="Use the local cache only")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Grocery Voice CLI - categories, quantities and spoken-style commands."""
    global formatter, config, data_dir_override, offline_mode

    formatter = OutputFormatter(json_mode=json_output)
    config = ConfigManager()
    data_dir_override = data_dir
    offline_mode = offline
    configure_logging("DEBUG" if verbose else config.logging.level)


@app.command(name="categories")
def list_categories() -> None:
    """List all categories."""

    async def action(state: GroceryState) -> None:
        await state.refresh_categories()
        formatter.output(
            {
                "success": True,
                "degraded": _degraded(state),
                "data": {"categories": _dump(state.categories)},
            }
        )

    try:
        run_with_state(action)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command(name="items")
def list_items(
    category_id: Annotated[str, typer.Argument(help="Category ID")],
) -> None:
    """List the items in a category."""

    async def action(state: GroceryState) -> bool:
        await state.refresh_categories()
        category = next((c for c in state.categories if c.id == category_id), None)
        if category is None:
            return False

        await state.refresh_items(category_id)
        formatter.output(
            {
                "success": True,
                "degraded": _degraded(state),
                "data": {
                    "category": category.model_dump(mode="json"),
                    "items": _dump(state.items[category_id]),
                },
            }
        )
        return True

    try:
        found = run_with_state(action)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)

    if not found:
        formatter.error(f"Category with ID '{category_id}' not found", "CATEGORY_NOT_FOUND")
        raise typer.Exit(code=1)


@app.command()
def say(
    words: Annotated[list[str], typer.Argument(help="Command text, e.g. add milk to dairy")],
) -> None:
    """Run a spoken-style command such as 'increase apples by 2'."""
    text = " ".join(words)

    async def action(state: GroceryState):
        result = await state.handle_voice_command(text)
        return result, state.repository.remote is not None

    try:
        result, has_remote = run_with_state(action)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)

    if not result.success:
        reason = result.reason.value.upper() if result.reason else None
        formatter.error(result.message, error_code=reason)
        raise typer.Exit(code=1)

    formatter.output(
        {
            "success": True,
            "message": result.message,
            "degraded": result.degraded and has_remote,
            "data": {"command": result.to_dict()},
        },
        result.message,
    )


# Category subcommand group
category_app = typer.Typer(help="Category commands")
app.add_typer(category_app, name="category")


@category_app.command("add")
def category_add(
    name: Annotated[str, typer.Argument(help="Category name")],
    image: Annotated[str, typer.Option("--image", "-i", help="Image URL")] = "",
    image_file: Annotated[
        Path | None, typer.Option("--image-file", help="Image file to upload")
    ] = None,
) -> None:
    """Create a category."""

    async def action(state: GroceryState):
        image_url = image
        if image_file is not None:
            content_type = mimetypes.guess_type(image_file.name)[0] or "application/octet-stream"
            uploaded = await state.upload_image(
                image_file.name, image_file.read_bytes(), content_type
            )
            image_url = uploaded or ""
        transient = image_url.startswith(LOCAL_IMAGE_SCHEME)
        category = await state.create_category(name, image_url)
        return category, _degraded(state), transient

    try:
        category, degraded, transient = run_with_state(action)
    except EmptyNameError as e:
        formatter.error(str(e), error_code="EMPTY_NAME")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)

    if category is None:
        formatter.error(f"Failed to add category {name}", error_code="STORE_FAILED")
        raise typer.Exit(code=1)

    message = f"Added category: {category.name}"
    data = {
        "success": True,
        "message": message,
        "degraded": degraded,
        "data": {"category": category.model_dump(mode="json")},
    }
    if transient:
        data["warning"] = "Image upload needs the remote store, category saved without image"
    formatter.output(data, message)


@category_app.command("remove")
def category_remove(
    category_id: Annotated[str, typer.Argument(help="Category ID to remove")],
) -> None:
    """Delete a category and all of its items."""

    async def action(state: GroceryState):
        return await state.remove_category(category_id), _degraded(state)

    try:
        removed, degraded = run_with_state(action)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)

    if not removed:
        formatter.error(f"Category with ID '{category_id}' not found", "CATEGORY_NOT_FOUND")
        raise typer.Exit(code=1)

    formatter.output(
        {"success": True, "message": "Category deleted", "degraded": degraded},
        "Category deleted",
    )


# Item subcommand group
item_app = typer.Typer(help="Item commands")
app.add_typer(item_app, name="item")


@item_app.command("add")
def item_add(
    name: Annotated[str, typer.Argument(help="Item name")],
    category_id: Annotated[str, typer.Argument(help="Category ID")],
) -> None:
    """Add an item to a category with quantity 1."""

    async def action(state: GroceryState):
        return await state.create_item(name, category_id), _degraded(state)

    try:
        item, degraded = run_with_state(action)
    except EmptyNameError as e:
        formatter.error(str(e), error_code="EMPTY_NAME")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)

    if item is None:
        formatter.error(f"Failed to add item {name}", error_code="STORE_FAILED")
        raise typer.Exit(code=1)

    message = f"Added item: {item.name}"
    formatter.output(
        {
            "success": True,
            "message": message,
            "degraded": degraded,
            "data": {"item": item.model_dump(mode="json")},
        },
        message,
    )


@item_app.command("remove")
def item_remove(
    item_id: Annotated[str, typer.Argument(help="Item ID to remove")],
) -> None:
    """Delete an item."""

    async def action(state: GroceryState):
        return await state.remove_item(item_id), _degraded(state)

    try:
        removed, degraded = run_with_state(action)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)

    if not removed:
        formatter.error(f"Item with ID '{item_id}' not found", error_code="ITEM_NOT_FOUND")
        raise typer.Exit(code=1)

    formatter.output(
        {"success": True, "message": "Item deleted", "degraded": degraded}, "Item deleted"
    )


@item_app.command("set-qty")
def item_set_quantity(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
    quantity: Annotated[int, typer.Argument(help="New quantity")],
) -> None:
    """Set an item's quantity."""

    async def action(state: GroceryState):
        return await state.update_quantity(item_id, quantity), _degraded(state)

    try:
        updated, degraded = run_with_state(action)
    except NegativeQuantityError as e:
        formatter.error(str(e), error_code="NEGATIVE_QUANTITY")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)

    if not updated:
        formatter.error(f"Item with ID '{item_id}' not found", error_code="ITEM_NOT_FOUND")
        raise typer.Exit(code=1)

    message = f"Quantity set to {quantity}"
    formatter.output(
        {"success": True, "message": message, "degraded": degraded}, message
    )


if __name__ == "__main__":
    app()

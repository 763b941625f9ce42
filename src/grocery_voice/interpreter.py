"""Free-text command interpretation.

A transcript is matched against four patterns in a fixed order. The first
pattern that matches decides the intent, even if executing it then fails
because the named category or item does not exist.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from .repository import GroceryRepository

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    """Recognized command actions."""

    ADD_ITEM = "add_item"
    CREATE_CATEGORY = "create_category"
    INCREASE_QUANTITY = "increase_quantity"
    DECREASE_QUANTITY = "decrease_quantity"


class FailureReason(str, Enum):
    """Why a command did not change anything."""

    NOT_UNDERSTOOD = "not_understood"
    CATEGORY_NOT_FOUND = "category_not_found"
    ITEM_NOT_FOUND = "item_not_found"
    EMPTY_NAME = "empty_name"
    STORE_FAILED = "store_failed"


_PATTERNS: list[tuple[Intent, re.Pattern[str]]] = [
    (Intent.ADD_ITEM, re.compile(r"\badd\s+(?P<item>.+?)\s+to\s+(?P<category>.*)")),
    (Intent.CREATE_CATEGORY, re.compile(r"\bcreate\s+category\s+(?P<category>.*)")),
    (
        Intent.INCREASE_QUANTITY,
        re.compile(r"\bincrease\s+(?P<item>.+?)(?:\s+by\s+(?P<amount>\d+))?\s*$"),
    ),
    (
        Intent.DECREASE_QUANTITY,
        re.compile(r"\bdecrease\s+(?P<item>.+?)(?:\s+by\s+(?P<amount>\d+))?\s*$"),
    ),
]


@dataclass
class Command:
    """A parsed command."""

    intent: Intent
    item: str = ""
    category: str = ""
    amount: int = 1


@dataclass
class CommandResult:
    """Outcome of executing a command."""

    success: bool
    message: str
    intent: Intent | None = None
    reason: FailureReason | None = None
    degraded: bool = False

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "intent": self.intent.value if self.intent else None,
            "reason": self.reason.value if self.reason else None,
            "degraded": self.degraded,
        }


def parse_command(text: str) -> Command | None:
    """Match text against the command patterns.

    Args:
        text: One utterance, any case

    Returns:
        The first matching Command, or None if nothing matched
    """
    lowered = text.lower().strip()

    for intent, pattern in _PATTERNS:
        match = pattern.search(lowered)
        if not match:
            continue

        groups = match.groupdict()
        amount = groups.get("amount")
        return Command(
            intent=intent,
            item=(groups.get("item") or "").strip(),
            category=(groups.get("category") or "").strip(),
            amount=int(amount) if amount else 1,
        )

    return None


class CommandInterpreter:
    """Turns free text into repository operations."""

    def __init__(self, repository: GroceryRepository):
        self.repository = repository

    async def execute(self, text: str) -> CommandResult:
        """Parse and run one command.

        Args:
            text: Transcript of a single utterance

        Returns:
            CommandResult describing what happened
        """
        command = parse_command(text)
        if command is None:
            logger.info("No command pattern matched %r", text)
            return CommandResult(
                success=False,
                message="I didn't understand that command",
                reason=FailureReason.NOT_UNDERSTOOD,
            )

        logger.debug("Matched %s: %s", command.intent.value, command)

        if command.intent == Intent.ADD_ITEM:
            return await self._add_item(command)
        if command.intent == Intent.CREATE_CATEGORY:
            return await self._create_category(command)
        return await self._change_quantity(command)

    async def _add_item(self, command: Command) -> CommandResult:
        if not command.item or not command.category:
            return _empty_name(command.intent)

        found = await self.repository.find_category_by_name(command.category)
        category = found.value
        if category is None:
            return CommandResult(
                success=False,
                message=f'Category "{command.category}" not found',
                intent=command.intent,
                reason=FailureReason.CATEGORY_NOT_FOUND,
                degraded=found.degraded,
            )

        added = await self.repository.add_item(command.item, category.id)
        if added.value is None:
            return _store_failed(command.intent, f"Failed to add {command.item}")

        return CommandResult(
            success=True,
            message=f"Added {command.item} to {category.name}",
            intent=command.intent,
            degraded=found.degraded or added.degraded,
        )

    async def _create_category(self, command: Command) -> CommandResult:
        if not command.category:
            return _empty_name(command.intent)

        created = await self.repository.add_category(command.category, "")
        if created.value is None:
            return _store_failed(command.intent, f"Failed to create {command.category}")

        return CommandResult(
            success=True,
            message=f"Created category: {command.category}",
            intent=command.intent,
            degraded=created.degraded,
        )

    async def _change_quantity(self, command: Command) -> CommandResult:
        if not command.item:
            return _empty_name(command.intent)

        found = await self.repository.find_item_by_name(command.item)
        item = found.value
        if item is None:
            return CommandResult(
                success=False,
                message=f'Item "{command.item}" not found',
                intent=command.intent,
                reason=FailureReason.ITEM_NOT_FOUND,
                degraded=found.degraded,
            )

        if command.intent == Intent.INCREASE_QUANTITY:
            quantity = item.quantity + command.amount
            verb = "Increased"
        else:
            quantity = max(0, item.quantity - command.amount)
            verb = "Decreased"

        updated = await self.repository.update_item_quantity(item.id, quantity)
        if not updated.value:
            return _store_failed(command.intent, f"Failed to update {command.item}")

        return CommandResult(
            success=True,
            message=f"{verb} {command.item} quantity to {quantity}",
            intent=command.intent,
            degraded=found.degraded or updated.degraded,
        )


def _empty_name(intent: Intent) -> CommandResult:
    return CommandResult(
        success=False,
        message="A name is required",
        intent=intent,
        reason=FailureReason.EMPTY_NAME,
    )


def _store_failed(intent: Intent, message: str) -> CommandResult:
    return CommandResult(
        success=False,
        message=message,
        intent=intent,
        reason=FailureReason.STORE_FAILED,
    )

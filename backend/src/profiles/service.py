import logging
from datetime import datetime, timezone
from typing import Optional

from src.profiles.bootstrap import parse_profile
from src.profiles.errors import InsufficientCredits, InvalidInput
from src.profiles.schemas import CreditKind, ProfileUpdate, UserProfile
from src.profiles.store import RecordStore

logger = logging.getLogger(__name__)

CREDIT_COLUMNS = {"find": "credits_find", "verify": "credits_verify"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_id(user_id: str):
    if not user_id or not user_id.strip():
        raise InvalidInput("User ID is required")


class ProfileService:
    """Field and credit updates on profiles that already exist."""

    def __init__(self, store: RecordStore, table: str = "profiles"):
        self.store = store
        self.table = table

    async def get_profile(self, user_id: str) -> UserProfile:
        _require_id(user_id)
        return parse_profile(await self.store.get(self.table, user_id))

    async def update_profile(self, user_id: str, updates: ProfileUpdate) -> UserProfile:
        _require_id(user_id)
        patch = updates.to_patch()
        if not patch:
            raise InvalidInput("No profile fields to update")
        patch["updated_at"] = _now_iso()
        row = await self.store.update(self.table, user_id, patch)
        logger.info(f"Updated profile {user_id}: {sorted(k for k in patch if k != 'updated_at')}")
        return parse_profile(row)

    async def update_credits(
        self,
        user_id: str,
        credits_find: Optional[int] = None,
        credits_verify: Optional[int] = None,
    ) -> UserProfile:
        """Set absolute credit balances. Only the given fields change."""
        _require_id(user_id)
        patch = {}
        for column, value in (("credits_find", credits_find), ("credits_verify", credits_verify)):
            if value is None:
                continue
            if value < 0:
                raise InvalidInput(f"{column} cannot be negative")
            patch[column] = value
        if not patch:
            raise InvalidInput("No credit fields to update")
        patch["updated_at"] = _now_iso()
        return parse_profile(await self.store.update(self.table, user_id, patch))

    async def use_credits(self, user_id: str, kind: CreditKind, quantity: int = 1) -> UserProfile:
        """Spend credits of one kind. Raises InsufficientCredits when short."""
        _require_id(user_id)
        column = CREDIT_COLUMNS.get(kind)
        if column is None:
            raise InvalidInput(f"Unknown credit kind: {kind}")
        if quantity < 1:
            raise InvalidInput("quantity must be at least 1")

        profile = await self.get_profile(user_id)
        available = profile.credits(kind)
        if available < quantity:
            raise InsufficientCredits(kind, available, quantity)

        # TODO: move to a Postgres RPC so check-and-decrement is one statement
        row = await self.store.update(
            self.table, user_id, {column: available - quantity, "updated_at": _now_iso()}
        )
        logger.info(f"User {user_id} used {quantity} {kind} credit(s), {available - quantity} left")
        return parse_profile(row)

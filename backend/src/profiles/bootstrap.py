"""
Profile bootstrap — make sure a profile row exists for an identity.

Lookup first; on a miss insert the free-plan defaults. A lost insert race is
resolved by re-reading the row the other caller created. Only StoreError is
retried, with linear backoff (attempt_number x base_delay).
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from src.config import Settings
from src.profiles.errors import (
    BootstrapFailed,
    InvalidInput,
    NotFound,
    StoreError,
    UniqueViolation,
)
from src.profiles.schemas import Identity, UserProfile
from src.profiles.store import RecordStore

logger = logging.getLogger(__name__)


def parse_profile(row: dict) -> UserProfile:
    try:
        return UserProfile.model_validate(row)
    except ValidationError as e:
        raise StoreError(f"Malformed profile row: {e.error_count()} invalid field(s)") from e


class ProfileBootstrapper:
    def __init__(
        self,
        store: RecordStore,
        table: str = "profiles",
        base_delay: float = 1.0,
        default_attempts: int = 3,
        credits_find: int = 25,
        credits_verify: int = 25,
        trial_days: int = 7,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.table = table
        self.base_delay = base_delay
        self.default_attempts = default_attempts
        self.credits_find = credits_find
        self.credits_verify = credits_verify
        self.trial_days = trial_days
        self._sleep = sleep

    @classmethod
    def from_settings(cls, store: RecordStore, settings: Settings, **kwargs) -> "ProfileBootstrapper":
        return cls(
            store,
            table=settings.profiles_table,
            base_delay=settings.bootstrap_base_delay,
            default_attempts=settings.bootstrap_max_attempts,
            credits_find=settings.default_credits_find,
            credits_verify=settings.default_credits_verify,
            trial_days=settings.trial_days,
            **kwargs,
        )

    @staticmethod
    def _validate(identity: Optional[Identity]) -> Identity:
        if identity is None or not identity.id or not identity.id.strip():
            raise InvalidInput("Identity id is required")
        return identity

    async def ensure_profile(self, identity: Identity) -> UserProfile:
        """Return the identity's profile, creating it on first access."""
        identity = self._validate(identity)

        try:
            return parse_profile(await self.store.get(self.table, identity.id))
        except NotFound:
            pass

        profile = UserProfile.new_for(
            identity,
            credits_find=self.credits_find,
            credits_verify=self.credits_verify,
            trial_days=self.trial_days,
        )
        try:
            row = await self.store.insert(self.table, profile.to_record())
            logger.info(f"Created profile for user {identity.id} (plan={profile.plan.value})")
        except UniqueViolation:
            logger.warning(f"Profile for {identity.id} was created concurrently, re-fetching")
            try:
                row = await self.store.get(self.table, identity.id)
            except NotFound as e:
                raise StoreError(f"Profile {identity.id} vanished after insert race") from e

        return parse_profile(row)

    def _log_retry(self, retry_state: RetryCallState):
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        wait = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"Profile bootstrap attempt {retry_state.attempt_number} failed: {exc}. "
            f"Retrying in {wait:.1f}s"
        )

    async def ensure_profile_with_retry(
        self, identity: Identity, max_attempts: Optional[int] = None
    ) -> UserProfile:
        """ensure_profile with bounded linear-backoff retry on StoreError.

        Raises BootstrapFailed (carrying the last StoreError) once every
        attempt has failed. InvalidInput is raised immediately.
        """
        if max_attempts is None:
            max_attempts = self.default_attempts
        if max_attempts < 1:
            raise InvalidInput("max_attempts must be at least 1")
        identity = self._validate(identity)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_incrementing(start=self.base_delay, increment=self.base_delay),
            retry=retry_if_exception_type(StoreError),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        attempts = 0
        try:
            async for attempt in retrying:
                with attempt:
                    attempts += 1
                    return await self.ensure_profile(identity)
        except StoreError as e:
            logger.error(f"Giving up on profile for {identity.id} after {attempts} attempts: {e}")
            raise BootstrapFailed(attempts, e) from e

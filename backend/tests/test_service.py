"""
Tests for profile field and credit operations
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from src.profiles.errors import InsufficientCredits, InvalidInput, NotFound
from src.profiles.schemas import Identity, Plan, ProfileUpdate, UserProfile
from src.profiles.service import ProfileService
from src.profiles.store import MemoryRecordStore


@pytest_asyncio.fixture
async def seeded_store():
    store = MemoryRecordStore()
    profile = UserProfile.new_for(Identity(id="u1", email="jo@x.com"))
    await store.insert("profiles", profile.to_record())
    return store


class TestProfileUpdates:
    @pytest.mark.asyncio
    async def test_correct_full_name(self, seeded_store):
        service = ProfileService(seeded_store)

        profile = await service.update_profile("u1", ProfileUpdate(full_name="Jo Smith"))

        assert profile.full_name == "Jo Smith"
        assert profile.credits_find == 25

    @pytest.mark.asyncio
    async def test_plan_change(self, seeded_store):
        expiry = datetime.now(timezone.utc) + timedelta(days=30)
        profile = await ProfileService(seeded_store).update_profile(
            "u1", ProfileUpdate(plan=Plan.PRO, plan_expiry=expiry)
        )
        assert profile.plan == Plan.PRO
        assert profile.is_plan_active()

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, seeded_store):
        with pytest.raises(InvalidInput):
            await ProfileService(seeded_store).update_profile("u1", ProfileUpdate())

    @pytest.mark.asyncio
    async def test_missing_profile(self, seeded_store):
        with pytest.raises(NotFound):
            await ProfileService(seeded_store).update_profile("ghost", ProfileUpdate(full_name="x"))

    @pytest.mark.asyncio
    async def test_blank_user_id(self, seeded_store):
        with pytest.raises(InvalidInput):
            await ProfileService(seeded_store).get_profile("")


class TestCredits:
    @pytest.mark.asyncio
    async def test_set_only_given_balance(self, seeded_store):
        profile = await ProfileService(seeded_store).update_credits("u1", credits_verify=100)
        assert profile.credits_verify == 100
        assert profile.credits_find == 25

    @pytest.mark.asyncio
    async def test_set_credits_requires_a_field(self, seeded_store):
        with pytest.raises(InvalidInput):
            await ProfileService(seeded_store).update_credits("u1")

    @pytest.mark.asyncio
    async def test_negative_balance_rejected(self, seeded_store):
        with pytest.raises(InvalidInput):
            await ProfileService(seeded_store).update_credits("u1", credits_find=-1)

    @pytest.mark.asyncio
    async def test_use_credits_decrements(self, seeded_store):
        service = ProfileService(seeded_store)

        profile = await service.use_credits("u1", "find", 5)

        assert profile.credits_find == 20
        assert profile.credits_verify == 25
        assert (await service.get_profile("u1")).credits_find == 20

    @pytest.mark.asyncio
    async def test_use_all_remaining(self, seeded_store):
        profile = await ProfileService(seeded_store).use_credits("u1", "verify", 25)
        assert profile.credits_verify == 0

    @pytest.mark.asyncio
    async def test_insufficient_credits(self, seeded_store):
        service = ProfileService(seeded_store)

        with pytest.raises(InsufficientCredits) as exc_info:
            await service.use_credits("u1", "verify", 26)

        assert exc_info.value.available == 25
        assert exc_info.value.requested == 26
        assert (await service.get_profile("u1")).credits_verify == 25

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind,quantity", [("search", 1), ("find", 0)])
    async def test_bad_usage_arguments(self, seeded_store, kind, quantity):
        with pytest.raises(InvalidInput):
            await ProfileService(seeded_store).use_credits("u1", kind, quantity)


class TestPlanActive:
    def test_no_expiry_is_inactive(self):
        assert not UserProfile(id="u1").is_plan_active()

    def test_past_expiry_is_inactive(self):
        past = datetime.now(timezone.utc) - timedelta(seconds=1)
        assert not UserProfile(id="u1", plan_expiry=past).is_plan_active()

    def test_new_profile_trial_is_active(self):
        profile = UserProfile.new_for(Identity(id="u1", email="a@b.com"))
        assert profile.is_plan_active()

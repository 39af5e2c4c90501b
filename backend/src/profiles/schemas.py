from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

CreditKind = Literal["find", "verify"]


class Plan(str, Enum):
    FREE = "free"
    STARTER = "starter"
    PRO = "pro"
    LIFETIME = "lifetime"


class Identity(BaseModel):
    """The authenticated caller as presented to the bootstrapper."""

    id: str
    email: Optional[str] = None
    name_hint: Optional[str] = None

    @classmethod
    def from_auth_user(cls, user: dict) -> "Identity":
        """Build from a Supabase Auth `/auth/v1/user` payload."""
        metadata = user.get("user_metadata") or {}
        return cls(
            id=user.get("id") or "",
            email=user.get("email"),
            name_hint=metadata.get("full_name"),
        )

    def display_name(self) -> str:
        if self.name_hint:
            return self.name_hint
        if self.email:
            local = self.email.split("@", 1)[0]
            if local:
                return local
        return "User"


class UserProfile(BaseModel):
    id: str
    email: str = ""
    full_name: Optional[str] = None
    plan: Plan = Plan.FREE
    credits_find: int = Field(25, ge=0)
    credits_verify: int = Field(25, ge=0)
    plan_expiry: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def new_for(
        cls,
        identity: Identity,
        credits_find: int = 25,
        credits_verify: int = 25,
        trial_days: int = 7,
        now: Optional[datetime] = None,
    ) -> "UserProfile":
        """Default free-plan profile for a first-time identity."""
        now = now or datetime.now(timezone.utc)
        return cls(
            id=identity.id,
            email=identity.email or "",
            full_name=identity.display_name(),
            plan=Plan.FREE,
            credits_find=credits_find,
            credits_verify=credits_verify,
            plan_expiry=now + timedelta(days=trial_days),
            created_at=now,
            updated_at=now,
        )

    def to_record(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)

    def credits(self, kind: CreditKind) -> int:
        return self.credits_find if kind == "find" else self.credits_verify

    def is_plan_active(self, now: Optional[datetime] = None) -> bool:
        if self.plan_expiry is None:
            return False
        now = now or datetime.now(timezone.utc)
        expiry = self.plan_expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return expiry > now


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    plan: Optional[Plan] = None
    plan_expiry: Optional[datetime] = None

    def to_patch(self) -> dict:
        return self.model_dump(mode="json", exclude_unset=True)


class NameUpdate(BaseModel):
    """The only profile field a user may change about themselves."""

    full_name: str = Field(..., min_length=1, max_length=200)


class CreditsUpdate(BaseModel):
    credits_find: Optional[int] = Field(None, ge=0)
    credits_verify: Optional[int] = Field(None, ge=0)


class UseCreditsRequest(BaseModel):
    kind: CreditKind
    quantity: int = Field(1, ge=1, le=10000)

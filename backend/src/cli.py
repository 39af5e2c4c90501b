"""
Profile maintenance commands, run with the service-role key.

Usage:
    python -m src.cli ensure --id <uuid> --email jo@example.com [--name "Jo"]
    python -m src.cli show --id <uuid>
    python -m src.cli set-name --id <uuid> --name "Jo Smith"
    python -m src.cli set-credits --id <uuid> [--find 25] [--verify 25]
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from src.config import get_settings, get_supabase_client
from src.profiles.bootstrap import ProfileBootstrapper
from src.profiles.errors import BootstrapFailed, ProfileError
from src.profiles.schemas import Identity, ProfileUpdate, UserProfile
from src.profiles.service import ProfileService
from src.profiles.store import RecordStore, SupabaseRecordStore

logger = logging.getLogger(__name__)


def format_profile(profile: UserProfile) -> str:
    expiry = profile.plan_expiry.isoformat() if profile.plan_expiry else "none"
    status = "active" if profile.is_plan_active() else "expired"
    lines = [
        f"{'=' * 60}",
        f"Profile {profile.id}",
        f"{'=' * 60}",
        f"Email:          {profile.email or '-'}",
        f"Name:           {profile.full_name or '-'}",
        f"Plan:           {profile.plan.value} ({status}, expires {expiry})",
        f"Find credits:   {profile.credits_find}",
        f"Verify credits: {profile.credits_verify}",
    ]
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Profile maintenance")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    ensure = sub.add_parser("ensure", help="Create the profile if it is missing")
    ensure.add_argument("--id", required=True)
    ensure.add_argument("--email")
    ensure.add_argument("--name", help="Full name (defaults to the email local part)")
    ensure.add_argument("--attempts", type=int, default=None)

    show = sub.add_parser("show", help="Print an existing profile")
    show.add_argument("--id", required=True)

    set_name = sub.add_parser("set-name", help="Correct a profile's full name")
    set_name.add_argument("--id", required=True)
    set_name.add_argument("--name", required=True)

    set_credits = sub.add_parser("set-credits", help="Set absolute credit balances")
    set_credits.add_argument("--id", required=True)
    set_credits.add_argument("--find", type=int)
    set_credits.add_argument("--verify", type=int)

    return parser


async def run(args: argparse.Namespace, store: RecordStore) -> UserProfile:
    settings = get_settings()
    service = ProfileService(store, table=settings.profiles_table)

    if args.command == "ensure":
        bootstrapper = ProfileBootstrapper.from_settings(store, settings)
        identity = Identity(id=args.id, email=args.email, name_hint=args.name)
        return await bootstrapper.ensure_profile_with_retry(identity, args.attempts)
    if args.command == "show":
        return await service.get_profile(args.id)
    if args.command == "set-name":
        return await service.update_profile(args.id, ProfileUpdate(full_name=args.name))
    if args.command == "set-credits":
        return await service.update_credits(args.id, args.find, args.verify)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[list[str]] = None, store: Optional[RecordStore] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s [%(name)s] %(message)s",
    )

    if store is None:
        sb = get_supabase_client()
        if not sb:
            print("Supabase is not configured. Set SUPABASE_URL and SUPABASE_SERVICE_KEY.", file=sys.stderr)
            return 1
        store = SupabaseRecordStore(sb)

    try:
        profile = asyncio.run(run(args, store))
    except BootstrapFailed as e:
        print(f"Bootstrap failed after {e.attempts} attempts: {e.last_error}", file=sys.stderr)
        return 1
    except ProfileError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1

    print(format_profile(profile))
    return 0


if __name__ == "__main__":
    sys.exit(main())

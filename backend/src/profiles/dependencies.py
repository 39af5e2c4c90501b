from fastapi import Depends, HTTPException

from src.config import get_settings, get_supabase_client, Settings
from src.profiles.bootstrap import ProfileBootstrapper
from src.profiles.service import ProfileService
from src.profiles.store import RecordStore, SupabaseRecordStore


def get_record_store() -> RecordStore:
    sb = get_supabase_client()
    if not sb:
        raise HTTPException(status_code=503, detail="Database not configured")
    return SupabaseRecordStore(sb)


def get_bootstrapper(
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings),
) -> ProfileBootstrapper:
    return ProfileBootstrapper.from_settings(store, settings)


def get_profile_service(
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings),
) -> ProfileService:
    return ProfileService(store, table=settings.profiles_table)

from pydantic_settings import BaseSettings
from functools import lru_cache
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_service_key: str = ""

    # Profiles
    profiles_table: str = "profiles"
    bootstrap_max_attempts: int = 3
    bootstrap_base_delay: float = 1.0
    default_credits_find: int = 25
    default_credits_verify: int = 25
    trial_days: int = 7

    # App
    frontend_url: str = "http://localhost:3000"
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()


_supabase_client = None
_supabase_attempted = False


def get_supabase_client():
    """Get Supabase admin client. Returns None if not configured or keys are invalid."""
    global _supabase_client, _supabase_attempted

    if _supabase_attempted:
        return _supabase_client

    _supabase_attempted = True
    s = get_settings()

    if not s.supabase_url or not s.supabase_service_key:
        logger.warning("Supabase URL or service key not configured. Profile features disabled.")
        return None

    try:
        from supabase import create_client
        _supabase_client = create_client(s.supabase_url, s.supabase_service_key)
        logger.info("Supabase client initialized successfully.")
        return _supabase_client
    except Exception as e:
        logger.error(
            f"Failed to initialize Supabase client: {e}. "
            "Profile bootstrap and credit endpoints will be disabled. "
            "Check that SUPABASE_URL and SUPABASE_SERVICE_KEY hold the project URL and service-role key."
        )
        return None

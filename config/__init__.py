"""
Configuration module.

Settings (env/.env, matching thresholds included) and the Supabase client
used for inventory writes and the confirmed-link log.
"""

from config.settings import settings, get_settings, Settings
from config.database import (
    get_supabase_client,
    check_connection,
    SupabaseConnectionError,
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "get_supabase_client",
    "check_connection",
    "SupabaseConnectionError",
]

# app/core/supabase_client.py
from functools import lru_cache
from supabase import create_client, Client, ClientOptions

from app.core.config import get_settings

settings = get_settings()


def supabase_session_client() -> Client:
    """
    Create a fresh Supabase client with the anon/public key.

    One client per client session:
      - the auth module keeps the signed-in session in memory,
        so clients must never be shared between browsers
      - PKCE flow so OAuth sign-in can be completed server side

    Note: This client still respects RLS.
    """
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_KEY,
        options=ClientOptions(flow_type="pkce"),
    )


@lru_cache
def supabase_storage() -> Client:
    """
    Shared Supabase client used for Storage uploads.

    Uses the service role key when configured (bucket writes bypass RLS),
    otherwise falls back to the anon key.

    WARNING:
      - Never expose service role key to frontend.
    """
    key = settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_KEY
    return create_client(settings.SUPABASE_URL, key)

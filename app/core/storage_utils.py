# app/core/storage_utils.py
from app.core.config import get_settings
from app.core.supabase_client import supabase_storage

settings = get_settings()


def avatar_path(identity_id: str) -> str:
    """
    Object path of a user's avatar inside the bucket.

    There is exactly one avatar per user; a new upload replaces the old one.
    """
    return f"avatars/{identity_id}"


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to Supabase Storage and return a public URL.

    If a file already exists at this path, it will be overwritten
    thanks to the 'upsert' option.

    Args:
        path: Full object path inside the bucket, e.g. "avatars/<uid>".
        file_bytes: File content in bytes.
        content_type: MIME type stored with the object.

    Returns:
        Public URL to the uploaded file.

    Raises:
        Any exception raised by Supabase client if upload fails.
    """
    bucket = supabase_storage().storage.from_(settings.STORAGE_BUCKET)
    bucket.upload(
        path,
        file_bytes,
        {"upsert": "true", "content-type": content_type},
    )
    return bucket.get_public_url(path)

"""Resolve object-store file keys to fetchable image URLs."""

from urllib.parse import quote

from config import settings
from models import DocumentFile


def build_image_url(file_key: str) -> str:
    encoded_key = quote(file_key, safe="")
    if settings.STORAGE_PUBLIC_URL:
        return f"{settings.STORAGE_PUBLIC_URL.rstrip('/')}/{encoded_key}"
    return (
        f"https://{settings.R2_ACCOUNT_ID}.r2.cloudflarestorage.com/"
        f"{settings.R2_BUCKET_NAME}/{encoded_key}"
    )


def image_url_for(file: DocumentFile) -> str:
    """Prefer a URL already resolved by the upload flow."""
    return file.url or build_image_url(file.file_key)

# app/core/storage_utils.py
import uuid

from app.core.config import get_settings
from app.core.supabase_client import supabase_admin, supabase_public

settings = get_settings()


class StorageError(RuntimeError):
    """A Supabase Storage call failed (network, bucket, permissions)."""


def product_image_bucket() -> str:
    """Configured name of the product image bucket."""
    return settings.PRODUCT_IMAGE_BUCKET


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to the product image bucket and return a public URL.

    Uploads never overwrite ('upsert' off); callers generate unique paths.

    Args:
        path: Full object path inside the bucket.
              Example: "products/<uuid>/<uuid>.png"
        file_bytes: File content in bytes.
        content_type: MIME type stored with the object.

    Raises:
        StorageError: if the Supabase client fails.
    """
    try:
        bucket = supabase_admin().storage.from_(product_image_bucket())
        bucket.upload(
            path,
            file_bytes,
            {"content-type": content_type, "cache-control": "3600", "upsert": "false"},
        )
        return bucket.get_public_url(path)
    except Exception as e:
        raise StorageError(f"upload of {path!r} failed: {e}") from e


def public_url(path: str) -> str:
    """Public URL for an object in the product image bucket."""
    try:
        return supabase_public().storage.from_(product_image_bucket()).get_public_url(path)
    except Exception as e:
        raise StorageError(f"public URL for {path!r} failed: {e}") from e


def delete_from_storage(path: str) -> None:
    """
    Delete a file from the product image bucket by its object path.
    """
    try:
        # Supabase Python client expects a list of paths.
        supabase_admin().storage.from_(product_image_bucket()).remove([path])
    except Exception as e:
        raise StorageError(f"delete of {path!r} failed: {e}") from e


def extract_path_from_public_url(url: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/product-images/products/a.png
        -> 'products/a.png'
    """
    marker = f"/storage/v1/object/public/{product_image_bucket()}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :]


def generate_object_path(product_id: uuid.UUID, ext: str) -> str:
    """
    Object path for a new product image.

    Returns:
        A path like "products/<product_id>/<uuid4>.png"
    """
    return f"products/{product_id}/{uuid.uuid4()}.{ext}"

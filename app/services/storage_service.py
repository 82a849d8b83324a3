# app/services/storage_service.py
from sqlmodel import Session

from app.core.policy import Identity, Operation, PolicyEngine, Resource
from app.core.storage_utils import public_url
from app.services.base import PolicyGuardedService


class StorageService(PolicyGuardedService):
    """
    Public reads of storage objects.

    Only objects in the configured product image bucket are readable,
    by anyone including anonymous callers.
    """

    def __init__(self, policy: PolicyEngine):
        super().__init__(policy)

    def resolve_public_object(
        self,
        session: Session,
        identity: Identity,
        bucket: str,
        path: str,
    ) -> str:
        """Return the public URL of `bucket/path` if the caller may read it."""
        self._enforce(
            session, identity, Resource.PRODUCT_IMAGE, Operation.SELECT,
            {"bucket_id": bucket, "name": path},
        )
        return public_url(path)

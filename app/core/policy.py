# app/core/policy.py
"""
Row-level access control for storefront resources.

Every read or write against profiles, categories, products, orders and
product-image storage objects is checked here as

    engine.can(session, identity, resource, operation, row)

which answers ALLOW (True) or DENY (False). Rules mirror the database's
row-level security policies:

    resource       select           insert              update              delete
    profile        self | admin     self as user|admin  self as user|admin  admin
    category       authenticated    admin               admin               admin
    product        authenticated    admin               admin               admin
    order          owner | admin    owner | admin       admin               admin
    productImage   public (bucket)  admin (bucket)      admin (bucket)      admin (bucket)

Anything not in the table is denied. The caller's role is read from the
profiles table on every evaluation through `RoleResolver`, never from token
claims or a cache. Evaluation never raises: if the role cannot be
determined the answer is DENY and the failure is logged as an
"authz resolution error", separate from ordinary "authz deny" lines.
"""
import enum
import logging
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.config import get_settings
from app.repositories.profile_repo import ProfileRepository

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)

# Anonymous callers carry no identity
ANONYMOUS = None
Identity = uuid.UUID | None

# Decision reason when a rule needs a signed-in caller and there is none
REASON_ANONYMOUS = "anonymous"


class Resource(str, enum.Enum):
    PROFILE = "profile"
    CATEGORY = "category"
    PRODUCT = "product"
    ORDER = "order"
    PRODUCT_IMAGE = "productImage"


class Operation(str, enum.Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class RoleResolutionError(Exception):
    """The caller's role could not be read from storage."""


class PermissionDenied(Exception):
    """Raised by `PolicyEngine.enforce` when a check answers DENY."""

    def __init__(self, decision: "Decision"):
        super().__init__(decision.reason)
        self.decision = decision


@dataclass(frozen=True)
class Decision:
    allowed: bool
    resource: str
    operation: str
    identity: Identity
    reason: str
    # True when the role lookup failed, as opposed to an ordinary denial
    resolution_error: bool = False


@dataclass(frozen=True)
class _Context:
    identity: Identity
    role: str | None
    row: Any
    bucket: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def field(self, name: str) -> Any:
        return _row_field(self.row, name)

    def owns(self, name: str) -> bool:
        return self.identity is not None and _as_uuid(self.field(name)) == self.identity


def _row_field(row: Any, name: str) -> Any:
    if row is None:
        return None
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _as_uuid(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str):
        try:
            return uuid.UUID(value)
        except ValueError:
            return None
    return None


class RoleResolver:
    """
    Privileged accessor for the caller's role.

    Reads the profiles table straight through the repository, outside the
    profile select rule: a non-admin may only see their own profile row,
    and the admin check must work before anyone knows whether the caller
    is an admin.
    """

    def __init__(self, repo: ProfileRepository):
        self.repo = repo

    def resolve_role(self, session: Session, identity: Identity) -> str | None:
        """
        Return "user" / "admin" for an identity, or None if it has no profile.

        Raises:
            RoleResolutionError: malformed identity, storage failure or a
                role value outside the known set.
        """
        if not isinstance(identity, uuid.UUID):
            raise RoleResolutionError(f"malformed identity {identity!r}")

        try:
            role = self.repo.get_role(session, identity)
        except SQLAlchemyError as e:
            raise RoleResolutionError(f"profile lookup failed: {e}") from e

        if role is None:
            return None
        # Exact match: "Admin" is not an admin
        if role not in ROLES:
            raise RoleResolutionError(f"unknown role {role!r}")
        return role

    def is_admin(self, session: Session, identity: Identity) -> bool:
        """
        Role-check predicate for use by other policies and services.

        Fail-closed: any resolution problem answers False.
        """
        try:
            return self.resolve_role(session, identity) == ROLE_ADMIN
        except RoleResolutionError as e:
            logger.error("authz resolution error identity=%s: %s", identity, e)
            return False


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _authenticated(ctx: _Context) -> bool:
    return ctx.identity is not None


def _admin(ctx: _Context) -> bool:
    return ctx.is_admin


def _profile_select(ctx: _Context) -> bool:
    return ctx.owns("id") or ctx.is_admin


def _profile_write(ctx: _Context) -> bool:
    # Submitted role is checked, not the caller's current one. A missing
    # role means the column default ("user") applies.
    submitted = _row_field(ctx.row, "role") or ROLE_USER
    return (ctx.owns("id") and submitted == ROLE_USER) or ctx.is_admin


def _order_owner_or_admin(ctx: _Context) -> bool:
    return ctx.owns("user_id") or ctx.is_admin


def _in_bucket(ctx: _Context) -> bool:
    bucket = ctx.field("bucket_id")
    if bucket is None:
        bucket = ctx.field("bucket")
    return bucket == ctx.bucket


def _bucket_admin(ctx: _Context) -> bool:
    return _in_bucket(ctx) and ctx.is_admin


Rule = Callable[[_Context], bool]

RULES: dict[tuple[Resource, Operation], Rule] = {
    (Resource.PROFILE, Operation.SELECT): _profile_select,
    (Resource.PROFILE, Operation.INSERT): _profile_write,
    (Resource.PROFILE, Operation.UPDATE): _profile_write,
    (Resource.PROFILE, Operation.DELETE): _admin,
    (Resource.CATEGORY, Operation.SELECT): _authenticated,
    (Resource.CATEGORY, Operation.INSERT): _admin,
    (Resource.CATEGORY, Operation.UPDATE): _admin,
    (Resource.CATEGORY, Operation.DELETE): _admin,
    (Resource.PRODUCT, Operation.SELECT): _authenticated,
    (Resource.PRODUCT, Operation.INSERT): _admin,
    (Resource.PRODUCT, Operation.UPDATE): _admin,
    (Resource.PRODUCT, Operation.DELETE): _admin,
    (Resource.ORDER, Operation.SELECT): _order_owner_or_admin,
    (Resource.ORDER, Operation.INSERT): _order_owner_or_admin,
    (Resource.ORDER, Operation.UPDATE): _admin,
    (Resource.ORDER, Operation.DELETE): _admin,
    (Resource.PRODUCT_IMAGE, Operation.SELECT): _in_bucket,
    (Resource.PRODUCT_IMAGE, Operation.INSERT): _bucket_admin,
    (Resource.PRODUCT_IMAGE, Operation.UPDATE): _bucket_admin,
    (Resource.PRODUCT_IMAGE, Operation.DELETE): _bucket_admin,
}

# Open to anonymous callers; evaluated without a role lookup
PUBLIC: frozenset[tuple[Resource, Operation]] = frozenset(
    {(Resource.PRODUCT_IMAGE, Operation.SELECT)}
)


class PolicyEngine:
    """
    Stateless evaluator of `RULES`.

    Safe to share between concurrent requests: each evaluation does one
    role read on the caller's session and keeps nothing afterwards.
    """

    def __init__(self, resolver: RoleResolver, bucket: str):
        self.resolver = resolver
        self.bucket = bucket

    def evaluate(
        self,
        session: Session,
        identity: Identity,
        resource: Resource | str,
        operation: Operation | str,
        row: Any = None,
    ) -> Decision:
        try:
            resource = Resource(resource)
            operation = Operation(operation)
        except ValueError:
            return self._deny(identity, resource, operation, "no rule")

        key = (resource, operation)
        rule = RULES.get(key)
        if rule is None:
            return self._deny(identity, resource, operation, "no rule")

        if key in PUBLIC:
            ctx = _Context(identity=identity, role=None, row=row, bucket=self.bucket)
            return self._decide(rule, ctx, identity, resource, operation)

        if identity is None:
            return self._deny(identity, resource, operation, REASON_ANONYMOUS)

        # String ids are accepted; anything unparsable fails in the resolver
        identity = _as_uuid(identity) or identity
        try:
            role = self.resolver.resolve_role(session, identity)
        except RoleResolutionError as e:
            return self._resolution_error(identity, resource, operation, str(e))

        # Without a profile the only thing an identity may do is create
        # its own (user) profile.
        if role is None and key != (Resource.PROFILE, Operation.INSERT):
            return self._resolution_error(
                identity, resource, operation, "no profile for identity"
            )

        ctx = _Context(identity=identity, role=role, row=row, bucket=self.bucket)
        return self._decide(rule, ctx, identity, resource, operation)

    def can(
        self,
        session: Session,
        identity: Identity,
        resource: Resource | str,
        operation: Operation | str,
        row: Any = None,
    ) -> bool:
        return self.evaluate(session, identity, resource, operation, row).allowed

    def enforce(
        self,
        session: Session,
        identity: Identity,
        resource: Resource | str,
        operation: Operation | str,
        row: Any = None,
    ) -> None:
        """
        Raise PermissionDenied unless the operation is allowed.
        """
        decision = self.evaluate(session, identity, resource, operation, row)
        if not decision.allowed:
            raise PermissionDenied(decision)

    def filter_visible(
        self,
        session: Session,
        identity: Identity,
        resource: Resource | str,
        rows: Iterable[Any],
    ) -> list[Any]:
        """
        Keep only the rows the caller may select, like RLS does for a query.
        """
        return [
            row
            for row in rows
            if self.can(session, identity, resource, Operation.SELECT, row)
        ]

    # ----- Helpers -----

    def _decide(
        self,
        rule: Rule,
        ctx: _Context,
        identity: Identity,
        resource: Resource,
        operation: Operation,
    ) -> Decision:
        if rule(ctx):
            return Decision(
                allowed=True,
                resource=resource.value,
                operation=operation.value,
                identity=identity,
                reason="allowed",
            )
        return self._deny(identity, resource, operation, f"rule {rule.__name__.lstrip('_')}")

    @staticmethod
    def _deny(identity, resource, operation, reason: str) -> Decision:
        resource = getattr(resource, "value", resource)
        operation = getattr(operation, "value", operation)
        logger.info(
            "authz deny resource=%s operation=%s identity=%s reason=%s",
            resource, operation, identity, reason,
        )
        return Decision(
            allowed=False,
            resource=str(resource),
            operation=str(operation),
            identity=identity,
            reason=reason,
        )

    @staticmethod
    def _resolution_error(identity, resource, operation, reason: str) -> Decision:
        logger.error(
            "authz resolution error resource=%s operation=%s identity=%s: %s",
            resource.value, operation.value, identity, reason,
        )
        return Decision(
            allowed=False,
            resource=resource.value,
            operation=operation.value,
            identity=identity,
            reason=reason,
            resolution_error=True,
        )


@lru_cache
def get_policy_engine() -> PolicyEngine:
    """
    Process-wide engine bound to the configured product image bucket.
    """
    settings = get_settings()
    return PolicyEngine(
        RoleResolver(ProfileRepository()),
        bucket=settings.PRODUCT_IMAGE_BUCKET,
    )

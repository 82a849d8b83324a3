# app/services/base.py
from typing import Any

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.policy import (
    REASON_ANONYMOUS,
    Identity,
    Operation,
    PermissionDenied,
    PolicyEngine,
    Resource,
)


class PolicyGuardedService:
    """
    Shared plumbing for services whose operations go through the policy engine.

    A DENY becomes 401 when the rule needs a signed-in caller and there is
    none, and 403 "Not permitted" otherwise. Clients must not retry either.
    Single-row lookups of rows the caller cannot see answer 404.
    """

    def __init__(self, policy: PolicyEngine):
        self.policy = policy

    def _enforce(
        self,
        session: Session,
        identity: Identity,
        resource: Resource,
        operation: Operation,
        row: Any = None,
    ) -> None:
        try:
            self.policy.enforce(session, identity, resource, operation, row)
        except PermissionDenied as e:
            if e.decision.reason == REASON_ANONYMOUS:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Authentication required",
                )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not permitted",
            )

    def _visible(
        self,
        session: Session,
        identity: Identity,
        resource: Resource,
        row: Any,
        what: str,
    ) -> None:
        """
        Require the caller to be able to see `row`.

        A row the caller may not select is reported as missing, the same
        way a row-level-secured query would simply not return it.
        """
        decision = self.policy.evaluate(session, identity, resource, Operation.SELECT, row)
        if decision.allowed:
            return
        if decision.reason == REASON_ANONYMOUS:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
            )
        if decision.resolution_error:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not permitted",
            )
        raise self._not_found(what)

    @staticmethod
    def _not_found(what: str) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{what} not found",
        )

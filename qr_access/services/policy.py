# =======================================================================================
# qr_access/services/policy.py - Authorization Policy Engine
# =======================================================================================
"""
Role and ownership predicates evaluated before every operation.

Each (entity, operation) pair maps to a predicate over two facts about the
caller: whether it is the subject of the operation ("self") and whether it
holds an admin role membership. Pairs missing from the table are denied.
A denied operation does not run at all; the caller gets the operation's
empty result, exactly as if the subject did not exist.
"""
import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.engine import Connection

from ..models.enums import Entity, Operation
from .role_service import RoleService

logger = logging.getLogger(__name__)

Predicate = Callable[[bool, bool], bool]


@dataclass(frozen=True)
class Principal:
    """A caller whose identity was verified upstream."""
    identity_id: str
    display_name: Optional[str] = None


def _self_or_admin(is_self: bool, is_admin: bool) -> bool:
    return is_self or is_admin

def _self_only(is_self: bool, is_admin: bool) -> bool:
    return is_self

def _admin_only(is_self: bool, is_admin: bool) -> bool:
    return is_admin

def _nobody(is_self: bool, is_admin: bool) -> bool:
    return False


POLICY_TABLE: Dict[Tuple[Entity, Operation], Predicate] = {
    (Entity.IDENTITY, Operation.READ): _self_or_admin,
    (Entity.IDENTITY, Operation.UPDATE): _self_or_admin,
    (Entity.IDENTITY, Operation.CREATE): _self_only,
    (Entity.SUBSCRIPTION, Operation.UPDATE): _admin_only,
    (Entity.SCAN_EVENT, Operation.READ): _self_or_admin,
    (Entity.SCAN_EVENT, Operation.CREATE): _admin_only,
    (Entity.SCAN_EVENT, Operation.UPDATE): _nobody,
    (Entity.ROLE_MEMBERSHIP, Operation.READ): _self_or_admin,
    (Entity.ROLE_MEMBERSHIP, Operation.CREATE): _self_only,
    (Entity.ROLE_MEMBERSHIP, Operation.UPDATE): _admin_only,
}


class AccessPolicy:
    """Evaluates the predicate table. Nothing is cached between calls."""

    def __init__(self, roles: Optional[RoleService] = None,
                 table: Optional[Dict[Tuple[Entity, Operation], Predicate]] = None):
        self.roles = roles or RoleService()
        self.table = POLICY_TABLE if table is None else table

    def permits(self, conn: Connection, principal: Optional[Principal], entity: Entity,
                operation: Operation, subject_id: Optional[str] = None) -> bool:
        """
        subject_id is the identity the operation touches; None means "all
        identities", which no caller can be self for.
        """
        predicate = self.table.get((entity, operation))
        if predicate is None or principal is None or not principal.identity_id:
            return False
        is_self = subject_id is not None and subject_id == principal.identity_id
        is_admin = self.roles.is_member(conn, principal.identity_id)
        return predicate(is_self, is_admin)


def guarded(entity: Entity, operation: Operation, subject: Optional[str] = "identity_id",
            empty: Callable[[], Any] = lambda: None):
    """
    Interceptor for operation methods shaped ``(self, conn, principal, ...)``.

    `subject` names the argument carrying the target identity id (None for
    operations over every identity). The owner must expose ``self.policy``.
    """

    def decorator(func):
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(self, conn, principal, *args, **kwargs):
            subject_id = None
            if subject is not None:
                bound = signature.bind(self, conn, principal, *args, **kwargs)
                bound.apply_defaults()
                subject_id = bound.arguments.get(subject)

            if not self.policy.permits(conn, principal, entity, operation, subject_id):
                logger.info(
                    "Denied %s %s on %s for %s", operation.value, entity.value,
                    subject_id or "*", principal.identity_id if principal else "anonymous",
                )
                return empty()
            return func(self, conn, principal, *args, **kwargs)

        return wrapper

    return decorator

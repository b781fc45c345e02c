"""
Modern Blog API — Authorization Policy
========================================

What:  The single place that decides whether an actor may perform an action
       on a resource.
How:   Rules are keyed by (resource, action). Each rule is a predicate over
       (actor, target). Missing rules deny.
Who:   PostService and CategoryService call `policy.authorize(...)` before
       every mutation.

Rules:
    post:update, post:delete           → author of the post, or admin
    category:create, category:delete   → admin
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from blog_api.exceptions import PermissionDeniedError
from blog_api.models.user import User

logger = logging.getLogger(__name__)

Rule = Callable[[User, Any], bool]


def _is_admin(actor: User, target: Any) -> bool:
    return actor.is_admin


def _is_owner_or_admin(actor: User, target: Any) -> bool:
    return actor.is_admin or (target is not None and target.author_id == actor.id)


class AuthorizationPolicy:
    """
    Table-driven permission checks.

    `denial_messages` lets a resource override the default "Access denied" text
    (category writes answer "Admin access required").
    """

    def __init__(self) -> None:
        self.rules: Dict[Tuple[str, str], Rule] = {
            ("post", "update"): _is_owner_or_admin,
            ("post", "delete"): _is_owner_or_admin,
            ("category", "create"): _is_admin,
            ("category", "delete"): _is_admin,
        }
        self.denial_messages: Dict[str, str] = {
            "category": "Admin access required",
        }

    def is_allowed(self, actor: User, action: str, resource: str, target: Any = None) -> bool:
        rule = self.rules.get((resource, action))
        if rule is None:
            return False
        return rule(actor, target)

    def authorize(
        self,
        actor: User,
        action: str,
        resource: str,
        target: Optional[Any] = None,
    ) -> None:
        """
        Raise PermissionDeniedError (403) unless the actor may act.

        Args:
            actor:    Authenticated user
            action:   e.g. "update"
            resource: e.g. "post"
            target:   The loaded resource, when the rule needs it (ownership)
        """
        if self.is_allowed(actor, action, resource, target):
            return

        logger.warning(
            "Denied %s:%s for user %s (role=%s)",
            resource,
            action,
            actor.id,
            actor.role,
        )
        raise PermissionDeniedError(
            message=self.denial_messages.get(resource, "Access denied"),
            context={
                "resource": resource,
                "action": action,
                "actor_id": str(actor.id),
                "target_id": str(getattr(target, "id", "")) or None,
            },
        )


policy = AuthorizationPolicy()

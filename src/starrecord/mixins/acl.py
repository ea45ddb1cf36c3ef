"""
Access Controlled Models

🔒 Permission Gate:
``ACLModel`` checks a permission before every create, update and delete.
The checks are lifecycle listeners registered at a very high priority, so a
denied permission vetoes the operation through the normal event mechanism
and leaves a ``no_permission`` error keyed by the permission name.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple
import logging

from ..core.errors import NO_PERMISSION
from ..core.events import ModelEvent
from ..core.model import Model

logger = logging.getLogger(__name__)


class ACLModel(Model, ABC):
    """
    Model whose mutations require permissions.

    Usage:
        class Post(ACLModel):
            def has_permission(self, permission, requester):
                return requester is not None and requester["id"] == self["author_id"]

        ACLModel.set_requester(current_user)
    """

    PERMISSION_CREATE = "create"
    PERMISSION_UPDATE = "edit"
    PERMISSION_DELETE = "delete"
    LISTENER_PRIORITY = 1000

    _requester: Any = None

    def __init__(self, values=None):
        self._permissions_cache: Dict[Tuple[str, str], bool] = {}
        self._permissions_disabled = False
        super().__init__(values)

    @classmethod
    def initialize(cls) -> None:
        super().initialize()

        cls.creating(_permission_check(cls.PERMISSION_CREATE), cls.LISTENER_PRIORITY)
        cls.updating(_permission_check(cls.PERMISSION_UPDATE), cls.LISTENER_PRIORITY)
        cls.deleting(_permission_check(cls.PERMISSION_DELETE), cls.LISTENER_PRIORITY)

    @staticmethod
    def set_requester(requester: Any) -> None:
        """Set the requester permissions are checked for (shared by every ACL model)"""
        ACLModel._requester = requester

    @staticmethod
    def get_requester() -> Any:
        return ACLModel._requester

    def can(self, permission: str, requester: Optional[Any] = None) -> bool:
        """
        Check whether a requester has a permission on this model.
        Decisions are cached per (permission, requester).
        """
        if self._permissions_disabled:
            return True

        if requester is None:
            requester = self.get_requester()

        key = (permission, str(requester))
        if key not in self._permissions_cache:
            self._permissions_cache[key] = bool(self.has_permission(permission, requester))

        return self._permissions_cache[key]

    @abstractmethod
    def has_permission(self, permission: str, requester: Any) -> bool:
        pass

    def grant_all_permissions(self) -> 'ACLModel':
        self._permissions_disabled = True
        return self

    def enforce_permissions(self) -> 'ACLModel':
        self._permissions_disabled = False
        return self


def _permission_check(permission: str):
    def check(event: ModelEvent) -> None:
        model = event.model
        if not model.can(permission, ACLModel.get_requester()):
            logger.info(f"Denied {permission} on {model.model_name()} for {ACLModel.get_requester()}")
            model.errors().add(permission, NO_PERMISSION)
            event.stop_propagation()

    check.__name__ = f"check_{permission}_permission"
    return check


__all__ = ["ACLModel"]

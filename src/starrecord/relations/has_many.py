"""
Has Many Relation - many foreign models hold a key pointing at the local model
"""

from typing import Any, Iterable, List, Mapping, Optional, TYPE_CHECKING
import logging

from ..core.registry import DEFAULT_ID_PROPERTY
from .relation import Relation, foreign_key_for

if TYPE_CHECKING:
    from ..core.model import Model

logger = logging.getLogger(__name__)


class HasMany(Relation):
    """``user.has_many(Post)`` -> ``Post.user_id == user.id``"""

    def default_local_key(self) -> str:
        return DEFAULT_ID_PROPERTY

    def default_foreign_key(self) -> str:
        return foreign_key_for(type(self.local_model))

    def init_query(self) -> None:
        value = self.local_value()
        if value is None:
            self.empty = True

        self.query.where(self.foreign_key, value)

    def get_results(self) -> Optional[List['Model']]:
        """The related models, or None when the local key is not set"""
        if self.empty:
            return None
        return self.query.execute()

    def create(self, values: Optional[Mapping[str, Any]] = None) -> 'Model':
        return self.attach(self.foreign_model(values))

    def attach(self, model: 'Model') -> 'Model':
        """Point a model at the local model and save it"""
        model[self.foreign_key] = self.local_value()
        model.save()
        return model

    def detach(self, model: 'Model') -> 'Model':
        """Unlink a model from the local model and save it"""
        model[self.foreign_key] = None
        model.save()
        return model

    def sync(self, ids: Iterable[Any]) -> int:
        """
        Delete every related model whose id is not listed.

        Returns:
            Number of deleted models
        """
        keep = {str(id) for id in ids}

        if self.empty:
            return 0

        # materialized before deleting, deletes shift the pages
        stale = [model for model in self.query.all() if str(model.id()) not in keep]

        deleted = 0
        for model in stale:
            if model.delete():
                deleted += 1

        logger.debug(f"Synced {self!r}, deleted {deleted} models")
        return deleted


__all__ = ["HasMany"]

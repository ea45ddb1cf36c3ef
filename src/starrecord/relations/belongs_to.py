"""
Belongs To Relation - the local model holds a key pointing at the foreign model
"""

from typing import Any, Mapping, Optional, TYPE_CHECKING

from ..core.registry import DEFAULT_ID_PROPERTY
from .relation import Relation, foreign_key_for

if TYPE_CHECKING:
    from ..core.model import Model


class BelongsTo(Relation):
    """``post.belongs_to(User)`` -> ``User.id == post.user_id``"""

    def default_local_key(self) -> str:
        return foreign_key_for(self.foreign_model)

    def default_foreign_key(self) -> str:
        return DEFAULT_ID_PROPERTY

    def init_query(self) -> None:
        value = self.local_value()
        if value is None:
            self.empty = True

        self.query.where(self.foreign_key, value).limit(1)

    def get_results(self) -> Optional['Model']:
        if self.empty:
            return None
        return self.query.first()

    def create(self, values: Optional[Mapping[str, Any]] = None) -> 'Model':
        """Create the parent model and point the local model at it"""
        model = self.foreign_model(values)
        model.save()
        return self.attach(model)

    def attach(self, model: 'Model') -> 'Model':
        """Point the local model at a parent model and save it"""
        self.local_model[self.local_key] = model[self.foreign_key]
        self.local_model.save()
        return model

    def detach(self) -> 'Model':
        """Unlink the local model from its parent and save it"""
        self.local_model[self.local_key] = None
        self.local_model.save()
        return self.local_model


__all__ = ["BelongsTo"]

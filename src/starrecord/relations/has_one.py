"""
Has One Relation - the foreign model holds a key pointing at the local model
"""

from typing import Any, Mapping, Optional, TYPE_CHECKING

from ..core.registry import DEFAULT_ID_PROPERTY
from .relation import Relation, foreign_key_for

if TYPE_CHECKING:
    from ..core.model import Model


class HasOne(Relation):
    """``person.has_one(Balance)`` -> ``Balance.person_id == person.id``"""

    def default_local_key(self) -> str:
        return DEFAULT_ID_PROPERTY

    def default_foreign_key(self) -> str:
        return foreign_key_for(type(self.local_model))

    def init_query(self) -> None:
        value = self.local_value()
        if value is None:
            self.empty = True

        self.query.where(self.foreign_key, value).limit(1)

    def get_results(self) -> Optional['Model']:
        if self.empty:
            return None
        return self.query.first()

    def save(self, model: 'Model') -> 'Model':
        """Point a model at the local model and save it"""
        model[self.foreign_key] = self.local_value()
        model.save()
        return model

    def create(self, values: Optional[Mapping[str, Any]] = None) -> 'Model':
        """Create a new related model"""
        return self.save(self.foreign_model(values))

    def attach(self, model: 'Model') -> 'Model':
        return self.save(model)

    def detach(self) -> Optional['Model']:
        """Unlink the current related model, if there is one"""
        model = self.get_results()
        if model is None:
            return None

        model[self.foreign_key] = None
        model.save()
        return model


__all__ = ["HasOne"]

"""
Belongs To Many Relation - models linked through rows of a pivot table
"""

from typing import Any, Iterable, List, Optional, Type, TYPE_CHECKING
import logging

from ..core.property import PropertyType
from ..core.registry import DEFAULT_ID_PROPERTY
from .pivot import Pivot, pivot_model
from .relation import Relation, foreign_key_for

if TYPE_CHECKING:
    from ..core.model import Model

logger = logging.getLogger(__name__)


class BelongsToMany(Relation):
    """
    ``post.belongs_to_many(Tag)`` joins ``Tags`` through the ``PostTag``
    pivot table holding ``post_id`` and ``tag_id``.

    The pivot table name defaults to both model names in alphabetical order.
    """

    def __init__(self, local_model: 'Model', local_key: Optional[str], tablename: Optional[str],
                 foreign_model: Type['Model'], foreign_key: Optional[str]):
        names = sorted([local_model.model_name(), foreign_model.model_name()])
        self.tablename = tablename or "".join(names)
        self.local_pivot_key = foreign_key_for(type(local_model))
        self.foreign_pivot_key = foreign_key_for(foreign_model)

        super().__init__(local_model, local_key, foreign_model, foreign_key)

    def default_local_key(self) -> str:
        return DEFAULT_ID_PROPERTY

    def default_foreign_key(self) -> str:
        return DEFAULT_ID_PROPERTY

    @property
    def pivot(self) -> Type[Pivot]:
        """Pivot model type of this relation"""
        return pivot_model(
            self.tablename, self.local_pivot_key, self.foreign_pivot_key,
            local_type=self._key_type(type(self.local_model), self.local_key),
            foreign_type=self._key_type(self.foreign_model, self.foreign_key),
        )

    @staticmethod
    def _key_type(model_class: Type['Model'], key: str) -> PropertyType:
        definition = model_class.get_property(key)
        return definition.type if definition is not None else PropertyType.NUMBER

    def init_query(self) -> None:
        value = self.local_value()
        if value is None:
            self.empty = True

        self.query.join(self.pivot, self.foreign_key, self.foreign_pivot_key)
        self.query.where(f"{self.tablename}.{self.local_pivot_key}", value)

    def get_results(self) -> Optional[List['Model']]:
        """The related models, or None when the local key is not set"""
        if self.empty:
            return None
        return self.query.execute()

    def attach(self, model: 'Model') -> Pivot:
        """Create the pivot row linking a model"""
        pivot = self.pivot({
            self.local_pivot_key: self.local_value(),
            self.foreign_pivot_key: model[self.foreign_key],
        })
        pivot.save()
        return pivot

    def detach(self, model: 'Model') -> bool:
        """Delete the pivot row linking a model"""
        pivot = self.pivot.build_from_id({
            self.local_pivot_key: self.local_value(),
            self.foreign_pivot_key: model[self.foreign_key],
        })
        return pivot.delete()

    def sync(self, ids: Iterable[Any]) -> 'BelongsToMany':
        """
        Make the listed ids the only linked models: pivot rows for other
        ids are deleted and missing rows are created.
        """
        wanted = {str(id): id for id in ids}

        rows = list(self.pivot.where(self.local_pivot_key, self.local_value()).all())
        linked = set()
        for row in rows:
            foreign_id = row[self.foreign_pivot_key]
            if str(foreign_id) in wanted:
                linked.add(str(foreign_id))
            else:
                row.delete()

        for key, id in wanted.items():
            if key not in linked:
                self.pivot({
                    self.local_pivot_key: self.local_value(),
                    self.foreign_pivot_key: id,
                }).save()

        logger.debug(f"Synced {self!r} to {len(wanted)} linked models")
        return self


__all__ = ["BelongsToMany"]

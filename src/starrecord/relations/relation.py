"""
Relation Base

A relation binds a foreign model type to an owning (local) model instance
through a pair of keys and exposes a pre-scoped ``Query``. Unknown
attributes are forwarded to that query, so relations can be refined like
any query:

    post.comments().where("approved", True).sort("created_at desc").execute()
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Type, TYPE_CHECKING
import re

from ..core.query import Query

if TYPE_CHECKING:
    from ..core.model import Model

_FIRST_CAP = re.compile(r"(.)([A-Z][a-z]+)")
_ALL_CAP = re.compile(r"([a-z0-9])([A-Z])")


def snake_case(name: str) -> str:
    """``BlogPost`` -> ``blog_post``"""
    return _ALL_CAP.sub(r"\1_\2", _FIRST_CAP.sub(r"\1_\2", name)).lower()


def foreign_key_for(model_class: Type['Model']) -> str:
    """Default foreign key pointing at a model type, i.e. ``user_id``"""
    return f"{snake_case(model_class.model_name())}_id"


class Relation(ABC):
    """
    Base class of all relations.

    Args:
        local_model: Model instance owning the relation
        local_key: Key on the local model
        foreign_model: Related model type
        foreign_key: Key on the foreign model
    """

    def __init__(self, local_model: 'Model', local_key: Optional[str],
                 foreign_model: Type['Model'], foreign_key: Optional[str]):
        self.local_model = local_model
        self.foreign_model = foreign_model
        self.local_key = local_key or self.default_local_key()
        self.foreign_key = foreign_key or self.default_foreign_key()
        self.empty = False

        self.query = Query(foreign_model)
        self.init_query()

    @abstractmethod
    def default_local_key(self) -> str:
        pass

    @abstractmethod
    def default_foreign_key(self) -> str:
        pass

    @abstractmethod
    def init_query(self) -> None:
        """Scope ``self.query`` to the related records"""
        pass

    @abstractmethod
    def get_results(self) -> Any:
        pass

    def get_query(self) -> Query:
        return self.query

    def local_value(self) -> Any:
        return self.local_model.get([self.local_key])[self.local_key]

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name == "query":
            raise AttributeError(name)
        return getattr(self.query, name)

    def __repr__(self):
        return (f"{type(self).__name__}({self.local_model.model_name()}.{self.local_key} -> "
                f"{self.foreign_model.model_name()}.{self.foreign_key})")


__all__ = ["Relation", "snake_case", "foreign_key_for"]

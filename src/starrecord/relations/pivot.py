"""
Pivot Models

A pivot row links two models in a many-to-many relation. Pivot model types
are generated per (table, local key, foreign key) and use both keys as a
composite id.
"""

from typing import Dict, Tuple, Type
import threading

from ..core.model import Model
from ..core.property import Property, PropertyType, Mutability


class Pivot(Model):
    """Base class of generated pivot model types"""
    id_properties = []


_pivots: Dict[Tuple[str, str, str], Type[Pivot]] = {}
_lock = threading.Lock()


def pivot_model(tablename: str, local_key: str, foreign_key: str,
                local_type: PropertyType = PropertyType.NUMBER,
                foreign_type: PropertyType = PropertyType.NUMBER) -> Type[Pivot]:
    """
    Get the pivot model type for a table.

    Args:
        tablename: Pivot table name
        local_key: Column pointing at the owning model
        foreign_key: Column pointing at the related model
        local_type: Type of the owning model's id
        foreign_type: Type of the related model's id
    """
    key = (tablename, local_key, foreign_key)
    with _lock:
        if key not in _pivots:
            _pivots[key] = type(tablename, (Pivot,), {
                "__module__": __name__,
                "tablename": tablename,
                "id_properties": [local_key, foreign_key],
                "properties": {
                    local_key: Property(type=local_type, mutable=Mutability.CREATE_ONLY, required=True),
                    foreign_key: Property(type=foreign_type, mutable=Mutability.CREATE_ONLY, required=True),
                },
            })
        return _pivots[key]


__all__ = ["Pivot", "pivot_model"]

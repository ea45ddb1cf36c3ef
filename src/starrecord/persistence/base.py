"""
StarRecord Persistence Layer - Base Classes

This module provides the abstract storage driver interface models are
persisted through. Drivers receive and return raw, untyped field maps; the
model layer casts them through each property's ``PropertyType``.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.model import Model
    from ..core.query import Query


class StorageDriver(ABC):
    """
    Abstract base class for model storage drivers.

    Implementations wrap every exception raised by the backing store in a
    ``DriverError`` that keeps the original exception as its cause.
    """

    @abstractmethod
    def create_model(self, model: 'Model', parameters: Dict[str, Any]) -> bool:
        """
        Insert a new record.

        Args:
            model: Model being created
            parameters: Field values to insert

        Returns:
            True if the record was created
        """
        pass

    @abstractmethod
    def get_created_id(self, model: 'Model', property_name: str) -> Any:
        """
        Get the value generated for an id property by the last insert.

        Args:
            model: Model that was just created
            property_name: Name of the id property

        Returns:
            The generated id value
        """
        pass

    @abstractmethod
    def load_model(self, model: 'Model') -> Optional[Dict[str, Any]]:
        """
        Load the stored record of a model by its ids.

        Returns:
            Raw field map, or None when no record matches
        """
        pass

    @abstractmethod
    def update_model(self, model: 'Model', parameters: Dict[str, Any]) -> bool:
        """
        Update the stored record of a model.

        Args:
            model: Persisted model
            parameters: Field values to write

        Returns:
            True if the update succeeded
        """
        pass

    @abstractmethod
    def delete_model(self, model: 'Model') -> bool:
        """
        Delete the stored record of a model.

        Returns:
            True if the record was deleted
        """
        pass

    @abstractmethod
    def query_models(self, query: 'Query') -> List[Dict[str, Any]]:
        """
        Fetch the raw records matching a query.

        Args:
            query: Query with where, sort, join and paging state

        Returns:
            List of raw field maps
        """
        pass

    @abstractmethod
    def total_records(self, query: 'Query') -> int:
        """
        Count the records matching a query, ignoring paging.

        Returns:
            Number of matching records
        """
        pass

    def serialize_value(self, model_class, property_name: str, value: Any) -> Any:
        """Marshal a typed value into the store's native representation"""
        schema_property = model_class.get_property(property_name)
        if schema_property is None:
            return value
        return schema_property.type.serialize(value)

    def serialize(self, model_class, parameters: Dict[str, Any]) -> Dict[str, Any]:
        return {
            name: self.serialize_value(model_class, name, value)
            for name, value in parameters.items()
        }


__all__ = ["StorageDriver"]

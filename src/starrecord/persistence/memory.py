"""
StarRecord Persistence Layer - Memory Driver

In-memory storage driver for development and testing. Tables are lists of
row dicts keyed by table name; single default ids auto-increment.
Data is lost when the process exits.
"""

from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING
import copy
import logging
import re

from ..core.exceptions import DriverError
from ..core.query import Condition
from .base import StorageDriver

if TYPE_CHECKING:
    from ..core.model import Model
    from ..core.query import Query

logger = logging.getLogger(__name__)


def _like(pattern: str) -> "re.Pattern":
    expression = "".join(
        ".*" if char == "%" else "." if char == "_" else re.escape(char)
        for char in str(pattern)
    )
    return re.compile(f"^{expression}$", re.IGNORECASE | re.DOTALL)


def _compare(value: Any, operator: str, expected: Any) -> bool:
    if operator in ("=", "=="):
        return value == expected
    if operator in ("!=", "<>"):
        return value != expected
    if operator == "in":
        return value in list(expected)
    if operator == "not in":
        return value not in list(expected)
    if operator == "like":
        return value is not None and bool(_like(expected).match(str(value)))
    if operator == "not like":
        return value is None or not _like(expected).match(str(value))

    if value is None or expected is None:
        return False
    if operator == "<":
        return value < expected
    if operator == ">":
        return value > expected
    if operator == "<=":
        return value <= expected
    if operator == ">=":
        return value >= expected

    raise DriverError(f"Unsupported operator: {operator}")


class MemoryDriver(StorageDriver):
    """
    In-memory storage driver.

    Understands equality maps, ``(column, value, operator)`` conditions with
    the operators ``= != <> < > <= >= in, not in, like, not like``, sorting,
    paging and joins (i.e. through pivot tables). Raw string conditions
    cannot be evaluated and raise ``DriverError``.
    """

    def __init__(self):
        self._tables: Dict[str, List[Dict[str, Any]]] = {}
        self._sequences: Dict[str, int] = {}
        self._created_ids: Dict[str, Dict[str, Any]] = {}

    def table(self, tablename: str) -> List[Dict[str, Any]]:
        """Get the rows of a table (the live list)"""
        return self._tables.setdefault(tablename, [])

    def truncate(self, tablename: Optional[str] = None) -> None:
        """Empty one table, or every table"""
        if tablename is None:
            self._tables.clear()
            self._sequences.clear()
            self._created_ids.clear()
        else:
            self._tables.pop(tablename, None)
            self._sequences.pop(tablename, None)
            self._created_ids.pop(tablename, None)

    # Model operations
    def create_model(self, model: 'Model', parameters: Dict[str, Any]) -> bool:
        tablename = model.get_tablename()
        row = copy.deepcopy(dict(parameters))
        id_properties = list(model.id_properties)

        if len(id_properties) == 1:
            name = id_properties[0]
            if row.get(name) is None:
                row[name] = self._next_id(tablename)
            elif isinstance(row[name], int):
                self._sequences[tablename] = max(self._sequences.get(tablename, 0), row[name])

        ids = {name: row.get(name) for name in id_properties}
        if ids and self._find(tablename, ids) is not None:
            raise DriverError(f"Duplicate {model.model_name()} record: {ids}")

        self.table(tablename).append(row)
        self._created_ids[tablename] = ids
        logger.debug(f"Inserted into {tablename}: {ids}")
        return True

    def get_created_id(self, model: 'Model', property_name: str) -> Any:
        return self._created_ids.get(model.get_tablename(), {}).get(property_name)

    def load_model(self, model: 'Model') -> Optional[Dict[str, Any]]:
        row = self._find(model.get_tablename(), model.ids())
        return copy.deepcopy(row) if row is not None else None

    def update_model(self, model: 'Model', parameters: Dict[str, Any]) -> bool:
        row = self._find(model.get_tablename(), model.ids())
        if row is None:
            return False

        row.update(copy.deepcopy(dict(parameters)))
        return True

    def delete_model(self, model: 'Model') -> bool:
        tablename = model.get_tablename()
        row = self._find(tablename, model.ids())
        if row is None:
            return False

        self.table(tablename).remove(row)
        return True

    # Queries
    def query_models(self, query: 'Query') -> List[Dict[str, Any]]:
        rows = self._select(query)

        for column, direction in reversed(query.get_sort()):
            rows.sort(key=lambda row: _sort_key(self._column_value(row, column)),
                      reverse=direction == "desc")

        start = query.get_start()
        rows = rows[start:start + query.get_limit()]
        return [copy.deepcopy(row) for row in rows]

    def total_records(self, query: 'Query') -> int:
        return len(self._select(query))

    def _select(self, query: 'Query') -> List[Dict[str, Any]]:
        tablename = query.get_model().get_tablename()
        conditions = query.get_where()
        joins = query.get_joins()

        selected = []
        for row in self.table(tablename):
            for scope in self._scopes(row, tablename, joins):
                if all(self._matches(scope, condition) for condition in conditions):
                    selected.append(row)
                    break

        return selected

    def _scopes(self, row: Dict[str, Any], tablename: str, joins: Iterable[tuple]) -> List[Dict[str, Any]]:
        scopes = [{**row, **{f"{tablename}.{key}": value for key, value in row.items()}}]

        for join_model, column, foreign_key in joins:
            join_table = join_model.get_tablename()
            expanded = []
            for scope in scopes:
                for joined in self.table(join_table):
                    if joined.get(foreign_key) == row.get(column):
                        qualified = {f"{join_table}.{key}": value for key, value in joined.items()}
                        expanded.append({**scope, **qualified})
            scopes = expanded

        return scopes

    @staticmethod
    def _matches(scope: Dict[str, Any], condition: Any) -> bool:
        if not isinstance(condition, Condition):
            raise DriverError(f"The memory driver cannot evaluate raw conditions: {condition!r}")

        return _compare(scope.get(condition.column), condition.operator.lower(), condition.value)

    @staticmethod
    def _column_value(row: Dict[str, Any], column: str) -> Any:
        if column in row:
            return row[column]
        return row.get(column.split(".")[-1])

    def _find(self, tablename: str, ids: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for row in self.table(tablename):
            if all(row.get(name) == value for name, value in ids.items()):
                return row
        return None

    def _next_id(self, tablename: str) -> int:
        self._sequences[tablename] = self._sequences.get(tablename, 0) + 1
        return self._sequences[tablename]


def _sort_key(value: Any) -> tuple:
    return (value is None, value)


__all__ = ["MemoryDriver"]

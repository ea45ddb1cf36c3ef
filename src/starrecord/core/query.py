"""
Query Builder

Builds where/sort/join/paging state bound to one model type and executes
it through the model's storage driver, hydrating one model per row.

Where conditions are kept as an ordered list of ``Condition`` tuples and
raw strings. Raw strings are handed to the driver verbatim, unescaped.
"""

from typing import Any, Iterable, List, NamedTuple, Optional, Type, Union, TYPE_CHECKING
import copy
import logging

from ..config import get_config
from .exceptions import call_driver
from .iterator import ModelIterator

if TYPE_CHECKING:
    from .model import Model

logger = logging.getLogger(__name__)

SORT_DIRECTIONS = ("asc", "desc")


class Condition(NamedTuple):
    """A ``column <operator> value`` where condition"""
    column: str
    value: Any
    operator: str = "="


WhereClause = Union[Condition, str]


class Query:
    """
    Query builder for one model type.

    Usage:
        query = Query(User).where("active", True).where("age", 18, ">=")
        query.sort("name asc, id desc").limit(10).start(20)
        users = query.execute()
    """

    def __init__(self, model_class: Optional[Type['Model']] = None):
        config = get_config().query

        self._model_class = model_class
        self._max_limit = config.max_limit
        self._joins: List[tuple] = []
        self._where: List[WhereClause] = []
        self._withs: List[str] = []
        self._start = 0
        self._limit = min(config.default_limit, config.max_limit)
        self._sort: List[tuple] = []

    def get_model(self) -> Optional[Type['Model']]:
        return self._model_class

    # Paging
    def limit(self, limit: int) -> 'Query':
        """Set the page size, capped at the configured maximum"""
        self._limit = max(min(int(limit), self._max_limit), 0)
        return self

    def get_limit(self) -> int:
        return self._limit

    def start(self, start: int) -> 'Query':
        """Set the offset, negative values become 0"""
        self._start = max(int(start), 0)
        return self

    def get_start(self) -> int:
        return self._start

    # Sorting
    def sort(self, sort: str) -> 'Query':
        """
        Set the sort order from a string such as ``"name asc, id desc"``.
        Clauses that are not exactly ``<column> <asc|desc>`` are dropped.
        """
        parsed = []
        for clause in sort.split(","):
            parts = clause.strip().split(" ")
            if len(parts) != 2:
                continue

            column, direction = parts[0], parts[1].lower()
            if not column or direction not in SORT_DIRECTIONS:
                continue

            parsed.append((column, direction))

        self._sort = parsed
        return self

    def get_sort(self) -> List[tuple]:
        return list(self._sort)

    # Conditions
    def where(self, where: Union[dict, str, Iterable], *args) -> 'Query':
        """
        Add where conditions. Accepted forms:

            where({"name": "Bob", "active": True})   # equality map
            where("name", "Bob")                      # equality
            where("age", 18, ">=")                    # column, value, operator
            where("age > 18 OR vip = 1")              # raw condition

        A list of conditions (pairs, triples or raw strings) is also accepted.
        Equality on a column replaces an earlier equality on the same column.
        """
        if isinstance(where, dict):
            for column, value in where.items():
                self._set_equality(column, value)

        elif len(args) == 2:
            value, operator = args
            self._where.append(Condition(where, value, str(operator)))

        elif len(args) == 1:
            self._set_equality(where, args[0])

        elif isinstance(where, str):
            self._where.append(where)

        else:
            for condition in where:
                if isinstance(condition, (str, dict)):
                    self.where(condition)
                else:
                    self.where(*condition)

        return self

    def get_where(self) -> List[WhereClause]:
        return list(self._where)

    def _set_equality(self, column: str, value: Any) -> None:
        for index, condition in enumerate(self._where):
            if isinstance(condition, Condition) and condition.column == column and condition.operator == "=":
                self._where[index] = Condition(column, value)
                return
        self._where.append(Condition(column, value))

    # Joins and eager loading
    def join(self, model_class: Type['Model'], column: str, foreign_key: str) -> 'Query':
        """
        Join another model's table on ``this.column = other.foreign_key``.
        """
        self._joins.append((model_class, column, foreign_key))
        return self

    def get_joins(self) -> List[tuple]:
        return list(self._joins)

    def with_(self, *relations: Union[str, Iterable[str]]) -> 'Query':
        """Eager load relations (by relation method name) on every result"""
        for relation in relations:
            if isinstance(relation, str):
                if relation not in self._withs:
                    self._withs.append(relation)
            else:
                self.with_(*relation)
        return self

    def get_withs(self) -> List[str]:
        return list(self._withs)

    # Execution
    def execute(self) -> List['Model']:
        """
        Run the query and hydrate the results.

        Returns:
            Models with their loaded values and eager loaded relations
        """
        model_class = self._model_class
        driver = model_class.get_driver()

        rows = call_driver("query", model_class.model_name(), driver.query_models, self)
        logger.debug(f"{model_class.__name__} query returned {len(rows)} rows")

        models = []
        for row in rows:
            model = model_class.hydrate(row)
            for relation in self._withs:
                model.load_relationship(relation)
            models.append(model)

        return models

    def first(self, limit: int = 1) -> Union['Model', List['Model'], None]:
        """
        Fetch the first result(s).

        Returns:
            A single model (or None) when ``limit`` is 1, else a list
        """
        models = self.limit(limit).execute()
        if limit == 1:
            return models[0] if models else None
        return models

    def all(self) -> ModelIterator:
        """Iterate over every matching model, one page at a time"""
        return ModelIterator(self)

    def total_records(self) -> int:
        """Count the matching records, ignoring paging"""
        model_class = self._model_class
        driver = model_class.get_driver()
        return int(call_driver("count", model_class.model_name(), driver.total_records, self))

    count = total_records

    def clone(self) -> 'Query':
        cloned = copy.copy(self)
        cloned._joins = list(self._joins)
        cloned._where = list(self._where)
        cloned._withs = list(self._withs)
        cloned._sort = list(self._sort)
        return cloned

    def __repr__(self):
        name = self._model_class.__name__ if self._model_class else None
        return (f"Query({name}, where={self._where!r}, sort={self._sort!r}, "
                f"start={self._start}, limit={self._limit})")


__all__ = ["Query", "Condition", "SORT_DIRECTIONS"]

"""
StarRecord Persistence Layer - SQL Driver

🗃️ SQL Database Driver:
Storage driver built on SQLAlchemy Core. Tables are reflected from the
database (or created from model schemas with ``create_tables``), queries
are translated into ``select()`` statements and every ``SQLAlchemyError``
is wrapped in a ``DriverError``.

Usage:
    driver = DatabaseDriver(SQLConnectionConfig("sqlite://"))
    driver.create_tables(User, Post)
    Model.set_driver(driver)
"""

from typing import Any, Dict, List, Optional, Type, Union, TYPE_CHECKING
from dataclasses import dataclass, field
import logging

from sqlalchemy import (
    Boolean, Column, DateTime, Float, Integer, MetaData, String, Table, Text,
    and_, asc, create_engine, desc, func, select, text
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..core.exceptions import DriverError
from ..core.property import Property, PropertyType
from ..core.query import Condition
from ..core.registry import DEFAULT_ID_PROPERTY
from .base import StorageDriver

if TYPE_CHECKING:
    from ..core.model import Model
    from ..core.query import Query

logger = logging.getLogger(__name__)


@dataclass
class SQLConnectionConfig:
    """SQL database connection configuration"""
    database_url: str
    echo: bool = False
    connect_args: Dict[str, Any] = field(default_factory=dict)


class DatabaseDriver(StorageDriver):
    """
    SQL storage driver.

    Bare column names in conditions refer to the model's table, qualified
    names (``PostTag.post_id``) to joined tables. Raw string conditions are
    passed through ``text()`` verbatim.
    """

    def __init__(self, connection: Union[SQLConnectionConfig, Engine, str],
                 metadata: Optional[MetaData] = None):
        if isinstance(connection, Engine):
            self.engine = connection
        else:
            if isinstance(connection, str):
                connection = SQLConnectionConfig(connection)
            self.engine = create_engine(
                connection.database_url,
                echo=connection.echo,
                connect_args=connection.connect_args,
            )

        self.metadata = metadata or MetaData()
        self._created_ids: Dict[str, Dict[str, Any]] = {}

    # Schema
    def get_table(self, tablename: str) -> Table:
        """Get a table, reflecting it from the database on first use"""
        if tablename in self.metadata.tables:
            return self.metadata.tables[tablename]

        try:
            return Table(tablename, self.metadata, autoload_with=self.engine)
        except SQLAlchemyError as e:
            raise DriverError(f"Could not load the {tablename} table: {e}", e) from e

    def create_tables(self, *model_classes: Type['Model']) -> List[Table]:
        """
        Create the tables of model types that do not exist yet.

        Args:
            *model_classes: Model types to create tables for

        Returns:
            The table definitions
        """
        tables = []
        for model_class in model_classes:
            tablename = model_class.get_tablename()
            if tablename in self.metadata.tables:
                tables.append(self.metadata.tables[tablename])
                continue

            columns = [
                self._column_for(model_class, name, definition)
                for name, definition in model_class.get_properties().items()
            ]
            tables.append(Table(tablename, self.metadata, *columns))

        try:
            self.metadata.create_all(self.engine, tables=tables)
        except SQLAlchemyError as e:
            raise DriverError(f"Could not create tables: {e}", e) from e

        logger.info(f"Created tables: {', '.join(table.name for table in tables)}")
        return tables

    def create_pivot_table(self, local_model: Type['Model'], foreign_model: Type['Model'],
                           tablename: Optional[str] = None) -> Table:
        """Create the pivot table of a many-to-many relation between two model types"""
        from ..relations.belongs_to_many import BelongsToMany

        relation = BelongsToMany(local_model(), None, tablename, foreign_model, None)
        return self.create_tables(relation.pivot)[0]

    @staticmethod
    def _column_for(model_class: Type['Model'], name: str, definition: Property) -> Column:
        is_id = name in model_class.id_properties
        is_default_id = is_id and list(model_class.id_properties) == [DEFAULT_ID_PROPERTY]

        if definition.type == PropertyType.NUMBER:
            column_type = Integer if is_id or name.endswith("_id") else Float
        elif definition.type == PropertyType.BOOLEAN:
            column_type = Boolean
        elif definition.type == PropertyType.DATE:
            column_type = DateTime
        elif definition.type in (PropertyType.OBJECT, PropertyType.ARRAY):
            column_type = Text
        else:
            column_type = String(255)

        return Column(
            name,
            column_type,
            primary_key=is_id,
            autoincrement=is_default_id and definition.type == PropertyType.NUMBER,
            nullable=not is_id,
            unique=definition.unique and not is_id,
        )

    # Model operations
    def create_model(self, model: 'Model', parameters: Dict[str, Any]) -> bool:
        tablename = model.get_tablename()
        table = self.get_table(tablename)
        values = self.serialize(type(model), parameters)

        try:
            with self.engine.begin() as connection:
                result = connection.execute(table.insert().values(**values))
                primary_key = list(result.inserted_primary_key or []) if table.primary_key.columns else []
        except SQLAlchemyError as e:
            raise DriverError(
                f"An error occurred in the database driver when creating the {model.model_name()}: {e}", e
            ) from e

        names = [column.name for column in table.primary_key.columns]
        self._created_ids[tablename] = dict(zip(names, primary_key))
        return True

    def get_created_id(self, model: 'Model', property_name: str) -> Any:
        return self._created_ids.get(model.get_tablename(), {}).get(property_name)

    def load_model(self, model: 'Model') -> Optional[Dict[str, Any]]:
        table = self.get_table(model.get_tablename())
        statement = select(table).where(self._ids_clause(table, model)).limit(1)

        try:
            with self.engine.connect() as connection:
                row = connection.execute(statement).mappings().first()
        except SQLAlchemyError as e:
            raise DriverError(
                f"An error occurred in the database driver when loading an instance of {model.model_name()}: {e}", e
            ) from e

        return dict(row) if row is not None else None

    def update_model(self, model: 'Model', parameters: Dict[str, Any]) -> bool:
        if not parameters:
            return True

        table = self.get_table(model.get_tablename())
        values = self.serialize(type(model), parameters)
        statement = table.update().where(self._ids_clause(table, model)).values(**values)

        try:
            with self.engine.begin() as connection:
                connection.execute(statement)
        except SQLAlchemyError as e:
            raise DriverError(
                f"An error occurred in the database driver when updating the {model.model_name()}: {e}", e
            ) from e

        return True

    def delete_model(self, model: 'Model') -> bool:
        table = self.get_table(model.get_tablename())
        statement = table.delete().where(self._ids_clause(table, model))

        try:
            with self.engine.begin() as connection:
                connection.execute(statement)
        except SQLAlchemyError as e:
            raise DriverError(
                f"An error occurred in the database driver while deleting the {model.model_name()}: {e}", e
            ) from e

        return True

    # Queries
    def query_models(self, query: 'Query') -> List[Dict[str, Any]]:
        model_class = query.get_model()
        table = self.get_table(model_class.get_tablename())

        statement = select(table).select_from(self._from_clause(table, query))
        statement = statement.where(*self._where_clauses(table, query))

        for column, direction in query.get_sort():
            order = desc if direction == "desc" else asc
            statement = statement.order_by(order(self._column(table, column)))

        statement = statement.offset(query.get_start()).limit(query.get_limit())

        try:
            with self.engine.connect() as connection:
                rows = connection.execute(statement).mappings().all()
        except SQLAlchemyError as e:
            raise DriverError(
                f"An error occurred in the database driver while performing the {model_class.model_name()} query: {e}", e
            ) from e

        return [dict(row) for row in rows]

    def total_records(self, query: 'Query') -> int:
        model_class = query.get_model()
        table = self.get_table(model_class.get_tablename())

        statement = select(func.count()).select_from(self._from_clause(table, query))
        statement = statement.where(*self._where_clauses(table, query))

        try:
            with self.engine.connect() as connection:
                return int(connection.execute(statement).scalar() or 0)
        except SQLAlchemyError as e:
            raise DriverError(
                f"An error occurred in the database driver while getting the number of "
                f"{model_class.model_name()} objects: {e}", e
            ) from e

    # Statement building
    def _from_clause(self, table: Table, query: 'Query'):
        clause = table
        for join_model, column, foreign_key in query.get_joins():
            join_table = self.get_table(join_model.get_tablename())
            clause = clause.join(join_table, table.c[column] == join_table.c[foreign_key])
        return clause

    def _where_clauses(self, table: Table, query: 'Query') -> List[Any]:
        model_class = query.get_model()
        return [self._where_clause(table, model_class, condition) for condition in query.get_where()]

    def _where_clause(self, table: Table, model_class: Type['Model'], condition: Any):
        if not isinstance(condition, Condition):
            return text(condition)

        column = self._column(table, condition.column)
        operator = condition.operator.lower()
        value = condition.value

        if operator in ("in", "not in"):
            values = list(value)
            return column.in_(values) if operator == "in" else column.not_in(values)

        if column.table is table:
            value = self.serialize_value(model_class, column.name, value)

        if operator in ("=", "=="):
            return column.is_(None) if value is None else column == value
        if operator in ("!=", "<>"):
            return column.is_not(None) if value is None else column != value
        if operator == "<":
            return column < value
        if operator == ">":
            return column > value
        if operator == "<=":
            return column <= value
        if operator == ">=":
            return column >= value
        if operator == "like":
            return column.like(value)
        if operator == "not like":
            return column.not_like(value)

        return column.op(condition.operator)(value)

    def _column(self, table: Table, name: str):
        tablename, _, column_name = name.rpartition(".")
        target = table if not tablename or tablename == table.name else self.get_table(tablename)

        if column_name not in target.c:
            raise DriverError(f"Unknown column {name} on {target.name}")
        return target.c[column_name]

    def _ids_clause(self, table: Table, model: 'Model'):
        return and_(*[
            self._column(table, name) == self.serialize_value(type(model), name, value)
            for name, value in model.ids().items()
        ])

    def dispose(self) -> None:
        """Close every pooled connection"""
        self.engine.dispose()


__all__ = ["DatabaseDriver", "SQLConnectionConfig"]

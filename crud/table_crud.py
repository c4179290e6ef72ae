"""Generic row access over any table in the database.

Tables are reflected per call so the admin console can work with tables the
application has no model for. Values are bound as given (``literal``) and are
type-checked only by the database.
"""
from typing import Any, Sequence

from sqlalchemy import MetaData, Table, delete, func, insert, inspect, literal, select, update
from sqlalchemy.exc import CompileError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import UnknownTableError


def _reflect(db: Session, table_name: str) -> Table:
    conn = db.connection()
    if not table_name or not inspect(conn).has_table(table_name):
        raise UnknownTableError(f"Unknown table {table_name!r}")
    return Table(table_name, MetaData(), autoload_with=conn)


def _column(table: Table, name: str):
    if name not in table.c:
        raise UnknownTableError(f"Unknown column {name!r} in table {table.name!r}")
    return table.c[name]


def get_column_details(db: Session, table_name: str) -> list[tuple[str, str]]:
    table = _reflect(db, table_name)
    dialect = db.get_bind().dialect
    details = []
    for column in table.columns:
        try:
            type_name = column.type.compile(dialect=dialect)
        except CompileError:
            type_name = "text"
        details.append((column.name, type_name.lower()))
    return details


def get_all_rows(db: Session, table_name: str, ordered: bool = True) -> list[tuple]:
    table = _reflect(db, table_name)
    stmt = select(table)
    if ordered and "id" in table.c:
        stmt = stmt.order_by(table.c.id)
    return [tuple(row) for row in db.execute(stmt).all()]


def get_rows_where(db: Session, table_name: str, column: str, value: Any) -> list[tuple]:
    table = _reflect(db, table_name)
    stmt = select(table).where(_column(table, column) == value)
    return [tuple(row) for row in db.execute(stmt).all()]


def get_column_values(db: Session, table_name: str, column: str) -> list[Any]:
    table = _reflect(db, table_name)
    stmt = select(_column(table, column))
    if "id" in table.c:
        stmt = stmt.order_by(table.c.id)
    return list(db.execute(stmt).scalars().all())


def row_exists(db: Session, table_name: str, column: str, value: Any) -> bool:
    return bool(get_rows_where(db, table_name, column, value))


def _execute_write(db: Session, stmt) -> int:
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return result.rowcount


def insert_row(db: Session, table_name: str, names: Sequence[str], values: Sequence[Any]) -> None:
    if len(names) != len(values):
        raise ValueError("Column names and values differ in length")
    table = _reflect(db, table_name)
    row = {_column(table, name).name: literal(value) for name, value in zip(names, values)}
    _execute_write(db, insert(table).values(row))


def change_row_where(
    db: Session, table_name: str, key_column: str, key_value: Any, target_column: str, new_value: Any
) -> int:
    table = _reflect(db, table_name)
    target = _column(table, target_column)
    stmt = (
        update(table)
        .where(_column(table, key_column) == key_value)
        .values({target.name: literal(new_value)})
    )
    return _execute_write(db, stmt)


def delete_row_where(db: Session, table_name: str, key_column: str, key_value: Any) -> int:
    table = _reflect(db, table_name)
    return _execute_write(db, delete(table).where(_column(table, key_column) == key_value))


def get_max_id(db: Session, table_name: str) -> int | None:
    table = _reflect(db, table_name)
    return db.execute(select(func.max(_column(table, "id")))).scalar()


def get_min_id(db: Session, table_name: str) -> int | None:
    table = _reflect(db, table_name)
    return db.execute(select(func.min(_column(table, "id")))).scalar()

"""
Admin console operations over arbitrary tables.

Every function takes an ``AdminCapability`` first; the only way to get one is
``core.auth.require_admin``. Row ids double as display order: moving a row to
the start or end gives it a new id below the minimum or above the maximum, so
anything holding the old id will not find the row afterwards.
"""
import logging
from typing import Any, Sequence

from sqlalchemy.orm import Session

from core.auth import AdminCapability
from core.row_codec import encode_row, encode_rows
from crud import table_crud

logger = logging.getLogger(__name__)


def column_types(db: Session, table: str) -> list[str]:
    return [type_name for _, type_name in table_crud.get_column_details(db, table)]


def fetch_row(db: Session, table: str, row_id: int) -> list[str]:
    rows = table_crud.get_rows_where(db, table, "id", row_id)
    if not rows:
        raise LookupError(f"No row {row_id} in {table!r}")
    return encode_row(column_types(db, table), rows[0])


def list_table(cap: AdminCapability, db: Session, table: str) -> tuple[list[str], list[list[str]], list[str]]:
    details = table_crud.get_column_details(db, table)
    names = [name for name, _ in details]
    types = [type_name for _, type_name in details]
    return names, encode_rows(types, table_crud.get_all_rows(db, table, ordered=True)), types


def list_titles(cap: AdminCapability, db: Session, table: str) -> list[str]:
    return ["" if t is None else str(t) for t in table_crud.get_column_values(db, table, "title")]


def insert_row(cap: AdminCapability, db: Session, table: str, names: Sequence[str], values: Sequence[Any]) -> tuple[int, list[str]]:
    table_crud.insert_row(db, table, names, values)
    row_id = table_crud.get_max_id(db, table)
    logger.info("Admin %s added row %s to %s", cap.session.email, row_id, table)
    return row_id, fetch_row(db, table, row_id)


def update_field(cap: AdminCapability, db: Session, table: str, row_id: int, column: str, value: Any) -> int:
    count = table_crud.change_row_where(db, table, "id", row_id, column, value)
    logger.info("Admin %s set %s.%s on row %s", cap.session.email, table, column, row_id)
    return count


def delete_row(cap: AdminCapability, db: Session, table: str, row_id: int) -> int:
    count = table_crud.delete_row_where(db, table, "id", row_id)
    logger.info("Admin %s deleted row %s from %s", cap.session.email, row_id, table)
    return count


def _move(cap: AdminCapability, db: Session, table: str, row_id: int, new_id: int) -> tuple[int, list[str]]:
    if not table_crud.row_exists(db, table, "id", row_id):
        raise LookupError(f"No row {row_id} in {table!r}")
    table_crud.change_row_where(db, table, "id", row_id, "id", new_id)
    logger.info("Admin %s moved row %s of %s to id %s", cap.session.email, row_id, table, new_id)
    return new_id, fetch_row(db, table, new_id)


def move_to_end(cap: AdminCapability, db: Session, table: str, row_id: int) -> tuple[int, list[str]]:
    return _move(cap, db, table, row_id, (table_crud.get_max_id(db, table) or 0) + 1)


def move_to_start(cap: AdminCapability, db: Session, table: str, row_id: int) -> tuple[int, list[str]]:
    return _move(cap, db, table, row_id, (table_crud.get_min_id(db, table) or 0) - 1)

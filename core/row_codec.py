"""Render raw storage rows as lists of strings for the admin console.

Column types are the lower-cased type names reported by the database
(``date``, ``int(11)``, ``varchar(255)``...). Only the read direction exists;
writes go to the database as given.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Sequence


def encode_value(column_type: str, value: Any) -> str:
    if value is None:
        return ""
    column_type = column_type.lower()
    if "date" in column_type:
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return date.fromisoformat(str(value)[:10]).isoformat()
    if "int" in column_type:
        return str(int(value))
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return str(value)


def encode_row(column_types: Sequence[str], row: Sequence[Any]) -> list[str]:
    return [encode_value(column_types[i], value) for i, value in enumerate(row)]


def encode_rows(column_types: Sequence[str], rows: Iterable[Sequence[Any]]) -> list[list[str]]:
    return [encode_row(column_types, row) for row in rows]

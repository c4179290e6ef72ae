from typing import Any

from pydantic import BaseModel, Json


class TableRequest(BaseModel):
    session: str
    table: str


class RowRequest(TableRequest):
    id: int


class AddRowRequest(TableRequest):
    # JSON encoded arrays, as sent by the admin console
    names: Json[list[str]]
    values: Json[list[Any]]


class ChangeRowRequest(RowRequest):
    name: str
    value: str


class GmailCodeRequest(BaseModel):
    session: str
    code: str


class SendEmailRequest(BaseModel):
    session: str
    recipients: str = ""
    recipient: str = ""
    subject: str
    body: str


class AdminResponse(BaseModel):
    success: bool
    message: str | None = None
    table: str | None = None
    columns: list[str] | None = None
    rows: list[list[str]] | None = None
    types: list[str] | None = None
    titles: list[str] | None = None
    row: list[str] | None = None
    old_id: int | None = None
    id: int | None = None

from pydantic import BaseModel


class CodeRequest(BaseModel):
    session: str
    code: str


class SendVerificationRequest(BaseModel):
    session: str


class SendPasswordRequest(BaseModel):
    # Either a logged-in session or the email of a registered account
    session: str | None = None
    email: str | None = None
    password1: str
    password2: str


class SendEmailChangeRequest(BaseModel):
    session: str
    email: str


class WorkflowResponse(BaseModel):
    success: bool
    message: str | None = None
    email: str | None = None
    session: str | None = None

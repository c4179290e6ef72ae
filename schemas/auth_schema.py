from pydantic import BaseModel


class SignupRequest(BaseModel):
    email: str
    password1: str | None = None
    password2: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class SessionRequest(BaseModel):
    session: str


class AuthResponse(BaseModel):
    success: bool
    session: str | None = None
    verified: bool | None = None
    message: str | None = None

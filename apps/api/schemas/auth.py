from pydantic import BaseModel


class RegisterRequest(BaseModel):
    email: str
    display_name: str
    password: str
    username: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UpdateDisplayNameRequest(BaseModel):
    display_name: str

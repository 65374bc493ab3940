from pydantic import BaseModel


class SignUpRequest(BaseModel):
    email: str
    password: str
    full_name: str


class SignInRequest(BaseModel):
    email: str
    password: str


class SignInResponse(BaseModel):
    token: str
    user_id: str
    full_name: str
    expires_in: int


class UserView(BaseModel):
    user_id: str
    email: str
    full_name: str

import uuid
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

class RegisterIn(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    email: EmailStr
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)

class LoginIn(BaseModel):
    email: EmailStr
    password: str

class UserOut(BaseModel):
    id: uuid.UUID
    name: str | None
    email: str
    role: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class RegisterOut(BaseModel):
    message: str
    user: UserOut

class TokenOut(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"

class ProfileOut(BaseModel):
    message: str
    user: UserOut

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SignInRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ProfileOut(BaseModel):
    id: str
    email: str
    full_name: str
    address: Optional[str] = None
    phone: Optional[str] = None

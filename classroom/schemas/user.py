from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    full_name: str = Field(min_length=1, max_length=255)
    phone: str | None = None
    birth_date: date | None = None


class UserRead(BaseModel):
    id: int
    email: EmailStr
    full_name: str
    role: str
    phone: str | None = None
    birth_date: date | None = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class StudentBrief(BaseModel):
    id: int
    full_name: str
    email: str

    class Config:
        from_attributes = True

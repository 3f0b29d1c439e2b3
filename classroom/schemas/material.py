from datetime import datetime

from pydantic import BaseModel, Field


class MaterialCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    file_url: str = Field(min_length=1, max_length=1024)
    file_name: str | None = None
    file_type: str | None = None
    file_size: int | None = Field(default=None, ge=0)


class MaterialUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    file_url: str | None = Field(default=None, min_length=1, max_length=1024)
    file_name: str | None = None
    file_type: str | None = None
    file_size: int | None = Field(default=None, ge=0)


class MaterialRead(BaseModel):
    id: int
    class_id: int
    title: str
    description: str | None = None
    file_url: str
    file_name: str | None = None
    file_type: str | None = None
    file_size: int | None = None
    created_by: int | None = None
    updated_by: int | None = None
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("email must not be blank")
        return v


class AdminPublic(BaseModel):
    """Admin fields safe to hand back to the client; never the password hash."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    id: str = Field(..., alias="_id")
    email: str
    name: Optional[str] = None
    createdAt: Optional[Any] = None


class PersonSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str = Field(..., alias="_id")
    name: Optional[str] = None
    image: Optional[str] = None


class DashboardStats(BaseModel):
    instructors: int
    students: int
    courses: int
    totalRevenue: Union[int, float]


class DeletedAccount(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class DeletedContent(BaseModel):
    courses: int = 0
    videos: int = 0
    images: int = 0

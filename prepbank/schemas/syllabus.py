"""Pydantic schemas for subject and topic administration."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

NAME_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    display_order: int = Field(default=0, ge=0)
    status: Literal["active", "inactive"] = "active"


class TopicCreate(BaseModel):
    subject_id: UUID
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    display_order: int = Field(default=0, ge=0)
    status: Literal["active", "inactive"] = "active"


class SubjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    description: str | None = None
    status: str
    display_order: int
    created_at: datetime


class TopicOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subject_id: UUID
    name: str
    slug: str
    description: str | None = None
    status: str
    display_order: int
    created_at: datetime

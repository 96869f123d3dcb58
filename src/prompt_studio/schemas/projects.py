from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


ProjectStatus = Literal["ACTIVE", "ARCHIVED", "DRAFT"]


class Project(BaseModel):
    id: int
    name: str
    description: str = ""
    status: ProjectStatus = "ACTIVE"
    tags: list[str] = Field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, v: Any) -> Any:
        if v is None:
            return "ACTIVE"
        return v.upper() if isinstance(v, str) else v


class ProjectRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    status: ProjectStatus = "ACTIVE"
    tags: list[str] = Field(..., min_length=1)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, v: Any) -> Any:
        # The project form sends tags as a comma separated string
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, list):
            return [str(tag).strip() for tag in v if str(tag).strip()]
        return v

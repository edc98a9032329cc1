"""Pydantic request models for FastAPI endpoints."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from models.search_options import SearchOptions


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)
    options: Optional[SearchOptions] = None

    @model_validator(mode="after")
    def validate_query_not_blank(self):
        if not self.query.strip():
            raise ValueError("query must not be blank")
        return self


class StrictSearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)
    category: Optional[str] = Field(None, pattern="^(health|finance|legal|government|general|default)$")

    @model_validator(mode="after")
    def validate_query_not_blank(self):
        if not self.query.strip():
            raise ValueError("query must not be blank")
        return self

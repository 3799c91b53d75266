"""Pydantic request/response schemas used by the API.

Each `*In` schema is the insert shape for one entity kind: the fields a
client may submit on create. Identifiers and timestamps are assigned by
the store and are never accepted from the request body.
"""

import math
import re
from pydantic import AllowInfNan, BaseModel, Field, Strict, StrictInt, field_validator
from typing import Annotated, Any, Dict, List, Optional, Union
from datetime import datetime

SLUG_RE = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")

# JSON numbers only: no numeric strings, no booleans, no NaN/Infinity
MetricValue = Union[StrictInt, Annotated[float, Strict(), AllowInfNan(False)]]


def _has_non_finite(value: Any) -> bool:
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(_has_non_finite(v) for v in value.values())
    if isinstance(value, list):
        return any(_has_non_finite(v) for v in value)
    return False


class UserIn(BaseModel):
    """Payload for the signup endpoint."""
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    name: Optional[str] = None
    email: Optional[str] = None
    isAdmin: bool = False


class ConceptIn(BaseModel):
    """Insert shape for a concept."""
    slug: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: str = Field(min_length=1)

    @field_validator("slug")
    @classmethod
    def slug_is_url_safe(cls, v: str) -> str:
        if not SLUG_RE.fullmatch(v):
            raise ValueError("slug must be lowercase letters or digits separated by single hyphens")
        return v


class TheoryIn(BaseModel):
    """Insert shape for theory content."""
    conceptId: StrictInt
    content: str = Field(min_length=1)
    references: Optional[str] = None


class CodeIn(BaseModel):
    """Insert shape for a code implementation."""
    conceptId: StrictInt
    title: str = Field(min_length=1)
    language: str = Field(min_length=1)
    code: str = Field(min_length=1)
    description: Optional[str] = None


class ExperimentIn(BaseModel):
    """Insert shape for an experiment.

    `results` is free-form structured data. `metrics` maps series names to
    numeric arrays; every series must have the same length so the client
    can plot them against the epoch axis.
    """
    conceptId: StrictInt
    title: str = Field(min_length=1)
    description: Optional[str] = None
    setup: Optional[str] = None
    results: Optional[Dict[str, Any]] = None
    metrics: Optional[Dict[str, List[MetricValue]]] = None

    @field_validator("results")
    @classmethod
    def results_are_finite(cls, v):
        if _has_non_finite(v):
            raise ValueError("results must not contain NaN or Infinity")
        return v

    @field_validator("metrics")
    @classmethod
    def series_have_equal_length(cls, v):
        if v:
            lengths = {len(series) for series in v.values()}
            if len(lengths) > 1:
                raise ValueError("all metric series must have the same length")
        return v


class PaperIn(BaseModel):
    """Insert shape for a research paper."""
    title: str = Field(min_length=1)
    authors: str = Field(min_length=1)
    year: StrictInt
    conference: Optional[str] = None
    link: Optional[str] = None
    abstract: Optional[str] = None
    key_points: Optional[str] = None
    concepts: Optional[List[str]] = None


class UserOut(BaseModel):
    """Public view of a user; the password hash is never returned."""
    id: int
    username: str
    name: Optional[str] = None
    email: Optional[str] = None
    isAdmin: bool
    createdAt: datetime


class ErrorOut(BaseModel):
    """Error body returned for every non-2xx response."""
    message: str
    errors: Optional[List[Dict[str, Any]]] = None

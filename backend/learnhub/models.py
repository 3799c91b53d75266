"""SQLModel entity records.

This module describes the content hub's tables using SQLModel. The
records are held by the in-memory store in `database.py`; no engine is
opened, but the table layout mirrors the relational schema so a real
backend can be swapped in later.

Attribute names follow the JSON contract consumed by the browser client
(`conceptId`, `updatedAt`, ...), so records serialize without renaming.
"""

from typing import Any, Dict, List, Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `username`: unique login name
    - `password_hash`: hashed password string (never store plaintext)
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, nullable=False, unique=True)
    password_hash: str
    name: Optional[str] = None
    email: Optional[str] = None
    isAdmin: bool = False
    createdAt: datetime = Field(default_factory=utcnow)


class Concept(SQLModel, table=True):
    """A learning topic that theory, code and experiments attach to.

    `slug` is the URL-safe natural key used by the client routes;
    `category` groups concepts (e.g. `semi-supervised`, `self-supervised`).
    """
    __tablename__ = "concepts"

    id: Optional[int] = Field(default=None, primary_key=True)
    slug: str = Field(index=True, unique=True)
    title: str
    description: Optional[str] = None
    category: str = Field(index=True)
    updatedAt: datetime = Field(default_factory=utcnow)


class TheoryContent(SQLModel, table=True):
    """Long-form markdown (with LaTeX) explaining a concept."""
    __tablename__ = "theory_content"

    id: Optional[int] = Field(default=None, primary_key=True)
    conceptId: int = Field(index=True)
    content: str
    references: Optional[str] = None
    updatedAt: datetime = Field(default_factory=utcnow)


class CodeImplementation(SQLModel, table=True):
    """A source listing implementing a concept in some `language`."""
    __tablename__ = "code_implementations"

    id: Optional[int] = Field(default=None, primary_key=True)
    conceptId: int = Field(index=True)
    title: str
    language: str
    code: str
    description: Optional[str] = None
    updatedAt: datetime = Field(default_factory=utcnow)


class Experiment(SQLModel, table=True):
    """An experiment record with summary `results` and training `metrics`.

    `metrics` maps series names (`epochs`, `train_loss`, ...) to arrays of
    equal length.
    """
    __tablename__ = "experiments"

    id: Optional[int] = Field(default=None, primary_key=True)
    conceptId: int = Field(index=True)
    title: str
    description: Optional[str] = None
    setup: Optional[str] = None
    results: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    metrics: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    updatedAt: datetime = Field(default_factory=utcnow)


class Paper(SQLModel, table=True):
    """A research paper.

    `concepts` holds loose concept tags (usually slugs); they are not
    checked against the concepts table.
    """
    __tablename__ = "papers"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    authors: str
    year: int
    conference: Optional[str] = None
    link: Optional[str] = None
    abstract: Optional[str] = None
    key_points: Optional[str] = None
    concepts: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    updatedAt: datetime = Field(default_factory=utcnow)

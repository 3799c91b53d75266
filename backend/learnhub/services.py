"""Business logic services used by HTTP controllers.

Services validate raw request payloads against the insert schemas,
apply the natural-key and reference policies, and persist through the
repositories. Input problems are raised as `ValueError` subclasses that
the controllers turn into 4xx responses; anything else propagates as an
internal failure.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError
from . import models, repositories, schemas
from .database import InMemoryDatabase, KeyConflict

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
logger = logging.getLogger("learnhub.services")

S = TypeVar("S", bound=BaseModel)


class InvalidPayload(ValueError):
    """Request body failed schema validation.

    `errors` is the field-level error list reported back to the client.
    """
    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.message = message
        self.errors = errors


class DuplicateKey(ValueError):
    """A natural key (concept slug, username) is already taken."""
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownConcept(InvalidPayload):
    """`conceptId` does not name a stored concept."""
    def __init__(self, concept_id: int):
        super().__init__(
            f"Concept {concept_id} does not exist",
            [{"type": "unknown_concept", "loc": ["conceptId"], "msg": "unknown concept id", "input": concept_id}],
        )


def parse_payload(schema: Type[S], payload: Any, message: str) -> S:
    """Validate `payload` against `schema` or raise `InvalidPayload`."""
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise InvalidPayload(message, e.errors(include_url=False, include_context=False))


class UserService:
    """Signup and user lookups."""
    def __init__(self, db: InMemoryDatabase):
        self.user_repo = repositories.UserRepository(db)

    def signup(self, payload: Any) -> models.User:
        """Create a user with a hashed password.

        Usernames are unique: a taken name raises `DuplicateKey` and no id
        is consumed.
        """
        data = parse_payload(schemas.UserIn, payload, "Invalid user data")
        user = models.User(
            username=data.username,
            password_hash=PWD_CTX.hash(data.password),
            name=data.name,
            email=data.email,
            isAdmin=data.isAdmin,
        )
        try:
            return self.user_repo.create(user)
        except KeyConflict:
            raise DuplicateKey(f"Username {data.username!r} is already taken")


class ContentService:
    """Create and fetch concepts and the content attached to them."""
    def __init__(self, db: InMemoryDatabase, validate_refs: bool = False):
        self.validate_refs = validate_refs
        self.concept_repo = repositories.ConceptRepository(db)
        self.theory_repo = repositories.TheoryRepository(db)
        self.code_repo = repositories.CodeRepository(db)
        self.experiment_repo = repositories.ExperimentRepository(db)
        self.paper_repo = repositories.PaperRepository(db)

    def get_concept_detail(self, slug: str) -> Optional[Dict[str, Any]]:
        """Return a concept joined with its theory, code and experiments.

        Returns `None` for an unknown slug. `theory` is `None` when the
        concept has no theory entry; the two lists may be empty.
        """
        concept = self.concept_repo.get_by_slug(slug)
        if not concept:
            return None
        return {
            'concept': concept,
            'theory': self.theory_repo.get_for_concept(concept.id),
            'codeImplementations': self.code_repo.list_for_concept(concept.id),
            'experiments': self.experiment_repo.list_for_concept(concept.id),
        }

    def create_concept(self, payload: Any) -> models.Concept:
        data = parse_payload(schemas.ConceptIn, payload, "Invalid concept data")
        try:
            return self.concept_repo.create(data)
        except KeyConflict:
            raise DuplicateKey(f"Concept slug {data.slug!r} is already taken")

    def create_theory(self, payload: Any) -> models.TheoryContent:
        data = parse_payload(schemas.TheoryIn, payload, "Invalid theory content data")
        self._check_concept_ref(data.conceptId)
        return self.theory_repo.create(data)

    def create_code(self, payload: Any) -> models.CodeImplementation:
        data = parse_payload(schemas.CodeIn, payload, "Invalid code implementation data")
        self._check_concept_ref(data.conceptId)
        return self.code_repo.create(data)

    def create_experiment(self, payload: Any) -> models.Experiment:
        data = parse_payload(schemas.ExperimentIn, payload, "Invalid experiment data")
        self._check_concept_ref(data.conceptId)
        return self.experiment_repo.create(data)

    def create_paper(self, payload: Any) -> models.Paper:
        data = parse_payload(schemas.PaperIn, payload, "Invalid paper data")
        return self.paper_repo.create(data)

    def _check_concept_ref(self, concept_id: int):
        if self.validate_refs and not self.concept_repo.get(concept_id):
            logger.info("rejected create for unknown concept %s", concept_id)
            raise UnknownConcept(concept_id)

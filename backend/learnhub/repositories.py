"""Repository classes encapsulating store operations.

Each repository is small and focused on a single entity kind (users,
concepts, theory, code, experiments, papers). Repositories stamp the
creation timestamp, let the table assign the id, and return the stored
record objects. Concept slugs and usernames are unique; a clash raises
`database.KeyConflict`. Lookups for a single record return `None` when
nothing matches; list lookups return an empty list.
"""

from typing import Iterable, List, Optional
from . import models, schemas
from .database import InMemoryDatabase


class UserRepository:
    """Create and look up `User` records."""
    def __init__(self, db: InMemoryDatabase):
        self.table = db.users

    def create(self, user: models.User) -> models.User:
        """Persist a new user and return the stored instance."""
        user.createdAt = models.utcnow()
        return self.table.insert(user, unique_on="username")

    def get_by_username(self, username: str) -> Optional[models.User]:
        """Return a `User` by username or `None` if not found."""
        return self.table.first(lambda u: u.username == username)

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.table.get(user_id)


class ConceptRepository:
    """CRUD operations for `Concept` records."""
    def __init__(self, db: InMemoryDatabase):
        self.table = db.concepts

    def create(self, data: schemas.ConceptIn) -> models.Concept:
        concept = models.Concept(**data.model_dump(), updatedAt=models.utcnow())
        return self.table.insert(concept, unique_on="slug")

    def list_all(self) -> List[models.Concept]:
        return self.table.all()

    def get(self, concept_id: int) -> Optional[models.Concept]:
        return self.table.get(concept_id)

    def get_by_slug(self, slug: str) -> Optional[models.Concept]:
        """Return the first concept carrying `slug`."""
        return self.table.first(lambda c: c.slug == slug)

    def list_by_category(self, category: str) -> List[models.Concept]:
        return self.table.filter(lambda c: c.category == category)


class TheoryRepository:
    """Theory content attached to concepts (one per concept in practice)."""
    def __init__(self, db: InMemoryDatabase):
        self.table = db.theory

    def create(self, data: schemas.TheoryIn) -> models.TheoryContent:
        theory = models.TheoryContent(**data.model_dump(), updatedAt=models.utcnow())
        return self.table.insert(theory)

    def get_for_concept(self, concept_id: int) -> Optional[models.TheoryContent]:
        """Return the first theory entry for `concept_id`, if any."""
        return self.table.first(lambda t: t.conceptId == concept_id)


class CodeRepository:
    """Code implementations; many per concept."""
    def __init__(self, db: InMemoryDatabase):
        self.table = db.code

    def create(self, data: schemas.CodeIn) -> models.CodeImplementation:
        impl = models.CodeImplementation(**data.model_dump(), updatedAt=models.utcnow())
        return self.table.insert(impl)

    def list_for_concept(self, concept_id: int) -> List[models.CodeImplementation]:
        return self.table.filter(lambda c: c.conceptId == concept_id)


class ExperimentRepository:
    """Experiment records; many per concept."""
    def __init__(self, db: InMemoryDatabase):
        self.table = db.experiments

    def create(self, data: schemas.ExperimentIn) -> models.Experiment:
        experiment = models.Experiment(**data.model_dump(), updatedAt=models.utcnow())
        return self.table.insert(experiment)

    def list_for_concept(self, concept_id: int) -> List[models.Experiment]:
        return self.table.filter(lambda e: e.conceptId == concept_id)


class PaperRepository:
    """CRUD and tag queries for `Paper` records."""
    def __init__(self, db: InMemoryDatabase):
        self.table = db.papers

    def create(self, data: schemas.PaperIn) -> models.Paper:
        paper = models.Paper(**data.model_dump(), updatedAt=models.utcnow())
        return self.table.insert(paper)

    def list_all(self) -> List[models.Paper]:
        return self.table.all()

    def get(self, paper_id: int) -> Optional[models.Paper]:
        return self.table.get(paper_id)

    def list_related(self, tags: Iterable[str]) -> List[models.Paper]:
        """Return papers sharing at least one concept tag with `tags`."""
        wanted = set(tags)
        if not wanted:
            return []
        return self.table.filter(lambda p: bool(p.concepts) and not wanted.isdisjoint(p.concepts))

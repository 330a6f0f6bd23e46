"""
Entity Store
============

Thin read-modify-write layer over a SQLAlchemy session. Handlers never see
"missing" and "never referenced" as the same thing: load() returns None for
an unknown id, get_or_create() says whether it created the entity.
"""

import logging
from typing import Any, Optional, Tuple, Type, TypeVar

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT")


class EntityStore:
    """Entity access scoped to the session of the event being applied"""

    def __init__(self, session: Session):
        self.session = session

    def load(self, model: Type[EntityT], entity_id: Any) -> Optional[EntityT]:
        """Load an entity by primary key, or None when it does not exist"""
        return self.session.get(model, entity_id)

    def get_or_create(self, model: Type[EntityT], entity_id: Any, **defaults) -> Tuple[EntityT, bool]:
        """Load an entity, creating it with the given defaults when absent"""
        entity = self.session.get(model, entity_id)
        if entity is not None:
            return entity, False

        key = model.__mapper__.primary_key[0].key
        entity = model(**{key: entity_id}, **defaults)
        self.session.add(entity)
        # Pending objects are invisible to session.get() until flushed
        self.session.flush()
        logger.debug(f"🆕 ENTITY_STORE: Created {model.__name__} {entity_id}")
        return entity, True

    def create(self, model: Type[EntityT], entity_id: Any, **values) -> EntityT:
        """Create an immutable record, reusing the stored one on replay"""
        entity, created = self.get_or_create(model, entity_id, **values)
        if not created:
            logger.info(f"♻️ ENTITY_STORE: {model.__name__} {entity_id} already recorded, keeping stored copy")
        return entity

    def save(self, entity: EntityT) -> EntityT:
        """Stage an entity for commit and flush so later queries see it"""
        self.session.add(entity)
        self.session.flush()
        return entity

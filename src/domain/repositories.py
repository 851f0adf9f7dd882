"""
Persistence Store Interface.

The workflow core reads and writes entities only through this contract.
Implementations live in the database package (in-memory and SQLAlchemy).

Atomicity requirement: conditional_update must be a single atomic
compare-and-set on the status field, so two concurrent transitions on the
same entity cannot both succeed. Likewise create must refuse a second live
application by one candidate for one hiring request, even under concurrency.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping

from .aggregates import EntityType


Entity = Any
Criteria = Mapping[str, Any]


class PersistenceStore(ABC):
    """
    Storage collaborator for identities, agencies, hiring requests and
    applications.

    Errors:
        NotFound: id not present
        Conflict: conditional_update lost the race
        PersistenceError: any backend failure (original exception chained)
    """

    @abstractmethod
    def get(self, entity_type: EntityType, entity_id: str) -> Entity:
        """
        Retrieve an entity by ID.

        Raises:
            NotFound: If the entity does not exist
        """

    @abstractmethod
    def find_where(self, entity_type: EntityType, criteria: Criteria) -> List[Entity]:
        """
        Find entities whose fields equal every value in criteria.

        An empty criteria mapping returns every entity of the type.
        """

    @abstractmethod
    def create(self, entity_type: EntityType, fields: Dict[str, Any]) -> Entity:
        """
        Create an entity. The store assigns the id when fields has none.

        Raises:
            DuplicateApplication: The candidate already has a live application
                for the same hiring request (checked atomically with the insert)
        """

    @abstractmethod
    def delete(self, entity_type: EntityType, entity_id: str) -> None:
        """
        Remove an entity. Used to undo a create when a multi-entity write
        fails partway.

        Raises:
            NotFound: If the entity does not exist
        """

    @abstractmethod
    def conditional_update(
        self,
        entity_type: EntityType,
        entity_id: str,
        expected_status: Any,
        new_fields: Dict[str, Any],
    ) -> Entity:
        """
        Apply new_fields only if the stored status still equals expected_status.

        Returns:
            The updated entity

        Raises:
            NotFound: If the entity does not exist
            Conflict: If the stored status differs from expected_status
        """

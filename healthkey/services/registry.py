"""
Service module for the category and event type catalog.

The catalog is mutable runtime data: built-in entries ship with the app and
can be relabeled or moved but never deleted, while user-defined entries can
be removed freely. Every mutation persists the whole catalog before it
returns.

Typical usage:
    registry = CategoryRegistry(store)
    registry.load()
    category = registry.add_category("情绪", "#c8d6e5")
    mood = registry.add_event_type("焦虑", category.id)
"""
from typing import List, Optional

from aws_lambda_powertools import Logger
from pydantic import ValidationError

from healthkey.models.category import Category, EventTypeDefinition
from healthkey.services.constants import BUILTIN_CATEGORIES, BUILTIN_EVENT_TYPES, REGISTRY_KEY
from healthkey.services.exceptions import (
    LastCategoryError,
    ProtectedEntityError,
    StorageError,
    UnknownCategoryError,
    UnknownEventTypeError,
)
from healthkey.services.storage import KeyValueStore, read_snapshot, write_snapshot
from healthkey.services.utils import new_id

logger = Logger()


def builtin_catalog():
    """Fresh copies of the built-in categories and event types."""
    categories = [Category(**item, built_in=True) for item in BUILTIN_CATEGORIES]
    event_types = [EventTypeDefinition(**item, built_in=True) for item in BUILTIN_EVENT_TYPES]
    return categories, event_types


class CategoryRegistry:
    """Ordered catalog of categories and event type definitions."""

    def __init__(
        self,
        store: KeyValueStore,
        categories: Optional[List[Category]] = None,
        event_types: Optional[List[EventTypeDefinition]] = None
    ):
        self.store = store
        if categories is None:
            categories, default_types = builtin_catalog()
            if event_types is None:
                event_types = default_types
        self._categories: List[Category] = list(categories)
        self._event_types: List[EventTypeDefinition] = list(event_types or [])

    # Loading

    def load(self) -> "CategoryRegistry":
        """
        Replace the catalog with the persisted snapshot, if one exists.

        Event types pointing at a missing category are reassigned to the
        first category.

        Returns:
            The registry itself, for chaining
        """
        snapshot = read_snapshot(self.store, REGISTRY_KEY)
        if not isinstance(snapshot, dict):
            return self

        try:
            categories = [Category.model_validate(c) for c in snapshot.get("categories", [])]
            event_types = [EventTypeDefinition.model_validate(t) for t in snapshot.get("event_types", [])]
        except ValidationError as e:
            logger.error("Invalid registry snapshot", extra={
                "error": str(e),
                "error_type": e.__class__.__name__
            })
            raise StorageError(f"Registry snapshot is invalid: {str(e)}") from e

        if not categories:
            logger.warning("Registry snapshot has no categories, keeping built-in catalog")
            return self

        category_ids = {c.id for c in categories}
        fallback = categories[0].id
        repaired = []
        for definition in event_types:
            if definition.category_id not in category_ids:
                logger.warning("Reassigned event type with missing category", extra={
                    "event_type_id": definition.id,
                    "category_id": definition.category_id,
                    "fallback_category_id": fallback
                })
                definition = definition.model_copy(update={"category_id": fallback})
            repaired.append(definition)

        self._categories = categories
        self._event_types = repaired
        return self

    def _commit(self, categories: List[Category], event_types: List[EventTypeDefinition]) -> None:
        """Persist the new catalog, then make it current."""
        write_snapshot(self.store, REGISTRY_KEY, {
            "categories": [c.model_dump(mode="json") for c in categories],
            "event_types": [t.model_dump(mode="json") for t in event_types]
        })
        self._categories = categories
        self._event_types = event_types

    # Lookups

    @property
    def categories(self) -> List[Category]:
        return list(self._categories)

    @property
    def event_types(self) -> List[EventTypeDefinition]:
        return list(self._event_types)

    def get_category(self, category_id: str) -> Category:
        """
        Get a category by id.

        Raises:
            UnknownCategoryError: If the category does not exist
        """
        for category in self._categories:
            if category.id == category_id:
                return category
        raise UnknownCategoryError(f"Unknown category: {category_id}")

    def get_event_type(self, event_type_id: str) -> EventTypeDefinition:
        """
        Get an event type definition by id.

        Raises:
            UnknownEventTypeError: If the event type does not exist
        """
        for definition in self._event_types:
            if definition.id == event_type_id:
                return definition
        raise UnknownEventTypeError(f"Unknown event type: {event_type_id}")

    def has_event_type(self, event_type_id: str) -> bool:
        return any(d.id == event_type_id for d in self._event_types)

    def event_types_for(self, category_id: str) -> List[EventTypeDefinition]:
        """Event types of a category, in catalog order."""
        self.get_category(category_id)
        return [d for d in self._event_types if d.category_id == category_id]

    def category_position(self, category_id: str) -> int:
        """Index of a category in the current ordering."""
        for index, category in enumerate(self._categories):
            if category.id == category_id:
                return index
        raise UnknownCategoryError(f"Unknown category: {category_id}")

    def category_for_event_type(self, event_type_id: str) -> Category:
        """Resolve the category an event type belongs to."""
        return self.get_category(self.get_event_type(event_type_id).category_id)

    # Category mutations

    def add_category(self, label: str, style: str) -> Category:
        """Create a user-defined category at the end of the ordering."""
        category = Category(id=new_id("c"), label=label, style=style)
        self._commit(self._categories + [category], list(self._event_types))
        logger.info("Added category", extra={"category_id": category.id})
        return category

    def rename_category(self, category_id: str, label: str) -> Category:
        return self._update_category(category_id, label=label)

    def restyle_category(self, category_id: str, style: str) -> Category:
        return self._update_category(category_id, style=style)

    def _update_category(self, category_id: str, **changes) -> Category:
        current = self.get_category(category_id)
        updated = current.model_copy(update=changes)
        categories = [updated if c.id == category_id else c for c in self._categories]
        self._commit(categories, list(self._event_types))
        return updated

    def delete_category(self, category_id: str) -> List[EventTypeDefinition]:
        """
        Delete a user-defined category.

        Event types of the deleted category move to the first remaining
        category.

        Args:
            category_id: Category to delete

        Returns:
            The reassigned event type definitions

        Raises:
            UnknownCategoryError: If the category does not exist
            ProtectedEntityError: If the category is built-in
            LastCategoryError: If it is the only category left
        """
        category = self.get_category(category_id)
        if category.built_in:
            raise ProtectedEntityError(f"Built-in category cannot be deleted: {category_id}")
        remaining = [c for c in self._categories if c.id != category_id]
        if not remaining:
            raise LastCategoryError("At least one category must remain")

        fallback = remaining[0].id
        event_types = []
        reassigned = []
        for definition in self._event_types:
            if definition.category_id == category_id:
                definition = definition.model_copy(update={"category_id": fallback})
                reassigned.append(definition)
            event_types.append(definition)

        self._commit(remaining, event_types)
        logger.info("Deleted category", extra={
            "category_id": category_id,
            "fallback_category_id": fallback,
            "reassigned": len(reassigned)
        })
        return reassigned

    # Event type mutations

    def add_event_type(self, label: str, category_id: str) -> EventTypeDefinition:
        """
        Create a user-defined event type.

        Raises:
            UnknownCategoryError: If the category does not exist
        """
        self.get_category(category_id)
        definition = EventTypeDefinition(id=new_id("t"), label=label, category_id=category_id)
        self._commit(list(self._categories), self._event_types + [definition])
        logger.info("Added event type", extra={
            "event_type_id": definition.id,
            "category_id": category_id
        })
        return definition

    def relabel_event_type(self, event_type_id: str, label: str) -> EventTypeDefinition:
        return self._update_event_type(event_type_id, label=label)

    def recategorize_event_type(self, event_type_id: str, category_id: str) -> EventTypeDefinition:
        """
        Move an event type to another category.

        Raises:
            UnknownCategoryError: If the target category does not exist
        """
        self.get_category(category_id)
        return self._update_event_type(event_type_id, category_id=category_id)

    def _update_event_type(self, event_type_id: str, **changes) -> EventTypeDefinition:
        current = self.get_event_type(event_type_id)
        updated = current.model_copy(update=changes)
        event_types = [updated if d.id == event_type_id else d for d in self._event_types]
        self._commit(list(self._categories), event_types)
        return updated

    def check_deletable_event_type(self, event_type_id: str) -> EventTypeDefinition:
        """
        Make sure an event type exists and may be deleted.

        Raises:
            UnknownEventTypeError: If the event type does not exist
            ProtectedEntityError: If the event type is built-in
        """
        definition = self.get_event_type(event_type_id)
        if definition.built_in:
            raise ProtectedEntityError(f"Built-in event type cannot be deleted: {event_type_id}")
        return definition

    def delete_event_type(self, event_type_id: str) -> None:
        """
        Delete a user-defined event type.

        Raises:
            UnknownEventTypeError: If the event type does not exist
            ProtectedEntityError: If the event type is built-in
        """
        self.check_deletable_event_type(event_type_id)
        event_types = [d for d in self._event_types if d.id != event_type_id]
        self._commit(list(self._categories), event_types)
        logger.info("Deleted event type", extra={"event_type_id": event_type_id})


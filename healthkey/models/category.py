"""
Category and event type definitions for the logging catalog.
"""
from pydantic import BaseModel, Field


class Category(BaseModel):
    """
    A user-visible grouping of event types (diet, excretion, sleep, ...).
    """
    id: str = Field(..., min_length=1)
    label: str
    style: str  # Opaque display token, a hex color for the built-ins
    built_in: bool = False


class EventTypeDefinition(BaseModel):
    """
    A named, categorized kind of loggable occurrence.
    """
    id: str = Field(..., min_length=1)
    label: str
    category_id: str
    built_in: bool = False

"""
Base schemas and mixins for all models.
"""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, Union


# Categories and suppliers use integer keys, stores and products use UUIDs
EntityId = Union[int, str]


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class FrozenSchema(BaseModel):
    """Base for result objects that must not change once returned."""
    model_config = ConfigDict(frozen=True)


class TimestampMixin(BaseModel):
    """Add timestamps to response models."""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

"""
Shared configuration for request models.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$"
URL_PATTERN = r"^https?://[^\s/$.?#][^\s]*$"


class CamelModel(BaseModel):
    """Base model accepting both camelCase and snake_case keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    def to_document(self) -> dict:
        """Fields for a new document, defaults included."""
        return self.model_dump(by_alias=True)

    def to_changes(self) -> dict:
        """Only the non-null fields the client actually sent."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)

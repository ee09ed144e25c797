"""
Document models for the users and sessions collections.

Models are plain pydantic classes. MongoDB assigns `_id` on insert; the
models ignore it so a document read back compares equal to the model that
was written.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class MflixDocument(BaseModel):
    """Base class for models stored as MongoDB documents."""

    model_config = ConfigDict(extra="ignore")

    def to_document(self) -> dict[str, Any]:
        """Serialize to a BSON-ready dict, omitting unset optional fields."""
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]):
        """Build a model from a raw MongoDB document."""
        return cls.model_validate(document)


class User(MflixDocument):
    """A registered account in the users collection.

    `password` is stored as given; hashing is the caller's job.
    """

    email: str
    name: str = ""
    password: str = ""
    preferences: dict[str, str] | None = None


class Session(MflixDocument):
    """A login session binding a bearer token to a user identifier.

    `jwt` is optional on read so a record without a token can be detected
    instead of failing validation.
    """

    user_id: str
    jwt: str | None = None

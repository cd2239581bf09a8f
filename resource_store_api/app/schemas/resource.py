"""
Pydantic schemas for resources.

``ResourceCreate`` is the request body for creation, ``ResourcePatch``
is the partial-update body and ``ResourceRead`` is the stored record as
returned to clients.  Older clients send the caller-supplied string as
``reference``; both spellings are accepted on input and ``name`` is
always used on output.
"""

from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, model_serializer

# Integer ids come from the in-memory and relational stores, hex tokens
# from the document store.
ResourceId = Union[int, str]

_NAME_ALIASES = AliasChoices("name", "reference")


class ResourceCreate(BaseModel):
    """Schema for creating a resource."""

    name: str = Field(
        ...,
        min_length=1,
        validation_alias=_NAME_ALIASES,
        examples=["TEST"],
    )
    status: bool = Field(False, examples=[False])


class ResourcePatch(BaseModel):
    """Schema for updating a resource.

    All fields are optional; only fields present in the request body are
    applied.  ``null`` is treated the same as an omitted field.
    """

    name: Optional[str] = Field(None, min_length=1, validation_alias=_NAME_ALIASES)
    status: Optional[bool] = None

    def changes(self) -> dict[str, Any]:
        """Return the explicitly supplied, non-null fields."""
        return self.model_dump(exclude_unset=True, exclude_none=True)

    def apply(self, record: "ResourceRead") -> "ResourceRead":
        """Return a copy of ``record`` with the supplied fields overlaid."""
        return record.model_copy(update=self.changes())


class ResourceRead(BaseModel):
    """Schema for a stored resource."""

    id: Optional[ResourceId] = None
    name: str
    status: bool = False

    @model_serializer(mode="wrap")
    def _omit_missing_id(self, handler):
        data = handler(self)
        if data.get("id") is None:
            data.pop("id", None)
        return data

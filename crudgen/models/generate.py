from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldType(str, Enum):
    STRING = "String"
    INTEGER = "Integer"
    BOOLEAN = "Boolean"


class DatabaseKind(str, Enum):
    MONGO = "Mongo DB"
    POSTGRES = "Postgre SQL"


class TargetLanguage(str, Enum):
    JAVA = "java"
    REACT = "react js"
    NEXT = "next js"
    NODE = "node js"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["TargetLanguage"]:
        """Return the matching member, or None for a missing or unrecognized value."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class FieldSpec(BaseModel):
    """One attribute of the entity to scaffold."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: FieldType = FieldType.STRING
    is_required: bool = Field(default=False, alias="isRequired")
    instructions: Optional[str] = None


class GenerationRequest(BaseModel):
    entity: str
    fields: list[FieldSpec]
    database: DatabaseKind
    # Checked against TargetLanguage by the route so that an unknown or
    # missing value maps to "Invalid language" rather than a schema error.
    language: Optional[str] = None

    def to_payload(self) -> dict:
        """Wire-format body, camelCase keys included."""
        return self.model_dump(mode="json", by_alias=True)

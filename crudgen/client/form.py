"""Form state for one CRUD generation: entity, database, language and an append-only field list."""

from dataclasses import dataclass, field as dc_field

from crudgen.models.generate import DatabaseKind, FieldSpec, FieldType, GenerationRequest, TargetLanguage

ENTITY_REQUIRED = "Entity name is required."
FIELDS_REQUIRED = "At least one field is required."
FIELD_NAME_REQUIRED = "Field name is required."


@dataclass
class FieldDraft:
    """Contents of the "Add Field" dialog."""

    name: str = ""
    type: FieldType = FieldType.STRING
    is_required: bool = False
    instructions: str = ""


@dataclass
class GeneratorForm:
    entity: str = ""
    database: DatabaseKind = DatabaseKind.MONGO
    language: str = TargetLanguage.JAVA.value
    fields: list[FieldSpec] = dc_field(default_factory=list)
    draft: FieldDraft = dc_field(default_factory=FieldDraft)
    errors: dict[str, str] = dc_field(default_factory=dict)
    fields_visible: bool = True

    def add_field(self) -> bool:
        """Append the current draft. A blank name records an inline error and appends nothing."""
        if not self.draft.name.strip():
            self.errors["field_name"] = FIELD_NAME_REQUIRED
            return False

        self.errors.pop("field_name", None)
        self.errors.pop("fields", None)
        self.fields.append(
            FieldSpec(
                name=self.draft.name,
                type=self.draft.type,
                is_required=self.draft.is_required,
                instructions=self.draft.instructions or None,
            )
        )
        self.draft = FieldDraft()
        return True

    def toggle_fields(self) -> None:
        self.fields_visible = not self.fields_visible

    def field_rows(self) -> list[tuple[str, str, str, str]]:
        """(name, type, required, instructions) rows for the field table."""
        return [
            (f.name, f.type.value, "Yes" if f.is_required else "No", f.instructions or "")
            for f in self.fields
        ]

    def validate(self) -> bool:
        if self.entity.strip():
            self.errors.pop("entity", None)
        else:
            self.errors["entity"] = ENTITY_REQUIRED

        if self.fields:
            self.errors.pop("fields", None)
        else:
            self.errors["fields"] = FIELDS_REQUIRED

        return "entity" not in self.errors and "fields" not in self.errors

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            entity=self.entity,
            fields=list(self.fields),
            database=self.database,
            language=self.language,
        )

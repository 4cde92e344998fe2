"""
Prompt builder for CRUD code generation.
Renders field metadata into a single-line description and dispatches to one
prompt template per target language.
"""

import re
from typing import Callable

from crudgen.models.generate import FieldSpec, TargetLanguage


_NEWLINES = re.compile(r"\r\n|\r|\n")

_OUTPUT_RULES = """
    **Rules:**
    1. **DO NOT** include explanations or formatting outside JSON.
    2. **DO NOT** wrap JSON in markdown (```json ... ```).
    3. **ENSURE** every value is a single JSON string containing the full source file.
"""


def flatten_instructions(text: str) -> str:
    """Collapse newlines in free-text instructions so the prompt stays single-line."""
    return _NEWLINES.sub(" ", text)


def describe_field(field: FieldSpec) -> str:
    parts = [f"{field.name} ({field.type.value})"]
    if field.is_required:
        parts.append(" [Required]")
    if field.instructions and field.instructions.strip():
        parts.append(f" - Instructions: {flatten_instructions(field.instructions)}")
    return "".join(parts)


def describe_fields(fields: list[FieldSpec]) -> str:
    """Render every field as `name (type)[ [Required]][ - Instructions: ...]`, comma separated."""
    return ", ".join(describe_field(f) for f in fields)


def _java_prompt(entity: str, fields: str, database: str) -> str:
    return f"""
    Generate a Java Spring Boot CRUD application using **ONLY JSON OUTPUT**.

    - **Entity Name**: {entity}
    - **Fields**: {fields}
    - **Database**: {database}

    Apply the validation rules of each field with Jakarta Bean Validation annotations
    (@NotNull / @NotBlank for required fields, plus any field instructions).

    **Strict JSON Output Format** (NO explanations, NO markdown, NO extra text):
    {{
      "Entity": "<Java entity code>",
      "Repository": "<Java repository code based on {database}>",
      "Service": "<Java service code>",
      "Controller": "<Java controller code>"
    }}
    {_OUTPUT_RULES}
    **Others:**
    **ENSURE** to use lombok
    """


def _react_prompt(entity: str, fields: str, database: str) -> str:
    # Front-end only; the database is the backend's concern.
    return f"""
    Generate a React JS CRUD user interface for a REST resource using **ONLY JSON OUTPUT**.

    - **Entity Name**: {entity}
    - **Fields**: {fields}

    Use functional components with hooks, axios for HTTP calls against `/api/{entity.lower()}s`,
    and client-side form validation that enforces required fields and any field instructions,
    showing an inline message next to each invalid input.

    **Strict JSON Output Format** (NO explanations, NO markdown, NO extra text):
    {{
      "Service": "<axios API service module>",
      "List": "<component listing all {entity} records with edit and delete actions>",
      "Form": "<create/edit form component with validation>",
      "Details": "<component showing a single {entity}>",
      "App": "<App component wiring the routes with react-router-dom>"
    }}
    {_OUTPUT_RULES}
    """


def _next_prompt(entity: str, fields: str, database: str) -> str:
    return f"""
    Generate a Next JS (App Router, TypeScript) CRUD feature using **ONLY JSON OUTPUT**.

    - **Entity Name**: {entity}
    - **Fields**: {fields}
    - **Database**: {database}

    Use route handlers under `app/api/{entity.lower()}s` for the backend, validate request bodies
    with zod (required fields and any field instructions), and use {database} through
    {"mongoose" if "Mongo" in database else "prisma"} for persistence.

    **Strict JSON Output Format** (NO explanations, NO markdown, NO extra text):
    {{
      "Model": "<data model / schema definition>",
      "Validation": "<zod schema for {entity}>",
      "Route": "<app/api/{entity.lower()}s/route.ts with GET and POST>",
      "DynamicRoute": "<app/api/{entity.lower()}s/[id]/route.ts with GET, PUT and DELETE>",
      "Page": "<client page listing, creating and editing {entity} records>"
    }}
    {_OUTPUT_RULES}
    """


def _node_prompt(entity: str, fields: str, database: str) -> str:
    return f"""
    Generate a Node JS (Express) CRUD REST API using **ONLY JSON OUTPUT**.

    - **Entity Name**: {entity}
    - **Fields**: {fields}
    - **Database**: {database}

    Use {"mongoose" if "Mongo" in database else "sequelize with pg"} for persistence and
    express-validator for request validation (required fields and any field instructions).
    Return 400 with the validation errors when a request is invalid and 404 when a record is missing.

    **Strict JSON Output Format** (NO explanations, NO markdown, NO extra text):
    {{
      "Model": "<{entity} model based on {database}>",
      "Validator": "<express-validator rules>",
      "Controller": "<controller with create, findAll, findOne, update, delete>",
      "Routes": "<express router>",
      "Server": "<app entry point with database connection>"
    }}
    {_OUTPUT_RULES}
    """


_TEMPLATES: dict[TargetLanguage, Callable[[str, str, str], str]] = {
    TargetLanguage.JAVA: _java_prompt,
    TargetLanguage.REACT: _react_prompt,
    TargetLanguage.NEXT: _next_prompt,
    TargetLanguage.NODE: _node_prompt,
}

_SYSTEM_MESSAGES: dict[TargetLanguage, str] = {
    TargetLanguage.JAVA: "You are an expert in Java Spring Boot development.",
    TargetLanguage.REACT: "You are an expert in React JS front-end development.",
    TargetLanguage.NEXT: "You are an expert in Next JS full-stack development.",
    TargetLanguage.NODE: "You are an expert in Node JS and Express back-end development.",
}


def build_prompt(language: TargetLanguage, entity: str, fields: list[FieldSpec], database: str) -> str:
    return _TEMPLATES[language](entity, describe_fields(fields), database)


def system_message(language: TargetLanguage) -> str:
    return f"{_SYSTEM_MESSAGES[language]} Respond with pure JSON output only."


def build_messages(language: TargetLanguage, entity: str, fields: list[FieldSpec], database: str) -> list[dict]:
    """Two-message conversation (system + user) for the completion API."""
    return [
        {"role": "system", "content": system_message(language)},
        {"role": "user", "content": build_prompt(language, entity, fields, database)},
    ]

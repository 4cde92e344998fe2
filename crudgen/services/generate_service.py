"""
CRUD code generator.
Sends the rendered prompt to an OpenAI-compatible chat completion API and
returns the model's JSON sections, either buffered or as a stream of text
fragments.
"""

import json
from typing import AsyncGenerator

import httpx

from crudgen.config import config
from crudgen.models.generate import GenerationRequest, TargetLanguage
from crudgen.services.prompt_service import build_messages
from crudgen.utils.logger import get_logger

logger = get_logger(__name__)


class CompletionError(RuntimeError):
    """Upstream failure: missing credentials, transport error, bad status, or malformed output."""


def _headers() -> dict:
    if not config.OPENAI_API_KEY:
        raise CompletionError("OPENAI_API_KEY is not configured")
    return {
        "Authorization": f"Bearer {config.OPENAI_API_KEY}",
        "Content-Type": "application/json",
    }


def _payload(req: GenerationRequest, language: TargetLanguage) -> dict:
    return {
        "model": config.OPENAI_MODEL,
        "messages": build_messages(language, req.entity, req.fields, req.database.value),
    }


async def generate_crud(req: GenerationRequest, language: TargetLanguage) -> dict:
    """
    Buffered mode: request a single JSON-formatted completion and return it parsed.
    Raises CompletionError on any failure.
    """
    payload = _payload(req, language)
    payload["response_format"] = {"type": "json_object"}
    headers = _headers()

    try:
        async with httpx.AsyncClient(timeout=config.OPENAI_TIMEOUT) as client:
            response = await client.post(
                f"{config.OPENAI_BASE_URL}/chat/completions",
                headers=headers,
                json=payload,
            )
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise CompletionError(f"Completion request failed: {e}") from e

    try:
        content = data["choices"][0]["message"]["content"] or "{}"
    except (KeyError, IndexError, TypeError) as e:
        raise CompletionError("Unexpected completion response shape") from e

    try:
        result = json.loads(content)
    except json.JSONDecodeError as e:
        raise CompletionError(f"Model returned invalid JSON: {e}") from e

    if not isinstance(result, dict):
        raise CompletionError("Model returned a non-object JSON document")

    logger.info(
        f"Generation success: entity={req.entity}, language={language.value}, "
        f"sections={list(result)}"
    )
    return result


def _delta_text(data_str: str) -> str:
    try:
        event = json.loads(data_str)
    except json.JSONDecodeError:
        return ""
    choices = event.get("choices") or []
    if not choices:
        return ""
    return (choices[0].get("delta") or {}).get("content") or ""


async def stream_crud(req: GenerationRequest, language: TargetLanguage) -> AsyncGenerator[str, None]:
    """
    Streaming mode: yield each decoded content fragment as it arrives.
    Concatenating every fragment gives the model's full JSON text.
    """
    payload = _payload(req, language)
    payload["stream"] = True
    headers = _headers()

    chars = 0
    try:
        async with httpx.AsyncClient(timeout=config.OPENAI_TIMEOUT) as client:
            async with client.stream(
                "POST",
                f"{config.OPENAI_BASE_URL}/chat/completions",
                headers=headers,
                json=payload,
            ) as response:
                response.raise_for_status()

                async for line in response.aiter_lines():
                    if not line.startswith("data: "):
                        continue

                    data_str = line[6:]
                    if data_str.strip() == "[DONE]":
                        break

                    text = _delta_text(data_str)
                    if text:
                        chars += len(text)
                        yield text
    except httpx.HTTPError as e:
        raise CompletionError(f"Completion stream failed: {e}") from e

    logger.info(
        f"Stream generation finished: entity={req.entity}, language={language.value}, chars={chars}"
    )

"""
Generation session -- drives one form/viewer pair against the generator API.

State machine per submission:
    IDLE -> SUBMITTING -> (STREAMING)* -> DISPLAYING
    IDLE -> SUBMITTING -> ERROR
A new submission clears the viewer and restarts from SUBMITTING.
"""

import json
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Optional

import httpx

from crudgen.client.form import GeneratorForm
from crudgen.client.viewer import CodeViewer
from crudgen.config import config
from crudgen.utils.json_stream import ParseState, StreamAccumulator, StreamDecodeError
from crudgen.utils.logger import get_logger

GENERATE_PATH = "/api/generatecrud"

logger = get_logger(__name__)


class GenerationState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    STREAMING = "streaming"
    DISPLAYING = "displaying"
    ERROR = "error"


class GenerationError(RuntimeError):
    """The generator API answered with an error status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("error") or response.reason_phrase
    except (ValueError, AttributeError):
        return response.reason_phrase


class GeneratorSession:
    def __init__(
        self,
        form: Optional[GeneratorForm] = None,
        viewer: Optional[CodeViewer] = None,
        base_url: str = config.GENERATOR_API_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        stream: bool = True,
        max_buffer_bytes: int = config.STREAM_MAX_BUFFER_BYTES,
    ):
        self.form = form or GeneratorForm()
        self.viewer = viewer or CodeViewer()
        self.base_url = base_url
        self.stream = stream
        self.max_buffer_bytes = max_buffer_bytes
        self.state = GenerationState.IDLE
        self._http = http_client

    @property
    def loading(self) -> bool:
        return self.state in (GenerationState.SUBMITTING, GenerationState.STREAMING)

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http is not None:
            yield self._http
            return
        async with httpx.AsyncClient(base_url=self.base_url, timeout=config.OPENAI_TIMEOUT) as client:
            yield client

    async def generate(self) -> bool:
        """
        Validate the form and, if valid, submit it and render the response.
        Returns True once sections are displayed. Invalid forms issue no request.
        """
        if not self.form.validate():
            return False

        self.viewer.clear()
        self.state = GenerationState.SUBMITTING
        payload = self.form.to_request().to_payload()

        try:
            async with self._client() as client:
                if self.stream:
                    await self._receive_stream(client, payload)
                else:
                    await self._receive_buffered(client, payload)
        except (httpx.HTTPError, GenerationError, StreamDecodeError) as e:
            logger.warning(f"Generation failed for entity={self.form.entity!r}: {e}")
            self.viewer.show_error(f"Failed to generate code: {e}")
            self.state = GenerationState.ERROR
            return False

        self.state = GenerationState.DISPLAYING
        return True

    async def _receive_buffered(self, client: httpx.AsyncClient, payload: dict) -> None:
        response = await client.post(GENERATE_PATH, json=payload)
        if response.status_code >= 400:
            raise GenerationError(response.status_code, _error_message(response))
        try:
            sections = response.json()
        except ValueError as e:
            raise StreamDecodeError(f"Response is not valid JSON: {e}") from e
        self._display(sections)

    async def _receive_stream(self, client: httpx.AsyncClient, payload: dict) -> None:
        accumulator = StreamAccumulator(max_bytes=self.max_buffer_bytes)
        async with client.stream("POST", GENERATE_PATH, json=payload, params={"stream": "true"}) as response:
            if response.status_code >= 400:
                await response.aread()
                raise GenerationError(response.status_code, _error_message(response))

            async for chunk in response.aiter_bytes():
                self.state = GenerationState.STREAMING
                if accumulator.feed(chunk) is ParseState.COMPLETE and not self.viewer.sections:
                    self._display(accumulator.result)

        self._display(accumulator.finish())

    def _display(self, sections) -> None:
        if not isinstance(sections, dict):
            raise StreamDecodeError("Response is not a JSON object")
        self.viewer.show(sections)

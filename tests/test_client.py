"""Tests for the client form, tabbed viewer and generation session."""

import json

import httpx
import pytest

from crudgen.client.form import ENTITY_REQUIRED, FIELD_NAME_REQUIRED, FIELDS_REQUIRED, GeneratorForm
from crudgen.client.session import GenerationState, GeneratorSession
from crudgen.client.viewer import ERROR_TAB, CodeViewer, MemoryClipboard, highlight_language
from crudgen.main import app
from crudgen.models.generate import FieldType
from crudgen.routes import generate as generate_route

SECTIONS = {"Entity": "public class Book {}", "Controller": "public class BookController {}"}


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _filled_form(language="java") -> GeneratorForm:
    form = GeneratorForm(entity="Book", language=language)
    form.draft.name = "title"
    form.draft.is_required = True
    form.draft.instructions = "not blank"
    form.add_field()
    return form


def _session(handler, form=None, stream=True, **kwargs):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://generator.test")
    return GeneratorSession(form=form or _filled_form(), http_client=http, stream=stream, **kwargs)


class ChunkedStream(httpx.AsyncByteStream):
    def __init__(self, chunks):
        self.chunks = chunks

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk


# --- form -------------------------------------------------------------------


def test_add_field_uses_defaults_and_resets_draft():
    form = GeneratorForm()
    form.draft.name = "email"

    assert form.add_field() is True
    assert form.fields[0].type is FieldType.STRING
    assert form.fields[0].is_required is False
    assert form.fields[0].instructions is None
    assert form.draft.name == ""
    assert form.field_rows() == [("email", "String", "No", "")]


def test_add_field_with_blank_name_is_refused():
    form = GeneratorForm()
    form.draft.name = "   "

    assert form.add_field() is False
    assert form.fields == []
    assert form.errors["field_name"] == FIELD_NAME_REQUIRED


def test_validate_reports_entity_and_fields():
    form = GeneratorForm(entity="  ")

    assert form.validate() is False
    assert form.errors == {"entity": ENTITY_REQUIRED, "fields": FIELDS_REQUIRED}

    form.entity = "Book"
    form.draft.name = "title"
    form.add_field()
    assert form.validate() is True
    assert form.errors == {}


def test_fields_table_toggle():
    form = _filled_form()
    assert form.fields_visible is True
    form.toggle_fields()
    assert form.fields_visible is False
    assert form.field_rows() == [("title", "String", "Yes", "not blank")]


def test_request_payload_uses_wire_names():
    payload = _filled_form(language="next js").to_request().to_payload()

    assert payload == {
        "entity": "Book",
        "fields": [{"name": "title", "type": "String", "isRequired": True, "instructions": "not blank"}],
        "database": "Mongo DB",
        "language": "next js",
    }


# --- viewer -----------------------------------------------------------------


def test_viewer_tabs_follow_response_keys():
    viewer = CodeViewer()
    viewer.show(SECTIONS)

    assert viewer.tabs == ["Entity", "Controller"]
    assert viewer.active_tab == "Entity"
    assert viewer.code == SECTIONS["Entity"]

    viewer.select("Controller")
    assert viewer.active_tab == "Controller"
    assert viewer.code == SECTIONS["Controller"]

    with pytest.raises(KeyError):
        viewer.select("Service")


def test_copy_places_active_text_and_confirmation_expires():
    clock = FakeClock()
    clipboard = MemoryClipboard()
    viewer = CodeViewer(clipboard=clipboard, clock=clock, confirmation_seconds=2)
    viewer.show(SECTIONS)
    viewer.select("Controller")

    assert viewer.copied is False
    viewer.copy()
    assert clipboard.text == SECTIONS["Controller"]
    assert viewer.copied is True

    clock.now += 1.9
    assert viewer.copied is True
    clock.now += 0.2
    assert viewer.copied is False


def test_non_string_sections_are_rendered_as_json():
    viewer = CodeViewer()
    viewer.show({"Config": {"port": 8080}})
    assert json.loads(viewer.code) == {"port": 8080}


def test_highlight_language():
    assert highlight_language("java") == "java"
    assert highlight_language("react js") == "javascript"
    assert highlight_language("node js") == "javascript"


# --- session ----------------------------------------------------------------


@pytest.mark.asyncio
async def test_invalid_form_issues_no_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=SECTIONS)

    session = _session(handler, form=GeneratorForm(entity=""))

    assert await session.generate() is False
    assert calls == []
    assert session.state is GenerationState.IDLE
    assert session.form.errors == {"entity": ENTITY_REQUIRED, "fields": FIELDS_REQUIRED}


@pytest.mark.asyncio
async def test_buffered_generation_displays_tabs():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=SECTIONS)

    session = _session(handler, stream=False)

    assert await session.generate() is True
    assert seen["url"] == "http://generator.test/api/generatecrud"
    assert seen["body"]["fields"][0]["isRequired"] is True
    assert session.state is GenerationState.DISPLAYING
    assert session.viewer.tabs == ["Entity", "Controller"]
    assert session.viewer.active_tab == "Entity"


@pytest.mark.asyncio
async def test_buffered_error_status_shows_error_tab():
    session = _session(lambda request: httpx.Response(400, json={"error": "Invalid language"}), stream=False)

    assert await session.generate() is False
    assert session.state is GenerationState.ERROR
    assert session.viewer.tabs == [ERROR_TAB]
    assert "Invalid language" in session.viewer.code


@pytest.mark.asyncio
async def test_buffered_unparseable_body_shows_error_tab():
    session = _session(lambda request: httpx.Response(200, content=b"<html>oops</html>"), stream=False)

    assert await session.generate() is False
    assert session.viewer.active_tab == ERROR_TAB


@pytest.mark.asyncio
async def test_streaming_generation_reassembles_chunks():
    raw = json.dumps(SECTIONS).encode("utf-8")
    chunks = [raw[i:i + 5] for i in range(0, len(raw), 5)]
    seen = {}

    def handler(request):
        seen["stream"] = request.url.params.get("stream")
        return httpx.Response(200, stream=ChunkedStream(chunks), headers={"content-type": "application/json"})

    session = _session(handler)

    assert await session.generate() is True
    assert seen["stream"] == "true"
    assert session.state is GenerationState.DISPLAYING
    assert session.viewer.sections == SECTIONS
    assert session.viewer.active_tab == "Entity"


@pytest.mark.asyncio
async def test_truncated_stream_shows_error_tab():
    session = _session(lambda request: httpx.Response(200, stream=ChunkedStream([b'{"Entity": "publ'])))

    assert await session.generate() is False
    assert session.state is GenerationState.ERROR
    assert "ended before" in session.viewer.code


@pytest.mark.asyncio
async def test_stream_over_buffer_limit_shows_error_tab():
    session = _session(
        lambda request: httpx.Response(200, stream=ChunkedStream([b'{"Entity": "', b"x" * 64, b'"}'])),
        max_buffer_bytes=32,
    )

    assert await session.generate() is False
    assert "exceeded 32 bytes" in session.viewer.code


@pytest.mark.asyncio
async def test_resubmission_clears_previous_results():
    responses = [httpx.Response(500, json={"error": "Internal Server Error"}), httpx.Response(200, json=SECTIONS)]
    session = _session(lambda request: responses.pop(0), stream=False)

    assert await session.generate() is False
    assert session.viewer.tabs == [ERROR_TAB]

    assert await session.generate() is True
    assert session.viewer.tabs == ["Entity", "Controller"]


@pytest.mark.asyncio
async def test_session_against_app_in_stream_mode(monkeypatch):
    async def _fake_stream(req, language):
        assert req.fields[0].is_required is True
        yield '{"Entity": "class Book {}",'
        yield ' "Controller": "class BookController {}"}'

    monkeypatch.setattr(generate_route, "stream_crud", _fake_stream)
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://app")
    session = GeneratorSession(form=_filled_form(), http_client=http)

    assert await session.generate() is True
    assert session.viewer.tabs == ["Entity", "Controller"]

    session.viewer.select("Controller")
    assert session.viewer.copy() == "class BookController {}"
    await http.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("stream", [True, False])
async def test_undecodable_error_body_shows_error_tab(stream):
    session = _session(lambda request: httpx.Response(502, content=b"\xc3\x28\xa0\xa1 bad gateway"), stream=stream)

    assert await session.generate() is False
    assert session.state is GenerationState.ERROR
    assert session.viewer.tabs == [ERROR_TAB]
    assert "502" in session.viewer.code

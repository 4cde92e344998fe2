from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse

from crudgen.models.generate import GenerationRequest, TargetLanguage
from crudgen.services.generate_service import generate_crud, stream_crud
from crudgen.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def _server_error() -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


@router.post("")
async def generate(req: GenerationRequest, stream: bool = False):
    """Generate CRUD code sections for an entity. `?stream=true` returns the JSON text as a chunked body."""
    language = TargetLanguage.parse(req.language)
    if language is None:
        logger.warning(f"Rejected generation request: unknown language {req.language!r}")
        return JSONResponse(status_code=400, content={"error": "Invalid language"})

    if not stream:
        try:
            result = await generate_crud(req, language)
        except Exception as e:
            logger.error(f"Error generating CRUD code: {e}", exc_info=True)
            return _server_error()
        return JSONResponse(status_code=200, content=result)

    # Open the upstream stream before committing to a 200 so that early
    # failures (credentials, connection, bad status) still map to a 500.
    fragments = stream_crud(req, language)
    try:
        first = await fragments.__anext__()
    except StopAsyncIteration:
        first = ""
    except Exception as e:
        logger.error(f"Error starting CRUD code stream: {e}", exc_info=True)
        return _server_error()

    async def body():
        try:
            # An empty completion is sent as "{}", as in buffered mode.
            yield (first or "{}").encode("utf-8")
            async for text in fragments:
                yield text.encode("utf-8")
        except Exception as e:
            # Headers are already sent; the client sees an incomplete document.
            logger.error(f"CRUD code stream aborted: {e}", exc_info=True)
        finally:
            # Releases the upstream connection when the client goes away mid-stream.
            await fragments.aclose()

    return StreamingResponse(body(), media_type="application/json")

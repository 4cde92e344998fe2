"""
CRUD Forge API -- FastAPI application entry point.
AI CRUD code generator backend service.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from crudgen.config import config
from crudgen.routes import generate
from crudgen.utils.logger import logger

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle. A missing API key is logged, not fatal."""
    logger.info("CRUD Forge API starting up...")
    if not config.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set -- generation requests will fail")
    logger.info(f"CRUD Forge API ready (model={config.OPENAI_MODEL}).")
    yield
    logger.info("CRUD Forge API stopped.")


app = FastAPI(
    title="CRUD Forge API",
    description="AI CRUD code generator -- builds a prompt from an entity definition and returns generated code sections.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in config.CORS_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(generate.router, prefix="/api/generatecrud", tags=["generate"])


@app.get("/health")
async def health():
    """Health check with dependency status."""
    return {
        "status": "ok",
        "service": "crudgen-api",
        "version": VERSION,
        "dependencies": {
            "model_api": "configured" if config.OPENAI_API_KEY else "missing_key",
        },
    }


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "crudgen.main:app",
        host="0.0.0.0",
        port=config.PORT,
        reload=config.DEBUG,
    )

from core.observability import configure_observability


# Must run before FastAPI is imported so auto-instrumentation can hook it
configure_observability()

import logging  # noqa: E402
from urllib.parse import urlparse  # noqa: E402

from fastapi import FastAPI  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html  # noqa: E402
from starlette.exceptions import HTTPException as StarletteHTTPException  # noqa: E402

from api.v1.api import api_router  # noqa: E402
from core.config import get_settings  # noqa: E402
from core.error_handler import (  # noqa: E402
    global_exception_handler,
    release_notes_exception_handler,
    setup_logging,
)
from core.middleware import CorrelationIdMiddleware  # noqa: E402
from services.notes.exceptions import ReleaseNotesError  # noqa: E402


def validate_cors_origins(origins: list[str]) -> list[str]:
    """Drop origins that are not absolute http(s) URLs."""

    def is_valid_url(url: str) -> bool:
        parsed = urlparse(url)
        return bool(parsed.scheme in {"http", "https"} and parsed.netloc)

    validated_origins = []
    for origin in origins:
        if is_valid_url(origin):
            validated_origins.append(origin)
        else:
            logging.warning(f"Invalid CORS origin '{origin}' ignored")
    return validated_origins


setup_logging()
settings = get_settings()

app = FastAPI(
    title="Release Notes Relay API",
    description="Streams LLM-generated release notes for pull-request diffs",
    version="0.1.0",
    docs_url=None,  # mounted under /api/v1/docs
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=validate_cors_origins(list(settings.CORS_ORIGINS)),
    allow_credentials=settings.ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.add_exception_handler(ReleaseNotesError, release_notes_exception_handler)
app.add_exception_handler(StarletteHTTPException, global_exception_handler)
app.add_exception_handler(RequestValidationError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(api_router, prefix="/api/v1")


@app.get("/api/v1/docs", include_in_schema=False)
def custom_swagger_ui_html():
    return get_swagger_ui_html(
        openapi_url="/openapi.json", title="Release Notes Relay API Docs"
    )


@app.get("/api/v1/redoc", include_in_schema=False)
def redoc_html():
    return get_redoc_html(
        openapi_url="/openapi.json", title="Release Notes Relay API Redoc"
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)

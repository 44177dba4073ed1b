import json

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from agents.errors import GradingError, RequestParseError, classify_upstream_error
from agents.orchestrator import GradingOrchestrator
from utils.config import Settings
from utils.logging import get_logger, setup_logging

settings = Settings.from_env()
setup_logging(settings.log_level)
logger = get_logger(__name__)

app = FastAPI(
    title="Essay Grader API",
    description="AI-powered essay grading against a rubric using Google Gemini",
    version="1.0.0",
)

# Sent on every /grade response, pre-flight included
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

ROUTED_METHODS = ["POST", "OPTIONS", "GET", "HEAD", "PUT", "PATCH", "DELETE"]

orchestrator = GradingOrchestrator(settings=settings)
logger.info("✓ API ready")


def _json(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


def _error(error: GradingError) -> JSONResponse:
    return _json(error.to_response().model_dump(), status_code=error.status_code)


async def _read_payload(request: Request) -> dict:
    body = await request.body()
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"⚠️  Failed to parse request body: {e}")
        raise RequestParseError() from e

    if not isinstance(payload, dict):
        logger.warning(f"⚠️  Request body is not an object: {type(payload).__name__}")
        raise RequestParseError()

    return payload


@app.api_route("/grade", methods=ROUTED_METHODS)
async def grade(request: Request):
    """
    Grade one answer. Only POST does work; OPTIONS answers the CORS
    pre-flight and everything else is rejected.
    """
    if request.method == "OPTIONS":
        return Response(content="", status_code=200, headers=CORS_HEADERS)

    if request.method != "POST":
        return _json({"error": "Method Not Allowed"}, status_code=405)

    try:
        payload = await _read_payload(request)
        result = await orchestrator.process(payload)
        return _json(result)

    except GradingError as e:
        logger.warning(f"Grading failed ({e.status_code}): {e.error}")
        return _error(e)
    except Exception as e:
        logger.exception(f"❌ Upstream grading error: {e}")
        return _error(classify_upstream_error(e))


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "model": orchestrator.settings.model,
        "credential_configured": orchestrator.settings.has_credential,
    }


def run():
    """Serve the API with uvicorn (the `essay-grader` console script)."""
    logger.info(f"Server will be available at: http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()

"""Main FastAPI application handler for Lambda deployment."""

import logging
import os
import time
from datetime import UTC, datetime

import boto3
import requests
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from mangum import Mangum
from starlette.exceptions import HTTPException as StarletteHTTPException

from models.chat import ServiceTag
from models.provider import ProviderConfig
from services.chat_service import INVALID_REQUEST_MESSAGE, ChatService, ChatServiceError
from services.conversation_service import ConversationStore
from services.interaction_log_service import InteractionLog
from utils.constants import SERVICE_NAME, SERVICE_VERSION
from utils.responses import error_response, success_response

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Initialize FastAPI app
app = FastAPI(
    title="Buddy Chat API",
    description="Emotion-aware chat companion backed by OpenAI or Claude",
    version=SERVICE_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=86400,
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log slow and failed API requests with timing."""
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000

    path = request.url.path
    if duration_ms > 1000:
        logger.warning(
            "[SLOW] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 500:
        logger.error(
            "[ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 400:
        logger.info(
            "[CLIENT_ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )

    return response


# Lazy-initialized AWS clients and services
# Connections must be re-established after a Lambda SnapStart restore
_dynamodb = None
_http_session = None
_conversation_store = None
_interaction_log = None
_chat_service = None


def reset_services():
    """Reset all lazy-initialized services. Useful for testing.

    Also resets boto3's default session so that subsequent calls to
    boto3.resource() create fresh sessions within the current mock context
    (e.g., moto's mock_aws).
    """
    global _dynamodb, _http_session, _conversation_store, _interaction_log
    global _chat_service
    _dynamodb = None
    _http_session = None
    _conversation_store = None
    _interaction_log = None
    _chat_service = None
    boto3.DEFAULT_SESSION = None


def get_dynamodb():
    """Get or create DynamoDB resource (lazy init for SnapStart)."""
    global _dynamodb
    if _dynamodb is None:
        region = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
        _dynamodb = boto3.resource("dynamodb", region_name=region)
    return _dynamodb


def get_http_session():
    """Get or create the HTTP session used for LLM calls."""
    global _http_session
    if _http_session is None:
        _http_session = requests.Session()
    return _http_session


def get_conversation_store():
    """Get or create ConversationStore. An empty table name disables history."""
    global _conversation_store
    if _conversation_store is None:
        table_name = os.environ.get("CHAT_HISTORY_TABLE", "buddy-chat-history-dev")
        table = get_dynamodb().Table(table_name) if table_name else None
        _conversation_store = ConversationStore(table)
    return _conversation_store


def get_interaction_log():
    """Get or create InteractionLog. An empty table name disables logging."""
    global _interaction_log
    if _interaction_log is None:
        table_name = os.environ.get("LLM_HISTORY_TABLE", "buddy-llm-history-dev")
        table = get_dynamodb().Table(table_name) if table_name else None
        _interaction_log = InteractionLog(table)
    return _interaction_log


def get_chat_service():
    """Get or create ChatService (lazy init for SnapStart)."""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService(
            conversation_store=get_conversation_store(),
            interaction_log=get_interaction_log(),
            session=get_http_session(),
        )
    return _chat_service


def get_provider_config() -> ProviderConfig:
    """Resolve LLM credentials from the environment for the current request."""
    return ProviderConfig.from_env(os.environ)


# MARK: - Chat Endpoints


async def _handle_chat(request: Request, service: str | None = None) -> JSONResponse:
    """Decode the body and run it through the chat pipeline."""
    try:
        payload = await request.json()
    except ValueError:
        logger.info("Rejected chat request with malformed JSON body")
        return error_response(INVALID_REQUEST_MESSAGE, 400)

    try:
        result = get_chat_service().chat(payload, get_provider_config(), service=service)
    except ChatServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error("Unhandled chat error: %s", e, exc_info=True)
        return error_response("Internal Server Error", 500)

    return success_response(result.model_dump(by_alias=True))


@app.post("/api/chat")
async def chat(request: Request):
    """General chat. The service tag comes from the body, default general."""
    return await _handle_chat(request)


@app.post("/api/chat/dandani")
async def chat_dandani(request: Request):
    """Chat for the dandani practice service."""
    return await _handle_chat(request, service=ServiceTag.DANDANI.value)


@app.post("/api/chat/timefold")
async def chat_timefold(request: Request):
    """Chat for the timefold service."""
    return await _handle_chat(request, service=ServiceTag.TIMEFOLD.value)


@app.post("/api/chat/tteut")
async def chat_tteut(request: Request):
    """Chat for the tteut service."""
    return await _handle_chat(request, service=ServiceTag.TTEUT.value)


# MARK: - Status Endpoints


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


INDEX_HTML = """<!DOCTYPE html>
<html lang="ko">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>벗 (Buddy) - 감정 회복 AI 말벗</title>
    <style>
        body { font-family: sans-serif; margin: 0; padding: 20px; background: #f4f2fb; }
        .container { background: white; border-radius: 20px; padding: 40px;
                     max-width: 600px; margin: 40px auto; }
        .endpoint { background: #e9ecef; padding: 10px; border-radius: 5px;
                    font-family: monospace; margin: 10px 0; }
        .status { color: #28a745; font-weight: bold; }
    </style>
</head>
<body>
    <div class="container">
        <h1>벗 (Buddy)</h1>
        <p>감정 회복을 돕는 AI 말벗</p>
        <p class="status">Service is running</p>
        <h3>API endpoints</h3>
        <div class="endpoint">POST /api/chat</div>
        <div class="endpoint">POST /api/chat/dandani</div>
        <div class="endpoint">POST /api/chat/timefold</div>
        <div class="endpoint">POST /api/chat/tteut</div>
        <div class="endpoint">GET /api/health</div>
    </div>
</body>
</html>
"""


@app.get("/", response_class=HTMLResponse)
@app.get("/index.html", response_class=HTMLResponse)
async def index():
    """Landing page."""
    return INDEX_HTML


# MARK: - Error Handlers


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request, exc: StarletteHTTPException):
    """Render routing errors (404, 405) in the standard error envelope."""
    return error_response(str(exc.detail), exc.status_code)


# MARK: - Lambda Handler

# Create the Lambda handler
api_handler = Mangum(app, lifespan="off")


# For local development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

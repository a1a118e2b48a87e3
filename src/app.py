"""Review Trust FastAPI application.

Web server that processes commands synchronously via HTTP. Every API
request is wrapped in the trust domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - default/"test" → event_processing = "sync"  (projectors fire in UoW)
#   - "production"   → event_processing = "async" (projectors fire via Engine)
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from trust.domain import trust
from trust.utils.logging import bind_request, clear_request

trust.init()

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Routes served inside the domain context
# ---------------------------------------------------------------------------
_DOMAIN_PREFIXES = (
    "/reviews",
    "/products",
    "/customers",
    "/moderation",
    "/analytics",
    "/social-proof",
    "/integration",
)


def _in_domain(path: str) -> bool:
    return path.startswith(_DOMAIN_PREFIXES)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Review Trust API",
    description="Reviews, moderation, analytics and social proof",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the trust domain context and a request log context for each API request."""
    if _in_domain(request.url.path):
        request_id = bind_request(request.method, request.url.path, request.headers.get("x-request-id"))
        try:
            with trust.domain_context():
                response = await call_next(request)
        finally:
            clear_request()
        response.headers["X-Request-ID"] = request_id
        return response
    # Outside the API surface (health check, docs, etc.)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from trust.api.analytics import router as analytics_router  # noqa: E402
from trust.api.envelope import register_exception_handlers  # noqa: E402
from trust.api.integration import router as integration_router  # noqa: E402
from trust.api.moderation import router as moderation_router  # noqa: E402
from trust.api.reviews import customer_router, product_router, review_router  # noqa: E402
from trust.api.social_proof import router as social_proof_router  # noqa: E402

register_exception_handlers(app)

app.include_router(review_router)
app.include_router(product_router)
app.include_router(customer_router)
app.include_router(moderation_router)
app.include_router(analytics_router)
app.include_router(social_proof_router)
app.include_router(integration_router)

logger.info("Review Trust API ready", domain=trust.name)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"trust": {"name": trust.name}},
        }
    )

import logging
import secrets
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from walletgate.api.endpoints import account, auth, health
from walletgate.core.config import settings
from walletgate.core.jwt_utils import TokenConfig
from walletgate.db.session import init_db
from walletgate.services.memory_store import load_memory_store

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("walletgate")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # key material is fixed for the lifetime of the process
    app.state.token_config = TokenConfig.from_settings(settings)
    # one shared instance for the memory backend; sql stores are built per request
    app.state.record_store = None
    if settings.RECORD_STORE == "memory":
        app.state.record_store = load_memory_store(settings.MEMORY_STORE_SEED)
        logger.warning("using in-process memory record store; state is lost on restart")
    if settings.AUTO_CREATE_TABLES:
        init_db()
    logger.info("%s %s started", settings.PROJECT_NAME, settings.VERSION)
    yield


# Define the FastAPI application instance
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(CORSMiddleware, **settings.cors_middleware_options())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


security = HTTPBasic()
def doc_auth(credentials: HTTPBasicCredentials = Depends(security)):
    expected = settings.DOC_PASSWORD or ""
    correct_password = bool(expected) and secrets.compare_digest(credentials.password, expected)
    if not (correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect password",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username

@app.get("/docs", include_in_schema=False)
async def get_swagger_documentation(username: str = Depends(doc_auth)):
    return get_swagger_ui_html(openapi_url="/openapi.json", title="docs")

@app.get("/redoc", include_in_schema=False)
async def get_redoc_documentation(username: str = Depends(doc_auth)):
    return get_redoc_html(openapi_url="/openapi.json", title="docs")

@app.get("/openapi.json", include_in_schema=False)
async def openapi(username: str = Depends(doc_auth)):
    return get_openapi(title=app.title, version=app.version, routes=app.routes)


# Include your API routers
app.include_router(health.router)
app.include_router(auth.router, prefix="/auth")
app.include_router(account.router, prefix="/api/v1")


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        ssl_keyfile=settings.SSL_KEY,
        ssl_certfile=settings.SSL_CERT,
        reload=settings.DEBUG
    )

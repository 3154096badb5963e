import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from therian.config import settings
from therian.database import create_tables
from therian.errors import AuthError, AuthFailure, AuthorizationError, StorageError, ValidationError
from therian.identity import verifier

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info(f"{settings.APP_NAME} {settings.VERSION} started")
    yield
    await verifier.close()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Therian Chat API",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    code = status.HTTP_401_UNAUTHORIZED
    if exc.reason in (AuthFailure.BANNED, AuthFailure.FORBIDDEN):
        code = status.HTTP_403_FORBIDDEN
    return JSONResponse(status_code=code, content={"detail": exc.detail, "reason": exc.reason.value})

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request: Request, exc: AuthorizationError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.warning(f"Storage failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "Storage unavailable"})

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.warning(f"Database error on {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "Storage unavailable"})


from therian.api.v1 import auth, users, rooms, dms, friends, admin, websocket

app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
app.include_router(rooms.router, prefix="/api/v1/rooms", tags=["rooms"])
app.include_router(dms.router, prefix="/api/v1/dms", tags=["dms"])
app.include_router(friends.router, prefix="/api/v1/friends", tags=["friends"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["admin"])
app.include_router(websocket.router, prefix="/api/v1/ws", tags=["websocket"])

@app.get("/")
async def root():
    return {"message": settings.APP_NAME, "version": settings.VERSION}

@app.get("/health")
async def health():
    return {"status": "ok"}

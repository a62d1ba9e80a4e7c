"""
FastAPI main application for the Book Tracker API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from accounts.exceptions import AccountError, AuthenticationError
from accounts.models import StrategyName, User
from api.auth import (
    clear_session_cookie,
    get_context,
    optional_user,
    read_credential,
    require_user,
    set_session_cookie,
)
from api.context import AppContext
from api.database import DuplicateBookError, InvalidBookIdError
from api.models import (
    BookCreate,
    BookResponse,
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    PublicUser,
    RegisterRequest,
)
from catalog.google_books import CatalogError, SearchQuery, SearchResult
from utilities.config import TrackerConfig, load_config
from utilities.logger import setup_logging

API_VERSION = "1.0.0"

logger = structlog.get_logger(__name__)

router = APIRouter()


def _error_body(error: str, status_code: int, detail: Optional[str] = None, field: Optional[str] = None) -> dict:
    return ErrorResponse(
        error=error,
        detail=detail,
        field=field,
        status_code=status_code
    ).dict()


# Users endpoints
@router.post(
    "/api/users/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Users"],
)
async def register(body: RegisterRequest, request: Request):
    """Create an account. 400 on bad input, 409 if the email is taken."""
    context = get_context(request)
    await context.authenticator.register(body.username, body.email, body.password)
    return MessageResponse(message="User created successfully")


@router.post("/api/users/login", tags=["Users"])
async def login(body: LoginRequest, request: Request):
    """
    Log in with email and password.

    Token strategy answers {"token": ...}; session strategy sets the
    session cookie and answers with a message.
    """
    context = get_context(request)
    credential = await context.authenticator.login(body.email, body.password)

    if credential.strategy == StrategyName.TOKEN:
        return JSONResponse(content={"token": credential.value})

    response = JSONResponse(content={"message": "Logged in"})
    set_session_cookie(response, context, credential.value, credential.max_age)
    return response


@router.post("/api/users/logout", response_model=MessageResponse, tags=["Users"])
async def logout(request: Request):
    """End the current session and tell the client to drop its cookie."""
    context = get_context(request)
    await context.authenticator.logout(read_credential(request, context))
    response = JSONResponse(content={"message": "Logged out"})
    clear_session_cookie(response, context)
    return response


@router.get("/api/users/me", response_model=MeResponse, tags=["Users"])
async def me(user: Optional[User] = Depends(optional_user)):
    """Return the caller, or {"user": null} when not logged in."""
    if user is None:
        return MeResponse(user=None)
    return MeResponse(user=PublicUser(**user.public_view()))


# Books endpoints
@router.post(
    "/api/books",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Books"],
)
async def add_book(book: BookCreate, request: Request, user_id: str = Depends(require_user)):
    """Save a book to the caller's list."""
    try:
        return await get_context(request).books.add_book(user_id, book)
    except DuplicateBookError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Book already saved"
        )


@router.get("/api/books", response_model=List[BookResponse], tags=["Books"])
async def list_books(
    request: Request,
    author: Optional[str] = None,
    user_id: str = Depends(require_user),
):
    """
    List the caller's books, newest first.

    - **author**: case-insensitive match on the primary author
    """
    return await get_context(request).books.list_books(user_id, author)


@router.delete("/api/books/{book_id}", response_model=MessageResponse, tags=["Books"])
async def delete_book(book_id: str, request: Request, user_id: str = Depends(require_user)):
    """Delete one of the caller's books. Other users' books are reported as not found."""
    try:
        deleted = await get_context(request).books.delete_book(user_id, book_id)
    except InvalidBookIdError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid book ID"
        )
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found or not owned by user"
        )
    return MessageResponse(message="Book deleted")


# Catalog search endpoint (no authentication required)
@router.get("/api/search", response_model=List[SearchResult], tags=["Search"])
async def search(
    request: Request,
    q: Optional[str] = None,
    filter: Optional[str] = None,
    print_type: Optional[str] = Query(None, alias="printType"),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    lang_restrict: Optional[str] = Query(None, alias="langRestrict"),
    start_index: int = Query(0, ge=0, alias="startIndex"),
):
    """Search Google Books and return flattened results."""
    if not q or not q.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Missing query parameter "q"'
        )

    query = SearchQuery(
        q=q.strip(),
        filter=filter,
        print_type=print_type,
        order_by=order_by,
        lang_restrict=lang_restrict,
        start_index=start_index,
    )
    try:
        return await get_context(request).catalog.search(query)
    except CatalogError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


# Health check endpoint (no authentication required)
@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    health_info = await get_context(request).books.health_check()
    db_status = health_info.get("status", "unknown")
    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=API_VERSION,
        database_status=db_status
    )


def install_exception_handlers(app: FastAPI, config: TrackerConfig) -> None:
    """Map domain and framework errors onto ErrorResponse bodies."""

    @app.exception_handler(AccountError)
    async def account_error_handler(request: Request, exc: AccountError):
        headers = None
        if isinstance(exc, AuthenticationError) and not config.uses_sessions():
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.status_code, field=getattr(exc, "field", None)),
            headers=headers
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail), exc.status_code),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Report the first invalid field as a 400."""
        errors = exc.errors()
        field = None
        message = "Invalid request"
        if errors:
            loc = [str(part) for part in errors[0].get("loc", ()) if part != "body"]
            field = loc[-1] if loc else None
            message = errors[0].get("msg", message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(message, status.HTTP_400_BAD_REQUEST, field=field)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                "Internal server error",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(exc) if config.debug else None
            )
        )


def create_app(config: Optional[TrackerConfig] = None, context: Optional[AppContext] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Settings; loaded from the environment when omitted
        context: Prebuilt AppContext; when omitted one is opened at startup
            and closed at shutdown

    Returns:
        Configured FastAPI app
    """
    config = config or (context.config if context else load_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        owns_context = app.state.context is None
        if owns_context:
            setup_logging(
                log_level=config.log_level,
                log_format=config.log_format,
                log_file=config.get_log_file_path(),
                debug=config.debug
            )
            logger.info("Starting Book Tracker API", auth_strategy=config.auth_strategy)
            app.state.context = await AppContext.open(config)

        yield

        if owns_context:
            logger.info("Shutting down Book Tracker API")
            await app.state.context.close()
            app.state.context = None

    app = FastAPI(
        title="Book Tracker API",
        description="""
    Personal book tracking: register, log in, search Google Books and keep a reading list.

    ## Authentication

    Depending on deployment, send `Authorization: Bearer <token>` (token
    strategy) or rely on the httpOnly session cookie (session strategy).
    """,
        version=API_VERSION,
        lifespan=lifespan
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_exception_handlers(app, config)
    app.include_router(router)

    frontend_path = config.get_frontend_path()
    if frontend_path:
        app.mount("/", StaticFiles(directory=str(frontend_path), html=True), name="frontend")

    return app


app = create_app()

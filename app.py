"""
GlobeTalk Matchmaking API

FastAPI wrapper around the matchmaker and the penpal request ledger.
The caller id comes from the upstream auth layer in the X-User-Id header.
"""

import logging
import os
import random
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from globetalk.errors import GlobeTalkError
from globetalk.matching.matchmaker import Matchmaker
from globetalk.models.match import MatchCriteria
from globetalk.penpals.request_ledger import PenpalRequestLedger
from globetalk.storage import PenpalStore, UserDirectory, create_stores
from globetalk.utils.constants import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_PAGE_SIZE,
    ENV_LOG_LEVEL,
    SERVICE_NAME,
    SERVICE_VERSION,
    USER_ID_HEADER,
)


logger = logging.getLogger(__name__)


class MatchBody(BaseModel):
    language: Optional[str] = None
    region: Optional[str] = None
    interest: Optional[str] = None


class PenpalRequestBody(BaseModel):
    fromUsername: Optional[str] = None
    toUid: Optional[str] = None
    toUsername: Optional[str] = None


class DocIdBody(BaseModel):
    docId: Optional[str] = None


def caller_id(x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER)) -> str:
    """Identity verified upstream; requests without one are rejected."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id


def create_app(
    directory: Optional[UserDirectory] = None,
    penpal_store: Optional[PenpalStore] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """
    Build the API with its stores.

    Stores default to create_stores() (PostgreSQL if DATABASE_URL is set,
    in-memory otherwise). They are created once here and shared by every
    request.
    """
    if directory is None or penpal_store is None:
        default_directory, default_penpals = create_stores()
        directory = directory or default_directory
        penpal_store = penpal_store or default_penpals

    app = FastAPI(
        title="GlobeTalk Matchmaking",
        description="Random penpal matchmaking and penpal request management",
        version=SERVICE_VERSION,
    )
    app.state.matchmaker = Matchmaker(directory, rng=rng)
    app.state.ledger = PenpalRequestLedger(penpal_store)

    @app.exception_handler(GlobeTalkError)
    async def service_error(request: Request, exc: GlobeTalkError):
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.http_status, content={"error": str(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
        message = "Invalid request"
        if fields:
            message += ": " + ", ".join(fields)
        return JSONResponse(status_code=400, content={"error": message})

    @app.get("/")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
        }

    @app.get("/health")
    async def health():
        """Alias for health check."""
        return await health_check()

    @app.post("/api/match")
    def match(body: MatchBody, user_id: str = Depends(caller_id)):
        """Find a random partner sharing the requested language and region."""
        if not body.language or not body.region:
            raise HTTPException(status_code=400, detail="Missing required fields")

        criteria = MatchCriteria.build(body.language, body.region, body.interest)
        result = app.state.matchmaker.get_random_match(user_id, criteria)
        if result is None:
            logger.info("No match found for %s (%s)", user_id, criteria.model_dump())
            return JSONResponse(
                status_code=404,
                content={"message": "No match found, please update your preferences"},
            )
        return {"match": result.model_dump()}

    @app.post("/api/match/penpal/request")
    def send_penpal_request(body: PenpalRequestBody, user_id: str = Depends(caller_id)):
        """Send a penpal request from the caller."""
        if not body.fromUsername or not body.toUid or not body.toUsername:
            raise HTTPException(status_code=400, detail="Missing required fields")

        request = app.state.ledger.send_request(
            user_id, body.fromUsername, body.toUid, body.toUsername
        )
        return request.to_api_dict()

    @app.post("/api/match/penpal/accept")
    def accept_penpal_request(body: DocIdBody, user_id: str = Depends(caller_id)):
        """Accept a request addressed to the caller."""
        if not body.docId:
            raise HTTPException(status_code=400, detail="Missing penpal document ID")
        app.state.ledger.accept_request(body.docId, user_id)
        return {"success": True}

    @app.post("/api/match/penpal/decline")
    def decline_penpal_request(body: DocIdBody, user_id: str = Depends(caller_id)):
        """Decline a request addressed to the caller."""
        if not body.docId:
            raise HTTPException(status_code=400, detail="Missing penpal document ID")
        app.state.ledger.decline_request(body.docId, user_id)
        return {"success": True}

    @app.get("/api/match/penpal/request/{doc_id}")
    def get_penpal_request(doc_id: str, user_id: str = Depends(caller_id)):
        """One request the caller takes part in."""
        return app.state.ledger.get_request(doc_id, user_id).to_api_dict()

    @app.get("/api/match/penpal/list")
    def list_penpals(
        user_id: str = Depends(caller_id),
        page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
        page_token: Optional[str] = Query(None, alias="pageToken"),
    ):
        """The caller's accepted penpals."""
        page = app.state.ledger.list_accepted(user_id, page_size, page_token)
        return {
            "penpals": [r.to_api_dict() for r in page.items],
            "nextPageToken": page.next_page_token,
        }

    @app.get("/api/match/penpal/pending")
    def list_pending(
        user_id: str = Depends(caller_id),
        page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
        page_token: Optional[str] = Query(None, alias="pageToken"),
    ):
        """Pending requests sent to the caller."""
        page = app.state.ledger.list_pending_incoming(user_id, page_size, page_token)
        return {
            "requests": [r.to_api_dict() for r in page.items],
            "nextPageToken": page.next_page_token,
        }

    @app.get("/api/match/penpal/sent")
    def list_sent(
        user_id: str = Depends(caller_id),
        page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
        page_token: Optional[str] = Query(None, alias="pageToken"),
    ):
        """Pending requests sent by the caller."""
        page = app.state.ledger.list_pending_outgoing(user_id, page_size, page_token)
        return {
            "requests": [r.to_api_dict() for r in page.items],
            "nextPageToken": page.next_page_token,
        }

    return app


logging.basicConfig(level=os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper())

app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8082")))

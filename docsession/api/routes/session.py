"""
Session Router - endpoints over the request's own session.

Endpoints:
- GET    /views    increment and return the session's view counter
- GET    /session  return the session fields
- PUT    /session  replace the session fields with the request body
- POST   /session/reload  reload the session from the store
- DELETE /session  remove the session
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from pydantic import BaseModel, Field

from docsession.api.deps import get_session, get_session_context
from docsession.api.middleware.session import SessionContext
from docsession.core.exceptions import SessionNotFoundError
from docsession.sessions.document import SessionDocument

router = APIRouter(tags=["Session"])


class ViewsResponse(BaseModel):
    """View counter response model."""

    views: int


class SessionFieldsResponse(BaseModel):
    """Session fields response model."""

    fields: dict[str, Any] = Field(default_factory=dict)
    is_new: bool
    dirty: bool


def _fields_response(session: SessionDocument) -> SessionFieldsResponse:
    return SessionFieldsResponse(
        fields=session.serialize(),
        is_new=session.is_new,
        dirty=session.is_dirty(),
    )


@router.get("/views", response_model=ViewsResponse, summary="Count session views")
async def count_views(session: SessionDocument = Depends(get_session)) -> ViewsResponse:
    """Increment the view counter; the middleware saves it after the response."""
    session.inc("views", 1)
    return ViewsResponse(views=session.get("views"))


@router.get("/session", response_model=SessionFieldsResponse, summary="Get session")
async def read_session(
    session: SessionDocument = Depends(get_session),
) -> SessionFieldsResponse:
    return _fields_response(session)


@router.put("/session", response_model=SessionFieldsResponse, summary="Replace session")
async def replace_session(
    body: dict[str, Any],
    context: SessionContext = Depends(get_session_context),
) -> SessionFieldsResponse:
    """Make the session become the request body (journaled, saved on commit)."""
    context.session = body
    return _fields_response(context.session)


@router.post(
    "/session/reload",
    response_model=SessionFieldsResponse,
    summary="Reload session from the store",
)
async def reload_session(
    session: SessionDocument = Depends(get_session),
) -> SessionFieldsResponse:
    """
    Replace the session fields with the stored document.

    Raises:
        HTTPException: 404 if the session has never been saved
    """
    try:
        await session.reload()
    except SessionNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session not found: {e.session_id}",
        ) from e
    return _fields_response(session)


@router.delete(
    "/session",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove session",
)
async def remove_session(
    context: SessionContext = Depends(get_session_context),
) -> Response:
    """Remove the session; the middleware clears the cookie and the document."""
    context.session = None
    return Response(status_code=status.HTTP_204_NO_CONTENT)

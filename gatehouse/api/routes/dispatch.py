"""Catch-all route forwarding every other request to its tenant."""

from fastapi import APIRouter, Request, Response

from gatehouse.api.dependencies import DispatcherDep

router = APIRouter()

DISPATCH_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("/{path:path}", methods=DISPATCH_METHODS, include_in_schema=False)
async def dispatch(request: Request, dispatcher: DispatcherDep) -> Response:
    """Forward the request to the tenant that owns the Host header."""
    return await dispatcher.dispatch(request)

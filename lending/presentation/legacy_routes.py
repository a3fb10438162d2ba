"""Flat ``/library`` endpoints kept for clients of the first single-file API.

Payloads use the original one-letter keys (``t`` title, ``a`` author, ``u``
user id) and every failure is answered with status 400. The endpoints go
through the same services and lending policy as ``/api``.
"""

from typing import Final

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..application.commands import AddBookCommand, BorrowBookCommand
from ..application.lending_policy import LendingPolicy
from ..application.services import CatalogService
from ..domain.results import ResultKind
from ..logging_config import get_logger
from .api_routes import get_catalog, get_lending_policy

logger: Final = get_logger(__name__)

legacy_router: Final = APIRouter(
    prefix="/library", tags=["legacy"], include_in_schema=False
)

OK_BODY: Final = {"m": "OK"}
INCOMPLETE_BODY: Final = {"error": "Incomplete information"}
NOT_FOUND_BODY: Final = {"e": "404"}


class LegacyAddBook(BaseModel):
    t: str | None = None
    a: str | None = None


class LegacyBorrow(BaseModel):
    t: str | None = None
    u: str | None = None


def _bad_request(content: dict[str, str]) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


@legacy_router.post("/add-book")
async def legacy_add_book(
    *, catalog: CatalogService = Depends(get_catalog), body: LegacyAddBook
) -> JSONResponse:
    if body.t is None or body.a is None:
        logger.warning("Legacy add-book rejected - incomplete payload")
        return _bad_request(INCOMPLETE_BODY)

    catalog.add_book(AddBookCommand(title=body.t, author=body.a))
    return JSONResponse(content=OK_BODY)


@legacy_router.post("/borrow")
async def legacy_borrow_book(
    *, policy: LendingPolicy = Depends(get_lending_policy), body: LegacyBorrow
) -> JSONResponse:
    if body.t is None or body.u is None:
        logger.warning("Legacy borrow rejected - incomplete payload")
        return _bad_request(NOT_FOUND_BODY)

    result = policy.borrow_book(BorrowBookCommand(book_title=body.t, user_id=body.u))
    if result.ok:
        return JSONResponse(content=OK_BODY)
    if result.kind is ResultKind.NOT_FOUND:
        return _bad_request(NOT_FOUND_BODY)
    return _bad_request({"e": result.message})

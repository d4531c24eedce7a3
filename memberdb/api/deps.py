"""FastAPI 의존성 주입 모듈 — 페이지 요청, 작업자 바인딩, 경로 ID 회원 조회.

FastAPI dependency injection module.

- get_pageable: ``page``/``size``/``sort`` 쿼리 파라미터를 PageRequest로 변환
  (builds a zero-based PageRequest; size defaults to DEFAULT_PAGE_SIZE and is
  clamped to MAX_PAGE_SIZE; no sort means DEFAULT_SORT)
- get_auditor: 작업자 헤더를 읽어 요청의 세션에 바인딩
  (binds the acting user from the auditor header to the request's session)
- get_member: 경로의 회원 ID를 엔티티로 변환 (resolves a path id into a Member, 404 when absent)
"""

from typing import Annotated

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from memberdb.auditing import bind_auditor
from memberdb.config import settings
from memberdb.database import get_db
from memberdb.models import Member
from memberdb.repositories.member_repository import member_repository
from memberdb.utils.exceptions import BadRequestError, InvalidQueryError, NotFoundError
from memberdb.utils.pagination import PageRequest, Sort


def get_pageable(
    page: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int, Query(ge=1)] = settings.DEFAULT_PAGE_SIZE,
    sort: Annotated[list[str] | None, Query()] = None,
) -> PageRequest:
    """쿼리 파라미터에서 페이지 요청을 생성합니다.

    Build a PageRequest from ``?page=0&size=5&sort=username,desc``.
    ``sort`` may repeat; each value is "prop[,prop...][,asc|desc]".

    Raises:
        BadRequestError: 정렬 방향이 잘못되었을 때 (Invalid sort direction)
    """
    try:
        parsed: Sort = Sort.parse(*(sort or [settings.DEFAULT_SORT]))
    except InvalidQueryError as exc:
        raise BadRequestError(str(exc)) from exc
    return PageRequest.of(page, min(size, settings.MAX_PAGE_SIZE), parsed)


async def get_auditor(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> str | None:
    """요청 헤더의 작업자를 세션에 바인딩합니다.

    Read the acting user from the auditor header and bind it to this request's
    unit of work, so the flush hook stamps created_by / last_modified_by.

    Returns:
        str | None: 작업자 식별자, 헤더가 없으면 None (Actor id, None without the header)
    """
    auditor: str | None = request.headers.get(settings.AUDITOR_HEADER)
    bind_auditor(db, auditor)
    return auditor


async def get_member(
    member_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Member:
    """경로의 회원 ID로 회원을 조회합니다.

    Resolve the ``member_id`` path parameter into a Member entity, so a route
    receives the entity itself instead of its id. Only suited to simple reads:
    the entity is loaded outside any write the route performs.

    Raises:
        NotFoundError: 회원이 없을 때 (Member not found)
    """
    member: Member | None = await member_repository.find_by_id(db, member_id)
    if member is None:
        raise NotFoundError("Member not found")
    return member

"""회원 라우터 — 회원 조회, 페이징 목록, 생성 엔드포인트.

Member Router — Lookup, paged listing and creation endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from memberdb.api.deps import get_auditor, get_member, get_pageable
from memberdb.database import get_db
from memberdb.models import Member
from memberdb.schemas.member import MemberCreate, MemberDto, MemberResponse
from memberdb.services.member_service import member_service
from memberdb.utils.pagination import Page, PageRequest

router: APIRouter = APIRouter()
# 경로 ID를 엔티티로 바로 받는 라우터 — Routes receiving the Member resolved from the path id
entity_router: APIRouter = APIRouter()


@router.get("/{member_id}", response_model=str)
async def get_member_username(
    member_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> str:
    """회원 ID로 사용자명을 조회합니다.

    Return the member's username; 404 when the member does not exist.
    """
    return await member_service.get_username(db, member_id)


@router.get("", response_model=Page[MemberDto])
async def list_members(
    db: Annotated[AsyncSession, Depends(get_db)],
    pageable: Annotated[PageRequest, Depends(get_pageable)],
) -> Page[MemberDto]:
    """회원 목록을 페이지 단위로 조회합니다.

    List members as MemberDto, one zero-based page at a time.
    Defaults: size 5, sorted by username.
    """
    return await member_service.list_members(db, pageable)


@router.post("", response_model=MemberResponse, status_code=201)
async def create_member(
    data: MemberCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auditor: Annotated[str | None, Depends(get_auditor)],
) -> MemberResponse:
    """새 회원을 생성합니다. 작업자는 X-Auditor 헤더에서 가져옵니다.

    Create a member. The acting user comes from the auditor header.
    """
    result: MemberResponse = await member_service.create_member(db, data)
    await db.commit()
    return result


@entity_router.get("/{member_id}", response_model=str)
async def get_member_username_by_entity(
    member: Annotated[Member, Depends(get_member)],
) -> str:
    """경로 ID로 조회된 회원의 사용자명을 반환합니다.

    Same response as ``GET /members/{member_id}``, with the member resolved by
    the get_member dependency instead of inside the route.
    """
    return member.username

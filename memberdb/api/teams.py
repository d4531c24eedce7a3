"""팀 라우터 — 팀 생성 엔드포인트.

Team Router — Team creation endpoint.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from memberdb.api.deps import get_auditor
from memberdb.database import get_db
from memberdb.schemas.member import TeamCreate, TeamResponse
from memberdb.services.member_service import member_service

router: APIRouter = APIRouter()


@router.post("", response_model=TeamResponse, status_code=201)
async def create_team(
    data: TeamCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auditor: Annotated[str | None, Depends(get_auditor)],
) -> TeamResponse:
    """새 팀을 생성합니다 — Create a team."""
    result: TeamResponse = await member_service.create_team(db, data)
    await db.commit()
    return result

"""API 라우터 패키지 — 모든 엔드포인트 통합.

API Router package — Aggregates every endpoint into a single router.

Included routers:
    - members: 회원 조회/생성 (Member lookup, paging and creation)
    - members2: 경로 ID를 엔티티로 받는 회원 조회 (Member lookup with the entity resolved from the path)
    - teams: 팀 생성 (Team creation)
"""

from fastapi import APIRouter

from memberdb.api.members import entity_router as members_entity_router
from memberdb.api.members import router as members_router
from memberdb.api.teams import router as teams_router

api_router: APIRouter = APIRouter()
api_router.include_router(members_router, prefix="/members", tags=["Members"])
api_router.include_router(members_entity_router, prefix="/members2", tags=["Members"])
api_router.include_router(teams_router, prefix="/teams", tags=["Teams"])

"""회원 명시적 쿼리 — 모듈 임포트 시점에 구성되는 SELECT 문.

Explicit member statements, built when this module is imported.
A malformed statement (unknown attribute, bad join) fails at import time, not
on its first call. Native SQL is kept as ``text()`` with explicit result columns.
"""

from sqlalchemy import Select, TextClause, bindparam, func, select, text
from sqlalchemy.orm import contains_eager

from memberdb.models import Member, Team

# 사용자명으로 조회 — Members by exact username
FIND_BY_USERNAME: Select = select(Member).where(Member.username == bindparam("username"))

# 사용자명 + 나이 — Members by username and exact age
FIND_USER: Select = select(Member).where(
    Member.username == bindparam("username"),
    Member.age == bindparam("age"),
)

# 사용자명 목록 — Scalar column list
FIND_USERNAME_LIST: Select = select(Member.username)

# DTO 생성자 조회 — Constructor-style DTO rows; inner join drops members without a team
FIND_MEMBER_DTO: Select = (
    select(Member.id, Member.username, Team.name.label("team_name"))
    .join(Member.team)
    .order_by(Member.id)
)

# 컬렉션 IN 조회 — Members whose username is in a collection
FIND_BY_NAMES: Select = select(Member).where(Member.username.in_(bindparam("names", expanding=True)))

# 페치 조인 — Members with their team loaded by the same join
FIND_MEMBER_FETCH_JOIN: Select = (
    select(Member)
    .outerjoin(Member.team)
    .options(contains_eager(Member.team))
    .order_by(Member.id)
)

# 네이티브 SQL — Native SQL mapped back to the Member entity by column name
NATIVE_FIND_BY_USERNAME = select(Member).from_statement(
    text(
        "select m.id, m.username, m.age, m.team_id, m.created_date, m.last_modified_date, "
        "m.created_by, m.last_modified_by from members m where m.username = :username"
    )
)

# 네이티브 프로젝션 페이징 — Native projection rows, window bound by :limit/:offset
NATIVE_PROJECTION: TextClause = text(
    "select m.id as id, m.username as username, t.name as team_name "
    "from members m left join teams t on m.team_id = t.id "
    "order by m.id limit :limit offset :offset"
)

# 네이티브 카운트 — Count query paired with NATIVE_PROJECTION
NATIVE_PROJECTION_COUNT: TextClause = text("select count(*) from members")

# 나이 기준 카운트 (조인 없음) — Lighter count used by the detached-count page
COUNT_BY_AGE: Select = select(func.count()).select_from(Member).where(Member.age == bindparam("age"))

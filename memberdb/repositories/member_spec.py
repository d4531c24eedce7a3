"""회원 조건 객체 모음 — Reusable member specifications."""

from memberdb.query.criteria import Operator
from memberdb.query.specification import Specification


class MemberSpec:
    """회원 Specification 팩토리.

    Member specification factory.

    Example:
        spec = MemberSpec.username("m1") & MemberSpec.team_name("teamA")
    """

    @staticmethod
    def team_name(team_name: str | None) -> Specification:
        """팀 이름 조건 (내부 조인).

        Team name condition through an inner join on team; an empty name means no
        restriction. The join applies to the whole query, so members without a
        team are dropped even when this is OR-ed with another condition:
        ``team_name("teamA") | username("b")`` never returns a teamless "b".
        Use an explicit outer-join statement when those members must match.
        """
        if not team_name:
            return Specification.unrestricted()
        return Specification.attribute("team.name", Operator.EQ, team_name)

    @staticmethod
    def username(username: str) -> Specification:
        return Specification.attribute("username", Operator.EQ, username)

    @staticmethod
    def age_greater_than(age: int) -> Specification:
        return Specification.attribute("age", Operator.GT, age)

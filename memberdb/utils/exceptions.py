"""예외 클래스 모듈 — 레포지토리 오류와 HTTP 예외.

Exception classes module.
Repository-level errors are plain exceptions raised by the data-access layer;
services translate them into the pre-configured HTTPException subclasses below.

Usage:
    from memberdb.utils.exceptions import NotFoundError, NonUniqueResultError
    raise NotFoundError("Member not found")
"""

from fastapi import HTTPException, status


class RepositoryError(Exception):
    """레포지토리 계층 기본 예외 — Base class for data-access errors."""


class NonUniqueResultError(RepositoryError):
    """단건 조회에 2건 이상이 일치할 때 발생.

    Raised when a singular finder matches more than one row.

    Attributes:
        expected: 기대한 건수 (Expected row count, always 1)
        actual: 실제 일치 건수, 알 수 없으면 None (Actual count when known)
    """

    def __init__(self, message: str = "Query did not return a unique result", actual: int | None = None) -> None:
        super().__init__(message)
        self.expected: int = 1
        self.actual: int | None = actual


class InvalidQueryError(RepositoryError):
    """잘못된 쿼리 정의 — Malformed finder, specification, sort, or missing parameter."""


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용.

    404 Not Found exception.

    Args:
        detail: 오류 메시지 (Error message, default: "Resource not found")
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BadRequestError(HTTPException):
    """400 Bad Request 예외 — 잘못된 요청 데이터 시 사용.

    400 Bad Request exception.
    Raised for invalid paging/sort parameters or unknown references in a request.

    Args:
        detail: 오류 메시지 (Error message, default: "Bad request")
    """

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

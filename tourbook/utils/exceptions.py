"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
AppError marks an error as operational: an expected, user-facing failure
whose message is safe to show in production. Anything that is not an
AppError reaching the error handlers is treated as a programming error.

Usage:
    from tourbook.utils.exceptions import NotFoundError
    raise NotFoundError("No tour found with that ID")
"""

from fastapi import HTTPException, status


class AppError(HTTPException):
    """운영 오류 기반 클래스.

    Base class for operational errors.

    Attributes:
        status: 4xx이면 "fail", 그 외 "error" ("fail" for 4xx, "error" otherwise)
        is_operational: 항상 True (Always True)
    """

    is_operational: bool = True

    def __init__(self, detail: str, status_code: int) -> None:
        super().__init__(status_code=status_code, detail=detail)
        self.status: str = "fail" if str(status_code).startswith("4") else "error"


class NotFoundError(AppError):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용."""

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(detail, status.HTTP_404_NOT_FOUND)


class DuplicateError(AppError):
    """409 Conflict 예외 — 고유 제약 위반 시 사용.

    Raised when a create/update would violate a uniqueness rule
    (duplicate email, duplicate tour name, second review of the same tour).
    """

    def __init__(self, detail: str = "Resource already exists") -> None:
        super().__init__(detail, status.HTTP_409_CONFLICT)


class ForbiddenError(AppError):
    """403 Forbidden 예외 — 권한 부족 시 사용."""

    def __init__(self, detail: str = "You do not have permission to perform this action") -> None:
        super().__init__(detail, status.HTTP_403_FORBIDDEN)


class UnauthorizedError(AppError):
    """401 Unauthorized 예외 — 인증 실패 시 사용."""

    def __init__(self, detail: str = "You are not logged in! Please log in to get access.") -> None:
        super().__init__(detail, status.HTTP_401_UNAUTHORIZED)


class BadRequestError(AppError):
    """400 Bad Request 예외 — 잘못된 요청 데이터 시 사용.

    Raised when the request data is invalid beyond what Pydantic validation
    catches (bad query filters, malformed coordinates, non-image uploads).
    """

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(detail, status.HTTP_400_BAD_REQUEST)


class ServerError(AppError):
    """500 운영 오류 — 외부 서비스 실패처럼 예상 가능한 서버 측 실패."""

    def __init__(self, detail: str = "Something went wrong") -> None:
        super().__init__(detail, status.HTTP_500_INTERNAL_SERVER_ERROR)

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """에러 응답

    error: HTTP 계열 분류 (FORBIDDEN, CONFLICT 등)
    code: 서비스 에러 코드 (DUPLICATE_SUGGESTION 등)
    """

    error: str
    message: str
    code: str | None = None
    details: dict[str, Any] | None = None

from typing import Optional

from pydantic import BaseModel, Field


class HealthCheckResponse(BaseModel):
    """헬스체크 응답 - DB 연결 상태 포함"""

    status: str = Field("healthy", description="healthy | unhealthy")
    database: str = Field("ok", description="ok | unavailable")
    environment: Optional[str] = Field(None, description="실행 환경")
    error: Optional[str] = Field(None, description="실패 시 오류 요약")

from pydantic import BaseModel, Field, StrictInt


class PointsRateResponse(BaseModel):
    rate: int = Field(..., description="금액 1단위당 적립 포인트")
    is_default: bool = Field(False, description="저장된 값이 없어 기본값을 사용 중인지 여부")


class PointsRateUpdateRequest(BaseModel):
    # StrictInt so 1.5 or "10" are rejected rather than coerced
    rate: StrictInt = Field(..., description="새 적립률")


class PointsRateUpdateResponse(BaseModel):
    success: bool = True
    rate: int

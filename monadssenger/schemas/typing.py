from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict


class TypingCreate(BaseModel):
    """타이핑 상태 갱신 스키마"""
    room: Optional[str] = Field(None, description="채팅방 ID")
    username: Optional[str] = Field(None, description="입력 중인 사용자 이름")
    user_color: Optional[str] = Field(None, description="사용자 색상")


class TypingIndicatorResponse(BaseModel):
    """타이핑 상태 응답 스키마"""
    model_config = ConfigDict(from_attributes=True)

    room: str = Field(..., description="채팅방 ID")
    username: str = Field(..., description="입력 중인 사용자 이름")
    user_color: str = Field(..., description="사용자 색상")
    updated_at: datetime = Field(..., description="마지막 입력 시각 (UTC)")


class TypingListResponse(BaseModel):
    """활성 타이핑 상태 목록"""
    typing: List[TypingIndicatorResponse] = Field(default_factory=list)


class SuccessResponse(BaseModel):
    success: bool = True

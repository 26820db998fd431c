from datetime import datetime
from typing import Optional, List, Any
from pydantic import BaseModel, Field, ConfigDict, field_validator


class MessageCreate(BaseModel):
    """메시지 생성 스키마 (필수값 검증은 서비스 계층에서 400으로 처리)"""
    room: Optional[str] = Field(None, description="채팅방 ID (기본값: lobby)")
    username: Optional[str] = Field(None, description="발송자 이름")
    user_color: Optional[str] = Field(None, description="발송자 색상 (#rrggbb)")
    message: Optional[str] = Field(None, description="메시지 내용")


class MessageResponse(BaseModel):
    """메시지 응답 스키마"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="메시지 ID")
    room: str = Field(..., description="채팅방 ID")
    username: str = Field(..., description="발송자 이름")
    user_color: str = Field(..., description="발송자 색상")
    message: str = Field(..., description="메시지 내용")
    created_at: datetime = Field(..., description="생성일시 (UTC)")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> str:
        # SQL 정수 PK, MongoDB ObjectId 모두 문자열로 통일
        return str(value)


class MessageListResponse(BaseModel):
    """메시지 목록 스키마"""
    messages: List[MessageResponse] = Field(default_factory=list, description="메시지 목록 (오래된 순)")


class MessageCreateResponse(BaseModel):
    """메시지 생성 결과 스키마"""
    message: MessageResponse

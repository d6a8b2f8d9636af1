"""Chat Relay Service — request/response models."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class HistoryEntry(BaseModel):
    content: str
    isUser: bool = False


class ChatRequest(BaseModel):
    # Optional here so missing fields reach the handler and get the
    # "Missing required parameters" response instead of a schema error.
    userName: Optional[str] = None
    message: Optional[str] = None
    chatHistory: Optional[List[HistoryEntry]] = Field(default_factory=list)
    personality: Optional[str] = None


class ChatReply(BaseModel):
    reply: str


class ErrorPayload(BaseModel):
    error: str
    details: str


class ConfigPayload(BaseModel):
    supabaseUrl: Optional[str] = None
    supabaseKey: Optional[str] = None


class StatusPayload(BaseModel):
    status: str


class StoreCheckPayload(BaseModel):
    status: str
    data: Optional[Any] = None
    error: Optional[str] = None

"""Pydantic models for the DocChat API."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from docchat.models import ChatMessage, Sender


class ChatMessageModel(BaseModel):
    id: str = Field(..., description="Client-assigned message id")
    sender: Literal["user", "ai"]
    text: str
    timestamp: int = Field(..., ge=0, description="Epoch milliseconds")

    def to_domain(self) -> ChatMessage:
        return ChatMessage(id=self.id, sender=Sender(self.sender), text=self.text, timestamp=self.timestamp)


class ChatRequest(BaseModel):
    question: str = Field(..., min_length=1, description="Latest end-user question")
    history: List[ChatMessageModel] = Field(
        default_factory=list,
        description="Conversation so far in chronological order, including the latest question",
    )


class ChatResponse(BaseModel):
    answer: str


class DocumentRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    doc_id: str
    file_name: str
    uploaded_at: str
    record_count: int = Field(..., ge=0, description="Chunks written to the vector index")


class DocumentUploadResponse(BaseModel):
    documents: List[DocumentRecord]


class DocumentListResponse(BaseModel):
    documents: List[DocumentRecord]


class DeleteAllResponse(BaseModel):
    removed: int


class SaveChatRequest(BaseModel):
    doc_id: Optional[str] = Field(default=None, description="Existing transcript to overwrite; null creates one")
    chat_history: List[ChatMessageModel]


class SaveChatResponse(BaseModel):
    doc_id: str


class ChatTranscript(BaseModel):
    doc_id: str
    chat_history: List[ChatMessageModel]


class ChatListResponse(BaseModel):
    chats: List[ChatTranscript]


class IndexStatsResponse(BaseModel):
    collection: str
    total_records: int

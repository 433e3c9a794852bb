from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional

class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"] = Field(description="Who wrote the message")
    content: str = Field(default="", description="Message text shown in the transcript")

class PendingFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Original file name")
    size: int = Field(description="File size in bytes")
    mime_type: str = Field(default="application/octet-stream", description="Declared MIME type")
    data: bytes = Field(default=b"", repr=False, description="Raw file content")

    @property
    def size_kb(self) -> float:
        return self.size / 1024

# --- Gemini request ---

class InlineData(BaseModel):
    mime_type: str = Field(description="MIME type of the attached file")
    data: str = Field(description="Base64 file content without data URL prefix")

class Part(BaseModel):
    text: Optional[str] = Field(default=None, description="Text part")
    inline_data: Optional[InlineData] = Field(default=None, description="Binary attachment part")

class Content(BaseModel):
    parts: List[Part] = Field(default_factory=list, description="Ordered request parts")

class GenerateContentRequest(BaseModel):
    contents: List[Content] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

# --- Gemini response ---

class ResponseContent(BaseModel):
    parts: Optional[List[Part]] = None

class Candidate(BaseModel):
    content: Optional[ResponseContent] = None

class ProviderErrorBody(BaseModel):
    code: Optional[int] = None
    message: Optional[str] = None
    status: Optional[str] = None

class GenerateContentResponse(BaseModel):
    candidates: Optional[List[Candidate]] = None
    error: Optional[ProviderErrorBody] = None

    def first_text(self) -> Optional[str]:
        """Text of the first part of the first candidate, or None when any level is missing."""
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].text

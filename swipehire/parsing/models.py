from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ParsingStage = Literal["uploading", "extracting", "processing", "complete"]
SourceType = Literal["pdf", "docx", "doc", "txt"]


class ParsingProgress(BaseModel):
    stage: ParsingStage
    progress: int = Field(ge=0, le=100)
    message: str


class FileInfo(BaseModel):
    name: str
    size: int
    type: str


class FileValidationResult(BaseModel):
    is_valid: bool
    error: str | None = None
    file_info: FileInfo | None = None


class ParsedFileMetadata(BaseModel):
    file_name: str
    file_size: int
    file_type: str
    source_type: SourceType
    page_count: int | None = None
    word_count: int
    character_count: int
    extraction_time_ms: int
    warnings: list[str] = Field(default_factory=list)


class ParsedFileResult(BaseModel):
    text: str
    metadata: ParsedFileMetadata

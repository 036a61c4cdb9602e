"""Pydantic request and response models for the HTTP API."""

from .base import BaseResponse, ErrorResponse
from .content import (
    ExtractionResponse,
    ExtractRequest,
    GeneratedContentResponse,
    GenerateRequest,
    GenerationResponse,
    TranscriptRequest,
    TranscriptResponse,
)
from .source import (
    CreateSourceRequest,
    HistoryEntryResponse,
    SourceResponse,
    UpdateStatusRequest,
)
from .usage import UsageResponse

__all__ = [
    "BaseResponse",
    "CreateSourceRequest",
    "ErrorResponse",
    "ExtractRequest",
    "ExtractionResponse",
    "GenerateRequest",
    "GeneratedContentResponse",
    "GenerationResponse",
    "HistoryEntryResponse",
    "SourceResponse",
    "TranscriptRequest",
    "TranscriptResponse",
    "UpdateStatusRequest",
    "UsageResponse",
]

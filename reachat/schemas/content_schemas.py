"""
Content Schemas for the Conversational Rendering Pipeline

This module provides Pydantic models for everything that flows through the
text-to-structured-content pipeline: parsed content segments, diagnostic
events, and the two shapes an injection rule can be declared in.

Design Principles:
- Validation at the boundary: rule specs and rule files are validated once,
  the hot path (parsing, injecting) works with already-trusted data
- Component-mapping: a segment's component_name resolves 1:1 to a renderer
- Text is never lost: a component segment keeps the literal syntax it was
  parsed from in its text field
"""

from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from enum import Enum


DEFAULT_RULE_PRIORITY = 50

Role = Literal["user", "assistant"]
InjectionType = Literal["action", "container", "multi-choice"]
InjectionPosition = Literal["before", "after"]


# === Parsed Content ===

class ContentSegment(BaseModel):
    """
    One unit of parsed output: plain text or a named component invocation.

    Plain text segments leave component_name unset. Component segments keep
    the original matched literal in text so the conversation history sent
    back to a language model still contains the syntax.
    """
    id: int = Field(
        ...,
        description="Segment id, unique within a single parse call"
    )
    role: Role = Field(
        ...,
        description="Author of the text this segment was parsed from"
    )
    text: str = Field(
        ...,
        description="Plain text, or the literal syntax a component was parsed from"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="Creation time of the segment"
    )
    component_name: Optional[str] = Field(
        None,
        description="Registry name of the component that renders this segment"
    )
    component_props: Optional[Dict[str, Any]] = Field(
        None,
        description="Properties handed to the component renderer"
    )
    attachments: Optional[List[Any]] = Field(
        None,
        description="Attachments carried over from the originating message"
    )

    @property
    def is_component(self) -> bool:
        """True when the segment resolves to a component instead of plain text."""
        return self.component_name is not None

    def to_dict(self) -> Dict[str, Any]:
        """Export for JSON transport, dropping unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True)


# === Diagnostics ===

class DiagnosticEventType(str, Enum):
    """Kinds of activity recorded by the diagnostic event bus."""
    MESSAGE = "message"
    API_REQUEST = "api_request"
    API_RESPONSE = "api_response"
    ACTION = "action"
    COMPONENT = "component"
    SESSION = "session"
    ERROR = "error"


class DiagnosticEvent(BaseModel):
    """A timestamped, typed log entry describing pipeline activity."""
    id: str = Field(..., description="Unique event id")
    timestamp: int = Field(..., description="Creation time in epoch milliseconds")
    type: DiagnosticEventType
    label: str = Field(..., description="Short human readable summary")
    data: Any = None
    duration: Optional[int] = Field(
        None,
        description="Elapsed milliseconds, only set on correlated responses",
        ge=0
    )

    def to_dict(self) -> Dict[str, Any]:
        """
        Export in the shape used by the JSON event dump.

        The duration key is omitted entirely when no duration was measured,
        while a None payload in data is kept as null.
        """
        exported = self.model_dump()
        exported["type"] = self.type.value
        if exported.get("duration") is None:
            exported.pop("duration", None)
        return exported


class EventStats(BaseModel):
    """Aggregate view over the current event log."""
    total: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict)
    errors: int = 0
    average_response_time: int = Field(
        0,
        description="Rounded mean duration of api_response events that carried one"
    )


# === Injection Rules ===

class InjectionConfig(BaseModel):
    """Component configuration rendered into the injected literal."""
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    variant: Optional[str] = None
    icon: Optional[str] = None
    button_text: Optional[str] = None
    question: Optional[str] = None
    choice_type: Optional[Literal["single", "multiple"]] = None
    options: Optional[List[str]] = None


class RuleSpec(BaseModel):
    """
    Ad-hoc rule specification built from plain keywords.

    Keywords are matched literally and case-insensitively. Only the first
    keyword takes part in matching unless require_all is set.
    """
    keywords: List[str] = Field(
        ...,
        description="Literal keywords, escaped before compilation",
        min_length=1
    )
    type: InjectionType
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    variant: Optional[str] = None
    icon: Optional[str] = None
    button_text: Optional[str] = None
    question: Optional[str] = None
    choice_type: Optional[Literal["single", "multiple"]] = None
    options: Optional[List[str]] = None
    position: InjectionPosition = "after"
    once: bool = True
    require_all: bool = False
    category: Optional[str] = None
    priority: Optional[int] = None

    @field_validator("keywords")
    @classmethod
    def validate_keywords(cls, v):
        """Reject empty keywords, they would match every text."""
        for keyword in v:
            if not keyword:
                raise ValueError("keywords must not contain empty strings")
        return v


class RuleDefinition(BaseModel):
    """A rule as declared in a YAML rule catalogue, patterns are regex sources."""
    patterns: List[str] = Field(..., min_length=1)
    type: InjectionType
    config: InjectionConfig = Field(default_factory=InjectionConfig)
    position: InjectionPosition = "after"
    once: bool = True
    category: Optional[str] = None
    priority: int = DEFAULT_RULE_PRIORITY

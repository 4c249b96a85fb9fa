"""
Content Schemas for the Conversational Rendering Pipeline

Pydantic models shared by the parser, the injection rule engine, the
component registry and the diagnostic event bus.

Usage:
    from reachat.schemas import ContentSegment

    segment = ContentSegment(id=1, role="assistant", text="Hello")
"""

from .content_schemas import (
    # Parsed content
    ContentSegment,

    # Diagnostics
    DiagnosticEvent,
    DiagnosticEventType,
    EventStats,

    # Injection rules
    InjectionConfig,
    RuleSpec,
    RuleDefinition,
    DEFAULT_RULE_PRIORITY,
)

__all__ = [
    "ContentSegment",
    "DiagnosticEvent",
    "DiagnosticEventType",
    "EventStats",
    "InjectionConfig",
    "RuleSpec",
    "RuleDefinition",
    "DEFAULT_RULE_PRIORITY",
]

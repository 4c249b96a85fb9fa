"""
Content Pipeline API Endpoints

REST surface over the parser, the action injector, the component registry
and the diagnostic event bus, for front ends and for inspecting pipeline
activity while debugging.
"""

import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from ..action_injector import inject_actions, should_skip_injection
from ..component_registry import get_global_registry
from ..config import get_pipeline_config
from ..content_pipeline import ContentPipeline
from ..event_bus import get_global_event_bus
from ..json_encoder import to_json_dict
from ..message_parser import parse_message
from ..schemas import DiagnosticEventType

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api/pipeline", tags=["content-pipeline"])


# Pydantic models for request/response
class MessageRequest(BaseModel):
    """Text to run through the pipeline."""
    text: str
    role: Literal["user", "assistant"] = "assistant"
    id: Optional[int] = None


class InjectRequest(BaseModel):
    """Text to augment with injected component syntax."""
    text: str
    max_injections: Optional[int] = Field(None, ge=0)


class InjectResponse(BaseModel):
    text: str
    injections: List[str]
    skipped: bool


class RenderedSegment(BaseModel):
    segment: Dict[str, Any]
    rendered: Any = None


@router.post("/parse")
async def parse_text(request: MessageRequest) -> List[Dict[str, Any]]:
    """Parse text into content segments without injecting anything."""
    segments = parse_message(request.text, {'id': request.id, 'role': request.role})
    return [segment.to_dict() for segment in segments]


@router.post("/inject", response_model=InjectResponse)
async def inject_text(request: InjectRequest) -> InjectResponse:
    """Augment text with the configured rules, honouring the skip check."""
    if should_skip_injection(request.text):
        return InjectResponse(text=request.text, injections=[], skipped=True)

    config = get_pipeline_config()
    max_injections = request.max_injections if request.max_injections is not None else config.MAX_INJECTIONS
    result = inject_actions(request.text, max_injections=max_injections, debug=config.DEBUG_INJECTION)
    return InjectResponse(
        text=result.text,
        injections=[item.injection for item in result.injections],
        skipped=False,
    )


@router.post("/process")
async def process_text(request: MessageRequest) -> Dict[str, Any]:
    """Run the full pipeline for a user or an assistant message."""
    pipeline = ContentPipeline()
    if request.role == "user":
        segments = pipeline.process_user_message(request.text, request.id)
        return {'segments': [segment.to_dict() for segment in segments], 'injections': []}
    return pipeline.process_assistant_response(request.text, request.id).to_dict()


@router.post("/render", response_model=List[RenderedSegment])
async def render_text(request: MessageRequest) -> List[RenderedSegment]:
    """Parse text and resolve every component segment through the registry."""
    registry = get_global_registry()
    segments = parse_message(request.text, {'id': request.id, 'role': request.role})
    return [
        RenderedSegment(segment=segment.to_dict(), rendered=registry.render(segment))
        for segment in segments
    ]


@router.get("/components")
async def list_components() -> Dict[str, List[str]]:
    return {'components': get_global_registry().list()}


@router.get("/events")
async def get_events(
    type: Optional[DiagnosticEventType] = None,
    limit: Optional[int] = Query(None, ge=1),
) -> List[Dict[str, Any]]:
    """Current diagnostic events, optionally filtered by type and trimmed to the newest."""
    bus = get_global_event_bus()
    events = bus.get_events_by_type(type) if type is not None else bus.get_events()
    if limit is not None:
        events = events[-limit:]
    return to_json_dict([event.to_dict() for event in events])


@router.get("/events/stats")
async def get_event_stats() -> Dict[str, Any]:
    return get_global_event_bus().get_stats().model_dump()


@router.get("/events/export", response_class=PlainTextResponse)
async def export_events() -> PlainTextResponse:
    """Full event log as the JSON array the debug panel downloads."""
    return PlainTextResponse(get_global_event_bus().export_as_json(), media_type="application/json")


@router.delete("/events")
async def clear_events() -> Dict[str, str]:
    get_global_event_bus().clear()
    logger.info("🧹 Diagnostic event log cleared")
    return {"status": "success", "message": "Event log cleared"}

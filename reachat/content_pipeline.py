"""
Content Pipeline - caller-side flow that ties injection, parsing and
diagnostics together for every message of a conversation.

raw text -> [inject] -> parse -> segments, with each stage recorded on the
diagnostic event bus. The pipeline itself never fails on text; failures of
the chunk source in process_stream are logged and re-raised because
recovery belongs to the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from .action_injector import Injection, InjectionRule, inject_actions, should_skip_injection
from .config import PipelineConfig, get_pipeline_config
from .event_bus import DiagnosticEventBus, get_global_event_bus
from .message_parser import has_parseable_syntax, parse_message
from .schemas import ContentSegment

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of processing one assistant response."""
    segments: List[ContentSegment]
    text: str
    original_text: str
    injections: List[Injection] = field(default_factory=list)

    @property
    def injected(self) -> bool:
        return bool(self.injections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'segments': [segment.to_dict() for segment in self.segments],
            'text': self.text,
            'original_text': self.original_text,
            'injections': [item.injection for item in self.injections],
        }


class ContentPipeline:
    """
    Processes user and assistant messages into content segments.

    Dependencies default to the process-wide event bus and configuration;
    tests pass their own.
    """

    def __init__(
        self,
        event_bus: Optional[DiagnosticEventBus] = None,
        config: Optional[PipelineConfig] = None,
        rules: Optional[Sequence[InjectionRule]] = None,
    ):
        self.event_bus = event_bus if event_bus is not None else get_global_event_bus()
        self.config = config if config is not None else get_pipeline_config()
        self.rules = list(rules) if rules is not None else None

    def process_user_message(
        self,
        text: str,
        base_id: Optional[int] = None,
        attachments: Optional[List[Any]] = None,
    ) -> List[ContentSegment]:
        """Parse user input when it carries syntax, one plain segment otherwise."""
        trimmed = text.strip()
        base_attributes = {'id': base_id, 'role': 'user', 'attachments': attachments or None}
        has_syntax = has_parseable_syntax(trimmed)

        # without syntax the parser returns the single plain segment
        segments = parse_message(trimmed, base_attributes)

        self.event_bus.log_message('user', trimmed, {
            'attachments': len(attachments or []),
            'hasCustomSyntax': has_syntax,
            'parsedMessages': len(segments),
        })
        return segments

    def process_assistant_response(self, text: str, base_id: Optional[int] = None) -> PipelineResult:
        """
        Augment, then parse a complete assistant response.

        Injection only runs when enabled and should_skip_injection does not
        object. Text that ends up without syntax is returned as one plain
        segment carrying the (possibly augmented) text.
        """
        self.event_bus.log_message('assistant', text, {
            'length': len(text),
            'hasCustomSyntax': has_parseable_syntax(text),
        })

        processed_text = text
        injections: List[Injection] = []

        if self.config.ENABLE_INJECTION and not should_skip_injection(text):
            result = inject_actions(
                text,
                self.rules,
                max_injections=self.config.MAX_INJECTIONS,
                debug=self.config.DEBUG_INJECTION,
            )
            if result.injections:
                processed_text = result.text
                injections = result.injections
                self.event_bus.log_component('ActionInjector', 'injected actions', {
                    'originalLength': len(text),
                    'injectedLength': len(processed_text),
                    'injectionsCount': len(injections),
                    'injections': [item.injection for item in injections],
                })

        segments = parse_message(processed_text, {'id': base_id, 'role': 'assistant'})
        if has_parseable_syntax(processed_text):
            self.event_bus.log_component('MessageParser', 'parsed response', {
                'originalLength': len(processed_text),
                'parsedCount': len(segments),
            })

        logger.debug(f"Assistant response processed into {len(segments)} segments ({len(injections)} injections)")
        return PipelineResult(
            segments=segments,
            text=processed_text,
            original_text=text,
            injections=injections,
        )

    async def process_stream(
        self,
        chunks: AsyncIterator[str],
        base_id: Optional[int] = None,
        url: str = 'AI API',
        request_body: Any = None,
    ) -> PipelineResult:
        """
        Collect a streamed assistant response and process it once complete.

        The stream is bracketed by an api_request / api_response pair on the
        event bus so its duration shows up in the stats.

        Raises:
            Whatever the chunk source raises, after logging it
        """
        request_id = self.event_bus.start_api_request(url, 'POST', request_body)
        parts: List[str] = []

        try:
            async for chunk in chunks:
                parts.append(chunk)
        except Exception as e:
            self.event_bus.log_api_response(request_id, 500, {'receivedLength': len(''.join(parts))}, error=e)
            self.event_bus.log_error('Failed to receive response stream', e, {'url': url})
            logger.error(f"❌ STREAM FAILED after {len(parts)} chunks: {e}")
            raise

        full_response = ''.join(parts)
        self.event_bus.log_api_response(request_id, 200, {
            'responseLength': len(full_response),
            'hasCustomSyntax': has_parseable_syntax(full_response),
            'preview': full_response[:100],
        })

        return self.process_assistant_response(full_response, base_id)

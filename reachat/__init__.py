"""
ReaChat content pipeline.

Turns conversational text into ordered content segments (plain text or
named component invocations), optionally augmenting assistant output with
keyword-driven component syntax first.

Usage:
    from reachat import inject_actions, parse_message, should_skip_injection

    text = reply if should_skip_injection(reply) else inject_actions(reply).text
    segments = parse_message(text, {'id': 1, 'role': 'assistant'})
"""

from .schemas import ContentSegment, DiagnosticEvent, DiagnosticEventType, RuleSpec
from .message_parser import (
    parse_message,
    has_parseable_syntax,
    extract_code_blocks,
    parse_table_syntax,
)
from .action_injector import (
    InjectionRule,
    InjectionResult,
    inject_actions,
    create_rule,
    should_skip_injection,
    get_rule_stats,
)
from .component_registry import (
    ComponentRegistry,
    Renderable,
    get_global_registry,
    reset_global_registry,
    register_default_components,
)
from .event_bus import DiagnosticEventBus, get_global_event_bus, reset_global_event_bus
from .content_pipeline import ContentPipeline, PipelineResult

__all__ = [
    'ContentSegment',
    'DiagnosticEvent',
    'DiagnosticEventType',
    'RuleSpec',
    'parse_message',
    'has_parseable_syntax',
    'extract_code_blocks',
    'parse_table_syntax',
    'InjectionRule',
    'InjectionResult',
    'inject_actions',
    'create_rule',
    'should_skip_injection',
    'get_rule_stats',
    'ComponentRegistry',
    'Renderable',
    'get_global_registry',
    'reset_global_registry',
    'register_default_components',
    'DiagnosticEventBus',
    'get_global_event_bus',
    'reset_global_event_bus',
    'ContentPipeline',
    'PipelineResult',
]

__version__ = "1.0.0"

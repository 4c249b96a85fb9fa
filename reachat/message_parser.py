"""
Message Parser

Turns conversational text into an ordered list of content segments: plain
text, fenced code blocks, and the bracketed inline component syntax.

Supported syntax:
- ```language\\ncode\\n```                                 CodeBlock
- [action: title | description | variant | icon:X | button:Y]  ActionCard
- [action-preview: title | description | variant]              LivePreview
- [container: variant | title | content]                       CustomContainer
- [container-preview: variant | title | content]               LivePreview
- [multi-choice: question | type | label:desc, ... | variant]  MultiChoice

Malformed syntax is never an error, it simply stays plain text.
"""

import re
import time
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .preview_html import generate_action_card_html, generate_container_html
from .schemas import ContentSegment

logger = logging.getLogger(__name__)


CODE_BLOCK_PATTERN = re.compile(r'```(\w+)?\n([\s\S]*?)```')

ACTION_PREVIEW_PATTERN = re.compile(
    r'\[action-preview:\s*([^|]+)\s*(?:\|\s*([^|]+)\s*)?(?:\|\s*(\w+)\s*)?\]'
)
ACTION_PATTERN = re.compile(
    r'\[action:\s*([^|\]]+)(?:\s*\|\s*([^|\]]+))?(?:\s*\|\s*([^|\]]+))?'
    r'(?:\s*\|\s*([^|\]]+))?(?:\s*\|\s*([^|\]]+))?\]'
)
CONTAINER_PREVIEW_PATTERN = re.compile(
    r'\[container-preview:\s*(\w+)\s*(?:\|\s*([^|]+)\s*)?(?:\|\s*([^|\]]+)\s*)?\]'
)
CONTAINER_PATTERN = re.compile(
    r'\[container:\s*(\w+)\s*(?:\|\s*([^|]+)\s*)?(?:\|\s*([^|\]]+)\s*)?\]'
)
MULTI_CHOICE_PATTERN = re.compile(
    r'\[multi-choice:\s*([^|]+)\s*(?:\|\s*([^|]+)\s*)?(?:\|\s*([^|]+)\s*)?(?:\|\s*(\w+)\s*)?\]'
)

# Detection only, looser than the extraction patterns above
SYNTAX_DETECTION_PATTERNS = [
    re.compile(r'```\w*\n[\s\S]*?```'),
    re.compile(r'\[action:\s*[^\]]+\]'),
    re.compile(r'\[action-preview:\s*[^\]]+\]'),
    re.compile(r'\[container:\s*[^\]]+\]'),
    re.compile(r'\[container-preview:\s*[^\]]+\]'),
    re.compile(r'\[multi-choice:\s*[^\]]+\]'),
]

# (component name, props, matched literal)
_ComponentMatch = Tuple[str, Dict[str, Any], str]


def _group(match: 're.Match', index: int) -> Optional[str]:
    value = match.group(index)
    return value.strip() if value is not None else None


def _base_id(base_attributes: Dict[str, Any]) -> int:
    base_id = base_attributes.get('id')
    if base_id is None:
        return int(time.time() * 1000)
    return int(base_id)


def _make_segment(
    base_attributes: Dict[str, Any],
    segment_id: int,
    text: str,
    component_name: Optional[str] = None,
    component_props: Optional[Dict[str, Any]] = None,
) -> ContentSegment:
    return ContentSegment(
        id=segment_id,
        role=base_attributes.get('role', 'assistant'),
        text=text,
        timestamp=datetime.now(),
        component_name=component_name,
        component_props=component_props,
        attachments=base_attributes.get('attachments'),
    )


def parse_message(text: str, base_attributes: Optional[Dict[str, Any]] = None) -> List[ContentSegment]:
    """
    Parse a message into ordered content segments.

    Code blocks are split out first, in order. Whatever follows the last
    code block goes through the inline component pass. Ids count up by one
    per segment from base_attributes['id'] (the current time in ms when
    absent).

    Args:
        text: Raw user input or (possibly augmented) assistant output
        base_attributes: {'id'?, 'role', 'attachments'?} copied onto segments

    Returns:
        Segments in the order their source text appears. Text without any
        syntax comes back as a single plain segment holding the input.
    """
    base_attributes = dict(base_attributes or {})
    current_id = _base_id(base_attributes)
    segments: List[ContentSegment] = []
    last_index = 0

    for match in CODE_BLOCK_PATTERN.finditer(text):
        before_text = text[last_index:match.start()].strip()
        if before_text:
            segments.append(_make_segment(base_attributes, current_id, before_text))
            current_id += 1

        segments.append(_make_segment(
            base_attributes,
            current_id,
            match.group(0),
            'CodeBlock',
            {
                'code': match.group(2).strip(),
                'language': match.group(1) or 'text',
                'showLineNumbers': True,
            },
        ))
        current_id += 1
        last_index = match.end()

    remaining_text = text[last_index:].strip()
    if remaining_text:
        inline_segments = _parse_component_syntax(remaining_text, base_attributes, current_id)
        if inline_segments:
            segments.extend(inline_segments)
        elif segments:
            segments.append(_make_segment(base_attributes, current_id, remaining_text))

    if not segments:
        return [_make_segment(base_attributes, current_id, text)]

    logger.debug(f"Parsed message into {len(segments)} segments")
    return segments


def _parse_component_syntax(
    text: str,
    base_attributes: Dict[str, Any],
    first_id: int,
) -> List[ContentSegment]:
    """
    Inline component pass over the text left after code blocks.

    Each syntax family scans the same input text; matched literals are
    removed from a working copy which becomes the leading plain segment.
    Returns an empty list when no inline syntax is present.
    """
    matches: List[_ComponentMatch] = []
    processed_text = text

    for extractor in (
        _extract_action_previews,
        _extract_actions,
        _extract_container_previews,
        _extract_containers,
        _extract_multi_choices,
    ):
        for component_name, props, literal in extractor(text):
            matches.append((component_name, props, literal))
            processed_text = processed_text.replace(literal, '', 1)

    if not matches:
        return []

    segments: List[ContentSegment] = []
    current_id = first_id

    leftover = processed_text.strip()
    if leftover:
        segments.append(_make_segment(base_attributes, current_id, leftover))
        current_id += 1

    for component_name, props, literal in matches:
        segments.append(_make_segment(base_attributes, current_id, literal, component_name, props))
        current_id += 1

    return segments


def _extract_action_previews(text: str) -> List[_ComponentMatch]:
    found = []
    for match in ACTION_PREVIEW_PATTERN.finditer(text):
        title = _group(match, 1)
        description = _group(match, 2) or ''
        variant = _group(match, 3) or 'default'
        found.append(('LivePreview', {
            'html': generate_action_card_html(title, description, variant),
            'title': f'Action Card - {variant}',
            'defaultTab': 'preview',
            'height': 200,
            'language': 'html',
        }, match.group(0)))
    return found


def _extract_actions(text: str) -> List[_ComponentMatch]:
    found = []
    for match in ACTION_PATTERN.finditer(text):
        icon_meta = _group(match, 4)
        button_meta = _group(match, 5)

        icon = icon_meta[len('icon:'):] if icon_meta and icon_meta.startswith('icon:') else None
        button_text = 'Action'
        if button_meta and button_meta.startswith('button:'):
            button_text = button_meta[len('button:'):]

        found.append(('ActionCard', {
            'title': _group(match, 1),
            'description': _group(match, 2),
            'variant': _group(match, 3) or 'default',
            'icon': icon,
            'buttonText': button_text,
        }, match.group(0)))
    return found


def _extract_container_previews(text: str) -> List[_ComponentMatch]:
    found = []
    for match in CONTAINER_PREVIEW_PATTERN.finditer(text):
        variant = _group(match, 1)
        found.append(('LivePreview', {
            'html': generate_container_html(variant, _group(match, 2) or '', _group(match, 3) or ''),
            'title': f'Container - {variant}',
            'defaultTab': 'preview',
            'height': 150,
            'language': 'html',
        }, match.group(0)))
    return found


def _extract_containers(text: str) -> List[_ComponentMatch]:
    found = []
    for match in CONTAINER_PATTERN.finditer(text):
        found.append(('CustomContainer', {
            'variant': _group(match, 1),
            'title': _group(match, 2),
            'children': _group(match, 3) or '',
        }, match.group(0)))
    return found


def _extract_multi_choices(text: str) -> List[_ComponentMatch]:
    found = []
    for match in MULTI_CHOICE_PATTERN.finditer(text):
        found.append(('MultiChoice', {
            'question': _group(match, 1),
            'options': parse_choice_options(_group(match, 3) or ''),
            'type': _group(match, 2) or 'single',
            'variant': _group(match, 4) or 'default',
        }, match.group(0)))
    return found


def parse_choice_options(options_str: str) -> List[Dict[str, Any]]:
    """
    Split "label:description, label, ..." into option dicts.

    Options split on the first colon only. Ids keep the option's position in
    the original list, options with an empty label are dropped.
    """
    options = []
    for index, raw_option in enumerate(options_str.split(',')):
        label, separator, description = raw_option.strip().partition(':')
        label = label.strip()
        if not label:
            continue
        options.append({
            'id': f'option-{index}',
            'label': label,
            'description': description.strip() if separator else None,
        })
    return options


def has_parseable_syntax(text: str) -> bool:
    """True when the text contains a code block or any inline component syntax."""
    return any(pattern.search(text) for pattern in SYNTAX_DETECTION_PATTERNS)


def extract_code_blocks(text: str) -> List[Dict[str, Any]]:
    """List every fenced code block with its language and start offset."""
    return [
        {
            'language': match.group(1) or 'text',
            'code': match.group(2).strip(),
            'index': match.start(),
        }
        for match in CODE_BLOCK_PATTERN.finditer(text)
    ]


def _table_key(header: str) -> str:
    return re.sub(r'\s+', '_', header.lower())


def _split_table_row(line: str) -> List[str]:
    return [cell.strip() for cell in line.split('|') if cell.strip()]


def parse_table_syntax(text: str) -> Optional[Dict[str, List[Dict[str, Any]]]]:
    """
    Parse a markdown pipe table into DataTable props.

    | Name | Age |
    |------|-----|
    | John | 30  |

    Returns:
        {'columns': [{'key', 'label'}], 'data': [row dicts]} or None when the
        text is not a table. Rows with the wrong number of cells are skipped.
    """
    lines = text.strip().split('\n')
    if len(lines) < 3:
        return None

    header_line = lines[0].strip()
    if not (header_line.startswith('|') and header_line.endswith('|')):
        return None
    headers = _split_table_row(header_line)

    if '---' not in lines[1]:
        return None

    data = []
    for line in lines[2:]:
        line = line.strip()
        if not (line.startswith('|') and line.endswith('|')):
            continue
        values = _split_table_row(line)
        if len(values) == len(headers):
            data.append({_table_key(header): value for header, value in zip(headers, values)})

    columns = [{'key': _table_key(header), 'label': header} for header in headers]
    return {'columns': columns, 'data': data}

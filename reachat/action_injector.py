"""
Action Injector

Augments assistant text with interactive component syntax based on keyword
rules, so a model can trigger action cards, containers and questions
without writing the syntax itself.

Rules are tried in priority order (highest first, ties keep list order)
and every rule is matched against the original text, never against the
text that earlier injections produced. The output uses the same grammar
the message parser reads, so injected text always parses back.
"""

import re
import uuid
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Sequence, Union

from .schemas import DEFAULT_RULE_PRIORITY, InjectionConfig, RuleSpec

logger = logging.getLogger(__name__)

DEFAULT_MAX_INJECTIONS = 5
MIN_INJECTABLE_LENGTH = 20
CONTAINER_FALLBACK_CONTENT = 'See details above'

SENTENCE_SPLIT_PATTERN = re.compile(r'[.!?]+')
INLINE_SYNTAX_MARKERS = ('[action:', '[container:', '[multi-choice:')


def _new_rule_id() -> str:
    return f"rule-{uuid.uuid4().hex[:12]}"


@dataclass
class InjectionRule:
    """
    Keyword patterns mapped to a component literal.

    A rule matches only when every pattern matches. rule_id identifies the
    rule for once-per-call tracking; copies that keep the id count as the
    same rule.
    """
    patterns: List[Pattern]
    type: str
    config: InjectionConfig = field(default_factory=InjectionConfig)
    position: str = 'after'
    once: bool = True
    category: Optional[str] = None
    priority: int = DEFAULT_RULE_PRIORITY
    rule_id: str = field(default_factory=_new_rule_id)

    def matches(self, text: str) -> bool:
        return all(pattern.search(text) for pattern in self.patterns)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rule_id': self.rule_id,
            'type': self.type,
            'category': self.category,
            'priority': self.priority,
            'position': self.position,
            'once': self.once,
            'patterns': [pattern.pattern for pattern in self.patterns],
            'config': self.config.model_dump(exclude_none=True),
        }


@dataclass
class Injection:
    """One applied rule and the literal it contributed."""
    rule: InjectionRule
    injection: str


@dataclass
class InjectionResult:
    text: str
    injections: List[Injection] = field(default_factory=list)

    @property
    def injected(self) -> bool:
        return bool(self.injections)


def _neutralize(value: Optional[str]) -> str:
    """Keep field values from closing or splitting the bracket syntax."""
    if not value:
        return ''
    return value.replace('|', '/').replace('[', '(').replace(']', ')')


def _variant_token(value: Optional[str], default: str) -> str:
    """Reduce a variant to the single word token the parser accepts."""
    token = re.sub(r'\W+', '_', value or '').strip('_')
    return token or default


def render_injection(rule: InjectionRule, extracted_text: Optional[str] = None) -> str:
    """Render the canonical inline syntax literal for a rule."""
    config = rule.config

    if rule.type == 'action':
        syntax = (
            f"[action: {_neutralize(config.title)} | {_neutralize(config.description)} | "
            f"{_neutralize(config.variant) or 'default'}"
        )
        if config.icon:
            syntax += f" | icon:{_neutralize(config.icon)}"
        if config.button_text:
            syntax += f" | button:{_neutralize(config.button_text)}"
        return syntax + ']'

    if rule.type == 'container':
        content = config.content or extracted_text or CONTAINER_FALLBACK_CONTENT
        return (
            f"[container: {_variant_token(config.variant, 'info')} | "
            f"{_neutralize(config.title)} | {_neutralize(content)}]"
        )

    if rule.type == 'multi-choice':
        options = ', '.join(_neutralize(option) for option in (config.options or []))
        return (
            f"[multi-choice: {_neutralize(config.question)} | {config.choice_type or 'single'} | "
            f"{options} | {_variant_token(config.variant, 'default')}]"
        )

    logger.warning(f"⚠️ INJECTOR: Unknown rule type '{rule.type}', nothing rendered")
    return ''


def extract_relevant_text(text: str, rule: InjectionRule) -> str:
    """
    Pick container content from the text that triggered the rule.

    The first sentence matching every pattern wins; otherwise the first
    100 characters are used.
    """
    for sentence in SENTENCE_SPLIT_PATTERN.split(text):
        if rule.matches(sentence):
            return sentence.strip()

    return text[:100] + ('...' if len(text) > 100 else '')


def inject_actions(
    text: str,
    rules: Optional[Sequence[InjectionRule]] = None,
    max_injections: int = DEFAULT_MAX_INJECTIONS,
    debug: bool = False,
) -> InjectionResult:
    """
    Inject component syntax into text based on matching rules.

    Args:
        text: Assistant output to augment
        rules: Rules to apply, the default catalogue when None
        max_injections: Stop once this many literals were injected
        debug: Log every match at info level

    Returns:
        InjectionResult with the augmented text and the applied injections
        in application order. Identical input always yields identical output.
    """
    if rules is None:
        from .rules import get_default_rules
        rules = get_default_rules()

    injections: List[Injection] = []
    processed_text = text
    used_rule_ids = set()

    # sorted() is stable, equal priorities keep their list order
    sorted_rules = sorted(rules, key=lambda rule: -rule.priority)

    for rule in sorted_rules:
        if rule.once and rule.rule_id in used_rule_ids:
            continue

        if len(injections) >= max_injections:
            break

        if not rule.matches(text):
            continue

        extracted_text = extract_relevant_text(text, rule) if rule.type == 'container' else None
        injection = render_injection(rule, extracted_text)
        if not injection:
            continue

        if debug:
            logger.info(f"🔍 INJECTOR: Matched rule {rule.rule_id} ({rule.category}, priority {rule.priority})")
            logger.info(f"🔍 INJECTOR: Generated injection: {injection}")

        if rule.position == 'before':
            processed_text = f"{injection}\n\n{processed_text}"
        else:
            processed_text = f"{processed_text}\n\n{injection}"

        injections.append(Injection(rule=rule, injection=injection))
        used_rule_ids.add(rule.rule_id)

    if debug and injections:
        logger.info(f"✅ INJECTOR: Total injections: {len(injections)}")

    return InjectionResult(text=processed_text, injections=injections)


def create_rule(spec: Union[RuleSpec, Dict[str, Any]]) -> InjectionRule:
    """
    Build a rule from plain keywords.

    Each keyword is escaped into a literal case-insensitive pattern. Without
    require_all only the first keyword is kept.

    Raises:
        ValidationError: If the spec is malformed (no keywords, bad type)
    """
    if not isinstance(spec, RuleSpec):
        spec = RuleSpec(**spec)

    patterns = [re.compile(re.escape(keyword), re.IGNORECASE) for keyword in spec.keywords]

    return InjectionRule(
        patterns=patterns if spec.require_all else patterns[:1],
        type=spec.type,
        config=InjectionConfig(
            title=spec.title,
            description=spec.description,
            content=spec.content,
            variant=spec.variant,
            icon=spec.icon,
            button_text=spec.button_text,
            question=spec.question,
            choice_type=spec.choice_type,
            options=spec.options,
        ),
        position=spec.position,
        once=spec.once,
        category=spec.category,
        priority=spec.priority if spec.priority is not None else DEFAULT_RULE_PRIORITY,
    )


def should_skip_injection(text: str) -> bool:
    """
    Advisory check callers run before inject_actions.

    Skips text that already carries inline syntax, very short text, and
    text that is nothing but a code block.
    """
    if any(marker in text for marker in INLINE_SYNTAX_MARKERS):
        return True

    stripped = text.strip()
    if len(stripped) < MIN_INJECTABLE_LENGTH:
        return True

    if stripped.startswith('```') and stripped.endswith('```'):
        return True

    return False


def get_rule_stats(rules: Optional[Sequence[InjectionRule]] = None) -> Dict[str, Any]:
    """Summarize a rule set (the default catalogue when None)."""
    if rules is None:
        from .rules import get_default_rules
        rules = get_default_rules()

    return {
        'total_rules': len(rules),
        'action_rules': sum(1 for rule in rules if rule.type == 'action'),
        'container_rules': sum(1 for rule in rules if rule.type == 'container'),
        'multi_choice_rules': sum(1 for rule in rules if rule.type == 'multi-choice'),
        'rules': [
            {
                'type': rule.type,
                'category': rule.category,
                'priority': rule.priority,
                'patterns': [pattern.pattern for pattern in rule.patterns],
                'config': rule.config.model_dump(exclude_none=True),
            }
            for rule in rules
        ],
    }

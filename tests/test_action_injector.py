#!/usr/bin/env python3
"""
Test Suite for the Action Injector

Covers rule ordering, the injection cap, once semantics, container text
extraction, the skip heuristic and rule construction from keywords.
"""

import logging

import pytest
from pydantic import ValidationError

from reachat.action_injector import (
    InjectionRule,
    create_rule,
    extract_relevant_text,
    get_rule_stats,
    inject_actions,
    render_injection,
    should_skip_injection,
)
from reachat.message_parser import parse_message
from reachat.rules import get_default_rules
from reachat.schemas import InjectionConfig


def action_rule(keyword, title, priority=50, **kwargs):
    return create_rule({'keywords': [keyword], 'type': 'action', 'title': title, 'priority': priority, **kwargs})


class TestInjectionOrdering:
    """Priority order, the cap and matching against the original text."""

    def test_higher_priority_first_ties_keep_list_order(self):
        rules = [
            action_rule('deploy', 'A', priority=10),
            action_rule('deploy', 'B', priority=90),
            action_rule('deploy', 'C', priority=50),
            action_rule('deploy', 'D', priority=90),
        ]
        result = inject_actions("We can deploy this right now.", rules)

        titles = [item.rule.config.title for item in result.injections]
        assert titles == ['B', 'D', 'C', 'A']

    def test_max_injections_caps_output(self):
        rules = [
            action_rule('deploy', 'Low', priority=10),
            action_rule('deploy', 'High', priority=90),
            action_rule('deploy', 'Mid', priority=50),
        ]
        result = inject_actions("We can deploy this right now.", rules, max_injections=1)

        assert len(result.injections) == 1
        assert result.injections[0].rule.config.title == 'High'

    def test_zero_max_injections_leaves_text_alone(self):
        text = "We can deploy this right now."
        result = inject_actions(text, [action_rule('deploy', 'Go')], max_injections=0)

        assert result.text == text
        assert not result.injected

    def test_rules_match_original_text_only(self):
        rules = [
            action_rule('alpha', 'beta card', priority=90),
            action_rule('beta', 'Never', priority=10),
        ]
        result = inject_actions("alpha only text here", rules)

        assert [item.rule.config.title for item in result.injections] == ['beta card']

    def test_deterministic_output(self):
        rules = [action_rule('report', 'Download'), action_rule('export', 'Export')]
        text = "Export the report when ready."

        first = inject_actions(text, rules)
        second = inject_actions(text, rules)

        assert first.text == second.text
        assert [i.injection for i in first.injections] == [i.injection for i in second.injections]


class TestInjectionPlacement:
    """Literals are appended or prepended with a blank line."""

    def test_after_appends(self):
        text = "We can deploy this right now."
        result = inject_actions(text, [action_rule('deploy', 'Deploy', description='Ship it', variant='success')])

        assert result.text == text + "\n\n[action: Deploy | Ship it | success]"

    def test_before_prepends(self):
        rule = create_rule({
            'keywords': ['careful'],
            'type': 'container',
            'variant': 'warning',
            'title': 'Heads up',
            'content': 'Mind the gap',
            'position': 'before',
        })
        text = "Be careful with this command."
        result = inject_actions(text, [rule])

        assert result.text == "[container: warning | Heads up | Mind the gap]\n\n" + text

    def test_once_rule_injects_once(self):
        rule = action_rule('deploy', 'Deploy')
        result = inject_actions("We can deploy this right now.", [rule, rule])
        assert len(result.injections) == 1

    def test_repeatable_rule_injects_per_occurrence_in_list(self):
        rule = action_rule('deploy', 'Deploy', once=False)
        result = inject_actions("We can deploy this right now.", [rule, rule])
        assert len(result.injections) == 2


class TestRenderInjection:
    """Literal rendering for each rule type."""

    def test_action_with_icon_and_button(self):
        rule = action_rule('x', 'Login', description='Sign in', variant='primary', icon='🔑', button_text='Sign In')
        assert render_injection(rule) == "[action: Login | Sign in | primary | icon:🔑 | button:Sign In]"

    def test_action_variant_defaults(self):
        assert render_injection(action_rule('x', 'Go')) == "[action: Go |  | default]"

    def test_multi_choice(self):
        rule = create_rule({
            'keywords': ['plan'],
            'type': 'multi-choice',
            'question': 'Which plan?',
            'choice_type': 'multiple',
            'options': ['Basic', 'Pro:Advanced'],
            'variant': 'primary',
        })
        assert render_injection(rule) == "[multi-choice: Which plan? | multiple | Basic, Pro:Advanced | primary]"

    def test_container_fallback_content(self):
        rule = create_rule({'keywords': ['x'], 'type': 'container', 'variant': 'tip', 'title': 'Tip'})
        assert render_injection(rule) == "[container: tip | Tip | See details above]"

    def test_field_values_cannot_break_syntax(self):
        rule = action_rule('x', 'A | B [x]')
        literal = render_injection(rule)

        assert literal == "[action: A / B (x) |  | default]"
        segments = parse_message(literal, {'id': 1, 'role': 'assistant'})
        assert segments[0].component_props['title'] == 'A / B (x)'

    def test_unknown_type_renders_nothing(self, caplog):
        rule = InjectionRule(patterns=[], type='carousel', config=InjectionConfig(title='x'))
        with caplog.at_level(logging.WARNING):
            assert render_injection(rule) == ''
        assert "Unknown rule type" in caplog.text


class TestContainerExtraction:
    """Container content comes from the sentence that triggered the rule."""

    def test_matching_sentence_is_used(self):
        rule = create_rule({'keywords': ['failed'], 'type': 'container'})
        result = inject_actions("All good so far. The upload failed badly! Retry later.", [rule])

        assert result.injections[0].injection == "[container: info |  | The upload failed badly]"

    def test_falls_back_to_text_prefix(self):
        rule = create_rule({'keywords': ['alpha', 'omega'], 'type': 'container', 'require_all': True})
        text = "alpha is first. then omega comes."

        assert extract_relevant_text(text, rule) == text

    def test_long_prefix_is_truncated(self):
        rule = create_rule({'keywords': ['alpha', 'omega'], 'type': 'container', 'require_all': True})
        text = "alpha. " + "x" * 200 + " omega"

        extracted = extract_relevant_text(text, rule)
        assert extracted == text[:100] + '...'

    def test_fixed_content_wins(self):
        rule = create_rule({'keywords': ['failed'], 'type': 'container', 'content': 'Fixed'})
        result = inject_actions("The upload failed badly.", [rule])
        assert result.injections[0].injection == "[container: info |  | Fixed]"


class TestInjectedTextParses:
    """Whatever the injector writes, the parser reads back."""

    def test_multi_choice_round_trip(self):
        rule = create_rule({
            'keywords': ['continue'],
            'type': 'multi-choice',
            'question': 'Continue?',
            'options': ['Yes:Sure', 'No'],
        })
        result = inject_actions("Do you want to continue with setup?", [rule])
        segments = parse_message(result.text, {'id': 1, 'role': 'assistant'})

        choice = [s for s in segments if s.component_name == 'MultiChoice'][0]
        assert [o['label'] for o in choice.component_props['options']] == ['Yes', 'No']
        assert choice.component_props['type'] == 'single'

    def test_hyphenated_container_variant_round_trip(self):
        rule = create_rule({'keywords': ['failed'], 'type': 'container', 'variant': 'info-box', 'title': 'T'})
        result = inject_actions("The upload failed badly today.", [rule])

        assert result.injections[0].injection == "[container: info_box | T | The upload failed badly today]"
        container = parse_message(result.text, {'id': 1, 'role': 'assistant'})[-1]
        assert container.component_name == 'CustomContainer'
        assert container.component_props['variant'] == 'info_box'

    def test_hyphenated_multi_choice_variant_round_trip(self):
        rule = create_rule({
            'keywords': ['continue'],
            'type': 'multi-choice',
            'question': 'Continue?',
            'options': ['Yes', 'No'],
            'variant': 'brand-primary',
        })
        result = inject_actions("Do you want to continue with setup?", [rule])
        choice = parse_message(result.text, {'id': 1, 'role': 'assistant'})[-1]

        assert choice.component_name == 'MultiChoice'
        assert choice.component_props['variant'] == 'brand_primary'

    def test_variant_without_word_characters_falls_back(self):
        rule = create_rule({'keywords': ['x'], 'type': 'container', 'variant': '!!!', 'title': 'T', 'content': 'C'})
        assert render_injection(rule) == "[container: info | T | C]"

    def test_every_default_rule_parses(self):
        expected = {'action': 'ActionCard', 'container': 'CustomContainer', 'multi-choice': 'MultiChoice'}
        for rule in get_default_rules():
            literal = render_injection(rule)
            segments = parse_message(literal, {'id': 1, 'role': 'assistant'})

            assert len(segments) == 1, literal
            assert segments[0].component_name == expected[rule.type], literal


class TestDefaultRules:
    """The bundled catalogue."""

    def test_login_text(self):
        text = "Please log in to continue with your order today."
        result = inject_actions(text)

        assert [i.injection for i in result.injections] == [
            "[action: Login | Sign in to your account | primary | icon:🔑 | button:Sign In]"
        ]
        assert result.text.startswith(text + "\n\n")

    def test_rule_stats(self):
        stats = get_rule_stats()

        assert stats['total_rules'] == 38
        assert stats['action_rules'] == 28
        assert stats['container_rules'] == 4
        assert stats['multi_choice_rules'] == 6
        assert len(stats['rules']) == 38

    def test_debug_logging(self, caplog):
        caplog.set_level(logging.INFO, logger="reachat.action_injector")
        inject_actions("Please log in to continue with your order today.", debug=True)

        assert "Matched rule" in caplog.text
        assert "Total injections: 1" in caplog.text


class TestCreateRule:
    """Rules built from plain keywords."""

    def test_defaults(self):
        rule = create_rule({'keywords': ['deploy'], 'type': 'action', 'title': 'Deploy'})

        assert rule.priority == 50
        assert rule.once is True
        assert rule.position == 'after'
        assert len(rule.patterns) == 1

    def test_explicit_zero_priority_is_kept(self):
        assert action_rule('x', 'X', priority=0).priority == 0

    def test_keywords_are_literal_and_case_insensitive(self):
        rule = create_rule({'keywords': ['c++'], 'type': 'action', 'title': 'Docs'})

        assert rule.matches("I love C++ a lot")
        assert not rule.matches("I love c a lot")

    def test_only_first_keyword_without_require_all(self):
        rule = create_rule({'keywords': ['export', 'csv'], 'type': 'action', 'title': 'Export'})

        assert rule.matches("export only")
        assert not rule.matches("csv only")

    def test_require_all(self):
        rule = create_rule({'keywords': ['export', 'csv'], 'type': 'action', 'title': 'Export', 'require_all': True})

        assert not rule.matches("export only")
        assert rule.matches("Export it as CSV")

    @pytest.mark.parametrize("spec", [
        {'keywords': [], 'type': 'action'},
        {'keywords': [''], 'type': 'action'},
        {'keywords': ['x'], 'type': 'banner'},
        {'keywords': ['x'], 'type': 'action', 'position': 'middle'},
    ])
    def test_invalid_specs(self, spec):
        with pytest.raises(ValidationError):
            create_rule(spec)

    def test_rule_ids_are_unique(self):
        assert action_rule('x', 'A').rule_id != action_rule('x', 'A').rule_id


class TestShouldSkipInjection:
    """Advisory skip heuristic."""

    @pytest.mark.parametrize("text", [
        "[container: info | x]",
        "Pay now [action: Pay]",
        "[multi-choice: Q | single | A]",
        "short",
        "   padded but short    ",
        "```py\nprint('a reasonably long line')\n```",
    ])
    def test_skipped(self, text):
        assert should_skip_injection(text) is True

    def test_prose_is_not_skipped(self):
        assert should_skip_injection("This is a normal sentence that is long enough.") is False

"""
Injection rule catalogues for the action injector.

The bundled default_rules.yaml holds the default rule set; a different
catalogue can be configured through REACHAT_RULES_FILE.
"""

from .rule_catalog import (
    RuleCatalog,
    RuleDefinitionError,
    DEFAULT_RULES_FILE,
    load_rule_catalog,
    get_default_rules,
    clear_rule_cache,
)

__all__ = [
    'RuleCatalog',
    'RuleDefinitionError',
    'DEFAULT_RULES_FILE',
    'load_rule_catalog',
    'get_default_rules',
    'clear_rule_cache',
]

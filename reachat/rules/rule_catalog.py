"""
Rule Catalogue Loader

Loads injection rules from YAML, validates each entry against the
RuleDefinition schema and compiles its patterns case-insensitively.
Loaded catalogues are cached per file.
"""

import re
import yaml
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from ..action_injector import InjectionRule
from ..schemas import RuleDefinition

logger = logging.getLogger(__name__)

DEFAULT_RULES_FILE = Path(__file__).parent / "default_rules.yaml"


class RuleDefinitionError(ValueError):
    """Raised when a rule catalogue can not be read at all."""


class RuleCatalog:
    """
    Injection rule catalogue backed by a YAML file.

    A broken file is a configuration error and raises; a single broken rule
    is logged and skipped so the rest of the catalogue stays usable.
    """

    def __init__(self, rules_file: Optional[Union[str, Path]] = None):
        self.rules_file = Path(rules_file) if rules_file else DEFAULT_RULES_FILE
        self._rules: List[InjectionRule] = []
        self._load_rules()

    def _load_rules(self) -> None:
        """
        Load and validate rules from the YAML file.

        Raises:
            RuleDefinitionError: If the file is missing, malformed, or has
                no 'rules' list
        """
        if not self.rules_file.exists():
            raise RuleDefinitionError(f"Rules file not found: {self.rules_file}")

        try:
            with open(self.rules_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error in {self.rules_file}: {e}")
            raise RuleDefinitionError(f"Malformed rules file {self.rules_file}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get('rules'), list):
            raise RuleDefinitionError(f"Invalid rules file {self.rules_file}: missing 'rules' list")

        for index, rule_data in enumerate(data['rules']):
            try:
                self._rules.append(self._compile(RuleDefinition(**rule_data)))
            except (ValidationError, TypeError, re.error) as e:
                logger.error(f"Failed to load rule #{index} from {self.rules_file}: {e}")
                continue

        logger.info(f"Successfully loaded {len(self._rules)} injection rules from {self.rules_file.name}")

    @staticmethod
    def _compile(definition: RuleDefinition) -> InjectionRule:
        return InjectionRule(
            patterns=[re.compile(source, re.IGNORECASE) for source in definition.patterns],
            type=definition.type,
            config=definition.config,
            position=definition.position,
            once=definition.once,
            category=definition.category,
            priority=definition.priority,
        )

    @staticmethod
    def _copy(rule: InjectionRule) -> InjectionRule:
        # rule_id is kept, a copy still counts as the same rule for once tracking
        return replace(rule, patterns=list(rule.patterns), config=rule.config.model_copy(deep=True))

    @property
    def rules(self) -> List[InjectionRule]:
        """Copies of the catalogue rules in file order, edits never reach the cached catalogue."""
        return [self._copy(rule) for rule in self._rules]

    def get_rules_by_category(self, category: str) -> List[InjectionRule]:
        return [self._copy(rule) for rule in self._rules if rule.category == category]

    def list_categories(self) -> List[str]:
        return sorted({rule.category for rule in self._rules if rule.category})


_catalog_cache: Dict[Path, RuleCatalog] = {}


def load_rule_catalog(rules_file: Optional[Union[str, Path]] = None) -> RuleCatalog:
    """Load (or reuse) the catalogue for a file, the bundled one by default."""
    path = Path(rules_file) if rules_file else DEFAULT_RULES_FILE
    if path not in _catalog_cache:
        _catalog_cache[path] = RuleCatalog(path)
    return _catalog_cache[path]


def get_default_rules() -> List[InjectionRule]:
    """Rules from the configured catalogue (REACHAT_RULES_FILE or the bundled file)."""
    from ..config import get_pipeline_config
    return load_rule_catalog(get_pipeline_config().RULES_FILE).rules


def clear_rule_cache() -> None:
    _catalog_cache.clear()

import os

import pytest

from reachat.component_registry import reset_global_registry
from reachat.config import config_manager
from reachat.event_bus import reset_global_event_bus
from reachat.rules import clear_rule_cache


def _reset_process_state():
    config_manager._config = None
    reset_global_registry()
    reset_global_event_bus()
    clear_rule_cache()


@pytest.fixture(autouse=True)
def isolated_pipeline_state(monkeypatch):
    """Every test starts with empty registry, empty event log and default config."""
    for key in list(os.environ):
        if key.startswith("REACHAT_"):
            monkeypatch.delenv(key, raising=False)
    _reset_process_state()
    yield
    _reset_process_state()

#!/usr/bin/env python3
"""
Test Suite for the Component Registry
"""

import logging

from reachat.component_registry import (
    BUILTIN_COMPONENTS,
    ComponentDescriptorRenderer,
    ComponentRegistry,
    Renderable,
    get_global_registry,
    register_default_components,
    reset_global_registry,
)
from reachat.schemas import ContentSegment


def segment(component_name=None, props=None):
    return ContentSegment(id=1, role='assistant', text='x', component_name=component_name, component_props=props)


class TestRegistration:
    """Register, look up and remove renderers."""

    def test_register_and_get(self):
        registry = ComponentRegistry()
        renderer = object()
        registry.register("ActionCard", renderer)

        assert registry.get("ActionCard") is renderer
        assert registry.has("ActionCard")
        assert "ActionCard" in registry
        assert len(registry) == 1

    def test_names_are_case_sensitive(self):
        registry = ComponentRegistry()
        registry.register("ActionCard", object())

        assert registry.get("actioncard") is None
        assert not registry.has("actioncard")

    def test_overwrite_warns_and_replaces(self, caplog):
        registry = ComponentRegistry()
        first, second = object(), object()
        registry.register("List", first)

        with caplog.at_level(logging.WARNING, logger="reachat.component_registry"):
            registry.register("List", second)

        assert registry.get("List") is second
        assert 'Component "List" is already registered' in caplog.text
        assert registry.list() == ["List"]

    def test_unregister(self):
        registry = ComponentRegistry()
        registry.register("List", None)

        assert registry.unregister("List") is True
        assert registry.unregister("List") is False
        assert registry.get("List") is None

    def test_list_keeps_registration_order_and_clear(self):
        registry = ComponentRegistry()
        for name in ("B", "A", "C"):
            registry.register(name, object())

        assert registry.list() == ["B", "A", "C"]
        registry.clear()
        assert registry.list() == []


class TestResolveAndRender:
    """Segments resolve through the registry."""

    def test_plain_segment_resolves_to_none(self):
        registry = register_default_components(ComponentRegistry())
        assert registry.resolve(segment()) is None
        assert registry.render(segment()) is None

    def test_unknown_component_resolves_to_none(self):
        registry = register_default_components(ComponentRegistry())
        assert registry.resolve(segment("Carousel", {})) is None
        assert registry.render(segment("Carousel", {})) is None

    def test_descriptor_renderer(self):
        registry = register_default_components(ComponentRegistry())
        rendered = registry.render(segment("ActionCard", {'title': 'Go'}))

        assert rendered == {"component": "ActionCard", "props": {'title': 'Go'}}

    def test_plain_callable_renderer(self):
        registry = ComponentRegistry()
        registry.register("Badge", lambda props: f"<badge>{props['label']}</badge>")

        assert registry.render(segment("Badge", {'label': 'new'})) == "<badge>new</badge>"

    def test_non_renderable_entry(self):
        registry = ComponentRegistry()
        registry.register("Broken", 42)
        assert registry.render(segment("Broken", {})) is None

    def test_descriptor_is_renderable(self):
        assert isinstance(ComponentDescriptorRenderer("List"), Renderable)


class TestDefaultsAndGlobal:
    """Built-in registrations and the process-wide registry."""

    def test_builtin_components(self):
        registry = register_default_components(ComponentRegistry())

        assert registry.list() == BUILTIN_COMPONENTS
        assert len(registry) == 8
        for name in ("CodeBlock", "ActionCard", "LivePreview", "CustomContainer", "MultiChoice"):
            assert name in registry

    def test_global_registry_is_shared(self):
        assert get_global_registry() is get_global_registry()

    def test_reset_global_registry(self):
        first = get_global_registry()
        register_default_components()
        assert len(first) == 8

        reset_global_registry()
        second = get_global_registry()
        assert second is not first
        assert len(second) == 0

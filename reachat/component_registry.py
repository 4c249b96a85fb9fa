"""
Component Registry

Resolves component names found on parsed content segments to renderers.
The registry never inspects what it stores: a renderer is an opaque
capability handed to the rendering layer. Unknown names resolve to None.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .schemas import ContentSegment

logger = logging.getLogger(__name__)


BUILTIN_COMPONENTS = [
    "CodeBlock",
    "ActionCard",
    "DataTable",
    "CustomContainer",
    "RadioGroup",
    "List",
    "LivePreview",
    "MultiChoice",
]


@runtime_checkable
class Renderable(Protocol):
    """Capability interface for anything that can draw a component."""

    def render(self, props: Dict[str, Any]) -> Any:
        ...


class ComponentDescriptorRenderer:
    """
    Renders a component as a plain descriptor for a front end to draw.

    The backend does not own presentation, it only says which component to
    mount with which props.
    """

    def __init__(self, name: str):
        self.name = name

    def render(self, props: Dict[str, Any]) -> Dict[str, Any]:
        return {"component": self.name, "props": dict(props or {})}

    def __repr__(self) -> str:
        return f"ComponentDescriptorRenderer({self.name!r})"


class ComponentRegistry:
    """Case-sensitive name to renderer mapping, last registration wins."""

    def __init__(self):
        self._components: Dict[str, Any] = {}

    def register(self, name: str, renderer: Any) -> None:
        """Register a renderer, overwriting (with a warning) an existing entry."""
        if name in self._components:
            logger.warning(f"⚠️ Component \"{name}\" is already registered. Overwriting...")
        self._components[name] = renderer

    def get(self, name: str) -> Optional[Any]:
        return self._components.get(name)

    def unregister(self, name: str) -> bool:
        """Remove a renderer, returns False when the name was not registered."""
        if name not in self._components:
            return False
        del self._components[name]
        return True

    def has(self, name: str) -> bool:
        return name in self._components

    def list(self) -> List[str]:
        return list(self._components.keys())

    def clear(self) -> None:
        self._components.clear()

    def resolve(self, segment: ContentSegment) -> Optional[Any]:
        """
        Find the renderer for a segment.

        Plain text segments and unknown component names both resolve to
        None so the caller can fall back to text rendering.
        """
        if not segment.component_name:
            return None
        renderer = self._components.get(segment.component_name)
        if renderer is None:
            logger.debug(f"No renderer registered for component '{segment.component_name}'")
        return renderer

    def render(self, segment: ContentSegment) -> Optional[Any]:
        """Render a segment through its registered renderer, None when unresolved."""
        renderer = self.resolve(segment)
        if renderer is None:
            return None
        if isinstance(renderer, Renderable):
            return renderer.render(segment.component_props or {})
        if callable(renderer):
            return renderer(segment.component_props or {})
        logger.debug(f"Renderer for '{segment.component_name}' is not renderable: {renderer!r}")
        return None

    def __len__(self) -> int:
        return len(self._components)

    def __contains__(self, name: str) -> bool:
        return self.has(name)


def register_default_components(registry: Optional[ComponentRegistry] = None) -> ComponentRegistry:
    """Register descriptor renderers for every built-in component name."""
    registry = registry if registry is not None else get_global_registry()
    for name in BUILTIN_COMPONENTS:
        registry.register(name, ComponentDescriptorRenderer(name))
    logger.info(f"✅ Registered {len(BUILTIN_COMPONENTS)} built-in components")
    return registry


# Global instance shared across the process
_global_registry: Optional[ComponentRegistry] = None


def get_global_registry() -> ComponentRegistry:
    """Get the global component registry instance"""
    global _global_registry
    if _global_registry is None:
        _global_registry = ComponentRegistry()
    return _global_registry


def reset_global_registry() -> None:
    """Drop the global registry so the next access starts empty"""
    global _global_registry
    _global_registry = None

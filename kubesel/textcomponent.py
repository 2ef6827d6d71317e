"""Composable pieces of printable text that render to a string."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

__all__ = [
    "Component",
    "BasicComponent",
    "Renderer",
    "NEWLINE",
    "LinePrefix",
    "Trim",
    "Sequence",
    "Text",
]

_ANSI_RESET = "\x1b[0m"


class Component(ABC):
    """An abstract unit of printable text."""

    @abstractmethod
    def simplify(self, renderer: Renderer) -> list[BasicComponent]:
        """Flatten the component into a list of basic components."""


class BasicComponent(Component):
    """A component that renders directly: a newline or a piece of text."""

    @abstractmethod
    def render(self, renderer: Renderer) -> None:
        """Write the component to the renderer."""


class Renderer:
    """Renders components into a string, caching their simplified forms."""

    def __init__(self) -> None:
        self._cache: dict[int, tuple[Component, list[BasicComponent]]] = {}
        self._parts: list[str] = []

    def render(self, component: Component) -> None:
        """Render a component to the output."""
        if isinstance(component, BasicComponent):
            component.render(self)
            return
        for basic in component.simplify(self):
            basic.render(self)

    def write(self, text: str) -> None:
        """Append raw text to the output."""
        self._parts.append(text)

    def simplify(self, component: Component) -> list[BasicComponent]:
        """Return the simplified form of a component, computing it once."""
        cached = self._cache.get(id(component))
        if cached is None:
            cached = (component, component.simplify(self))
            self._cache[id(component)] = cached
        return cached[1]

    def getvalue(self) -> str:
        """Return everything rendered so far."""
        return "".join(self._parts)

    def __str__(self) -> str:
        return self.getvalue()


class _NewlineType(BasicComponent):
    def render(self, renderer: Renderer) -> None:
        renderer.write("\n")

    def simplify(self, renderer: Renderer) -> list[BasicComponent]:
        return [self]

    def __repr__(self) -> str:
        return "NEWLINE"


NEWLINE = _NewlineType()
"""A component that inserts a line break."""


@dataclass
class Text(BasicComponent):
    """A string of text, optionally preceded by an ANSI colour sequence."""

    text: str = ""
    color: str = ""

    def render(self, renderer: Renderer) -> None:
        if not self.color:
            renderer.write(self.text)
        else:
            renderer.write(self.color)
            renderer.write(self.text)
            renderer.write(_ANSI_RESET)

    def simplify(self, renderer: Renderer) -> list[BasicComponent]:
        """Split the text into lines separated by NEWLINE."""
        if "\n" not in self.text:
            return [self]

        lines = self.text.split("\n")
        last = len(lines) - 1
        split: list[BasicComponent] = []
        for index, line in enumerate(lines):
            if index > 0:
                split.append(NEWLINE)
            if index == last and line == "":
                break
            split.append(Text(text=line, color=self.color))
        return split


@dataclass
class Sequence(Component):
    """An ordered sequence of child components."""

    children: list[Component] = field(default_factory=list)

    def append(self, *children: Component) -> None:
        """Add children to the end of the sequence."""
        self.children.extend(children)

    def simplify(self, renderer: Renderer) -> list[BasicComponent]:
        result: list[BasicComponent] = []
        for child in self.children:
            result.extend(renderer.simplify(child))
        return result


@dataclass
class LinePrefix(Component):
    """Puts a prefix at the start of each line of its child."""

    prefix: Optional[Component] = None
    child: Optional[Component] = None

    def simplify(self, renderer: Renderer) -> list[BasicComponent]:
        if self.child is None:
            return []
        if self.prefix is None:
            return renderer.simplify(self.child)

        prefix = renderer.simplify(self.prefix)
        if not prefix:
            return renderer.simplify(self.child)

        children = renderer.simplify(self.child)
        if not children:
            return children

        components: list[BasicComponent] = list(prefix)
        for child in children:
            components.append(child)
            if child is NEWLINE:
                components.extend(prefix)
        return components


@dataclass
class Trim(Component):
    """Removes leading and/or trailing newlines from its child."""

    child: Optional[Component] = None
    leading: bool = False
    trailing: bool = False

    def simplify(self, renderer: Renderer) -> list[BasicComponent]:
        if self.child is None:
            return []
        children = renderer.simplify(self.child)

        if self.leading:
            start = next(
                (i for i, child in enumerate(children) if child is not NEWLINE), None
            )
            if start is None:
                return []
            children = children[start:]

        if self.trailing:
            end = next(
                (
                    i + 1
                    for i in range(len(children) - 1, -1, -1)
                    if children[i] is not NEWLINE
                ),
                0,
            )
            children = children[:end]

        return children
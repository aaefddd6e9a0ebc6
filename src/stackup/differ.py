"""Structural diff of a stack's live state against a planned definition.

Each section (Template, Parameters, Tags) is serialized to a canonical
pretty-printed form and compared line by line. Parameters and tags are
sorted by key first, so key order in the inputs never shows up as a change.
"""

from __future__ import annotations

import difflib
import html
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import click

from .documents import render
from .exceptions import UsageError
from .parameters import format_value, is_use_previous_value

SORTED_SECTIONS = ("Parameters", "Tags")


class DiffStyle(str, Enum):
    """How a diff is rendered."""

    TEXT = "text"
    COLOR = "color"
    HTML = "html"


@dataclass
class DiffView:
    """
    One side of a comparison.

    A section left as None is absent and is not compared.

    Attributes:
        template: Template document
        parameters: Parameter mapping
        tags: Tag mapping
    """

    template: Any = None
    parameters: dict[str, Any] | None = None
    tags: dict[str, Any] | None = None

    def sections(self) -> dict[str, Any]:
        """Present sections, in Template/Parameters/Tags order."""
        candidates = (
            ("Template", self.template),
            ("Parameters", self.parameters),
            ("Tags", self.tags),
        )
        return {name: value for name, value in candidates if value is not None}

    def is_empty(self) -> bool:
        return not self.sections()


def serialize(section: str, document: Any, fmt: str = "yaml") -> str:
    """Render one section in canonical form."""
    if section in SORTED_SECTIONS:
        document = {key: format_value(value) for key, value in sorted((document or {}).items())}
    return render(document, fmt)


def _resolve_previous_values(planned: dict[str, Any], current: dict[str, Any]) -> dict[str, Any]:
    """
    Replace "keep previous value" markers with the value they would keep.

    A marker with no current value keeps nothing, so its key is dropped.
    """
    resolved: dict[str, Any] = {}
    for key, value in planned.items():
        if not is_use_previous_value(value):
            resolved[key] = value
        elif key in current:
            resolved[key] = current[key]
    return resolved


def section_diff(
    section: str,
    current: Any,
    planned: Any,
    fmt: str = "yaml",
    context: int = 3,
) -> list[str]:
    """
    Unified diff lines for one section (empty if identical).

    Args:
        section: "Template", "Parameters" or "Tags"
        current: Live document (None if the stack does not exist)
        planned: Planned document
        fmt: Serialization format ("yaml" or "json")
        context: Unchanged lines shown around each change
    """
    if section == "Parameters" and planned:
        planned = _resolve_previous_values(planned, current or {})
    current_text = serialize(section, current, fmt) if current is not None else ""
    planned_text = serialize(section, planned, fmt)
    return list(
        difflib.unified_diff(
            current_text.splitlines(),
            planned_text.splitlines(),
            fromfile=f"current/{section}",
            tofile=f"planned/{section}",
            n=context,
            lineterm="",
        )
    )


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class BaseFormatter(Protocol):
    """Protocol for diff formatters."""

    def format(self, lines: list[str]) -> str:
        """
        Format unified diff lines into output string.

        Args:
            lines: Lines produced by ``section_diff``

        Returns:
            Rendered diff
        """
        ...


class TextFormatter:
    """Plain unified diff."""

    def format(self, lines: list[str]) -> str:
        return "".join(f"{line}\n" for line in lines)


class ColorFormatter:
    """Unified diff with ANSI colors."""

    def format(self, lines: list[str]) -> str:
        out = []
        for line in lines:
            if line.startswith(("---", "+++")):
                out.append(click.style(line, bold=True))
            elif line.startswith("@@"):
                out.append(click.style(line, fg="cyan"))
            elif line.startswith("+"):
                out.append(click.style(line, fg="green"))
            elif line.startswith("-"):
                out.append(click.style(line, fg="red"))
            else:
                out.append(line)
        return "".join(f"{line}\n" for line in out)


class HtmlFormatter:
    """HTML list, one ``<li>`` per line (``ins``/``del``/``unchanged``)."""

    def format(self, lines: list[str]) -> str:
        if not lines:
            return ""
        out = ['<div class="diff">', "  <ul>"]
        for line in lines:
            if line.startswith(("---", "+++", "@@")):
                out.append(f'    <li class="header"><span>{html.escape(line)}</span></li>')
            elif line.startswith("+"):
                out.append(f'    <li class="ins"><ins>{html.escape(line[1:])}</ins></li>')
            elif line.startswith("-"):
                out.append(f'    <li class="del"><del>{html.escape(line[1:])}</del></li>')
            else:
                out.append(
                    f'    <li class="unchanged"><span>{html.escape(line[1:])}</span></li>'
                )
        out.extend(["  </ul>", "</div>"])
        return "\n".join(out) + "\n"


def get_formatter(style: DiffStyle | str) -> BaseFormatter:
    """
    Get formatter instance for the requested style.

    Raises:
        UsageError: If the style is unknown
    """
    try:
        style = DiffStyle(style)
    except ValueError:
        choices = ", ".join(s.value for s in DiffStyle)
        raise UsageError(f"Unknown diff style {style!r}; expected one of {choices}") from None
    if style == DiffStyle.COLOR:
        return ColorFormatter()
    if style == DiffStyle.HTML:
        return HtmlFormatter()
    return TextFormatter()


def diff(
    current: DiffView,
    planned: DiffView,
    style: DiffStyle | str = DiffStyle.TEXT,
    fmt: str = "yaml",
    context: int = 3,
) -> str:
    """
    Compare the sections present in ``planned`` against ``current``.

    Returns:
        Rendered diff; empty string if nothing differs

    Raises:
        UsageError: If ``planned`` has no sections to compare
    """
    if planned.is_empty():
        raise UsageError("Nothing to diff: specify a template, parameters or tags")
    formatter = get_formatter(style)
    current_sections = current.sections()
    lines: list[str] = []
    for section, planned_doc in planned.sections().items():
        lines.extend(
            section_diff(section, current_sections.get(section), planned_doc, fmt, context)
        )
    return formatter.format(lines)

"""Loading and rendering of YAML/JSON documents.

Templates, parameter files, tag files and stack policies are all plain
YAML or JSON (JSON is valid YAML). CloudFormation's short-form intrinsic
tags (``!Ref``, ``!GetAtt``, ``!Sub`` ...) are expanded to their long form
so a loaded template compares equal to the one CloudFormation hands back.
"""

from __future__ import annotations

import json
from collections import OrderedDict
from pathlib import Path
from typing import Any

import yaml

from .exceptions import UsageError

RENDER_FORMATS = ("yaml", "json")


class TemplateLoader(yaml.SafeLoader):
    """SafeLoader that understands CloudFormation short-form tags."""


def _construct_intrinsic(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Any:
    if tag_suffix == "Ref":
        key = "Ref"
    elif tag_suffix == "Condition":
        key = "Condition"
    else:
        key = f"Fn::{tag_suffix}"

    if isinstance(node, yaml.ScalarNode):
        value: Any = loader.construct_scalar(node)
        if tag_suffix == "GetAtt":
            value = value.split(".", 1)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    else:
        value = loader.construct_mapping(node, deep=True)
    return {key: value}


TemplateLoader.add_multi_constructor("!", _construct_intrinsic)


class _BlockDumper(yaml.SafeDumper):
    """SafeDumper that indents block sequences under their parent key."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> Any:
        return super().increase_indent(flow, False)


# boto3 decodes JSON template bodies into OrderedDicts.
_BlockDumper.add_representer(
    OrderedDict, lambda dumper, data: dumper.represent_dict(dict(data))
)


def parse_document(text: str) -> Any:
    """Parse a YAML or JSON string."""
    return yaml.load(text, Loader=TemplateLoader)  # noqa: S506


def load_document(path: str | Path) -> Any:
    """
    Load a YAML or JSON document from ``path``.

    Raises:
        UsageError: If the file does not exist or cannot be parsed
    """
    path = Path(path)
    try:
        text = path.read_text()
    except FileNotFoundError:
        raise UsageError(f"File not found: {path}") from None
    try:
        return parse_document(text)
    except yaml.YAMLError as e:
        raise UsageError(f"Cannot parse {path}: {e}") from e


def parse_template_body(body: Any) -> Any:
    """
    Normalize a ``get_template`` TemplateBody into a structure.

    boto3 already decodes JSON bodies; YAML bodies arrive as strings.
    """
    if isinstance(body, str):
        return parse_document(body)
    return body


def render(document: Any, fmt: str = "yaml") -> str:
    """
    Render a document as ``yaml`` (block style, key order kept) or ``json``.

    Raises:
        UsageError: For an unknown format
    """
    if fmt == "json":
        return json.dumps(document, indent=2, default=str) + "\n"
    if fmt == "yaml":
        return yaml.dump(
            document,
            Dumper=_BlockDumper,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
    raise UsageError(f"Unknown format {fmt!r}; expected one of {', '.join(RENDER_FORMATS)}")

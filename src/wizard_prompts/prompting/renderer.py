"""Handlebars-style template rendering.

Rendering is a fixed sequence of rewrite passes:

1. ``{{name}}`` / ``{{a.b.c}}`` substitution against the variable bag.
2. ``{{#each arr}}...{{/each}}`` expansion.
3. ``{{#unless @last}}...{{/unless}}`` unwrapping.

Unresolved placeholders stay in the output as literal text.
"""

from __future__ import annotations

import re
from typing import Any, Dict

from ..utils import MISSING, get_nested_value, json_dumps
from .types import TemplateError

_VARIABLE_RE = re.compile(r"\{\{([\w.]+)\}\}")
_EACH_RE = re.compile(r"\{\{#each\s+(\w+)\}\}([\s\S]*?)\{\{/each\}\}")
_UNLESS_LAST_RE = re.compile(r"\{\{#unless\s+@last\}\}([\s\S]*?)\{\{/unless\}\}")
_BLOCK_TAG_RE = re.compile(r"\{\{([#/])(each|unless)\b[^}]*\}\}")

NAME_FIELDS = ("name_localized", "name", "cause_name", "symptom_name", "property_name")
EXPLANATION_FIELDS = ("explanation_localized", "explanation", "description")


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (dict, list, tuple)):
        return json_dumps(value)
    return str(value)


def _format_list_item(item: Any) -> str:
    if isinstance(item, dict):
        name = next((item[k] for k in NAME_FIELDS if item.get(k)), "Item")
        explanation = next((item[k] for k in EXPLANATION_FIELDS if item.get(k)), "")
        return f"{name}: {explanation}" if explanation else str(name)
    return _format_scalar(item)


def format_value(value: Any) -> str:
    """Stringifies a resolved variable for inclusion in a prompt."""
    if isinstance(value, (list, tuple)):
        return "\n- ".join(_format_list_item(item) for item in value)
    if isinstance(value, dict):
        return ", ".join(f"{key}: {_format_scalar(val)}" for key, val in value.items())
    return _format_scalar(value)


def check_blocks(template: str) -> None:
    """Raises TemplateError for unterminated or stray block tags."""
    stack: list[tuple[str, str]] = []
    for match in _BLOCK_TAG_RE.finditer(template):
        marker, block = match.group(1), match.group(2)
        if marker == "#":
            stack.append((block, match.group(0)))
            continue
        if not stack or stack[-1][0] != block:
            raise TemplateError(f"Unexpected {match.group(0)} at offset {match.start()}")
        stack.pop()
    if stack:
        raise TemplateError(f"Unterminated block {stack[-1][1]}")


def _substitute_variables(template: str, variables: Dict[str, Any]) -> str:
    def _replace(match: re.Match) -> str:
        value = get_nested_value(variables, match.group(1))
        if value is MISSING:
            return match.group(0)
        return format_value(value)

    return _VARIABLE_RE.sub(_replace, template)


def _expand_loops(template: str, variables: Dict[str, Any]) -> str:
    def _replace(match: re.Match) -> str:
        array_name, body = match.group(1), match.group(2)
        items = variables.get(array_name)
        if not isinstance(items, (list, tuple)):
            return match.group(0)

        last = len(items) - 1
        blocks = []
        for index, item in enumerate(items):
            block = body.replace("{{this}}", _format_scalar(item))
            block = block.replace("{{@index}}", str(index))
            block = block.replace("{{@last}}", _format_scalar(index == last))
            if isinstance(item, dict):
                for key, val in item.items():
                    block = block.replace("{{" + str(key) + "}}", _format_scalar(val))
            blocks.append(block)
        return "".join(blocks)

    return _EACH_RE.sub(_replace, template)


def _unwrap_unless_last(template: str) -> str:
    # Content is always kept; per-iteration @last tracking is not implemented.
    return _UNLESS_LAST_RE.sub(lambda m: m.group(1), template)


def render_template(template: str, variables: Dict[str, Any] | None = None) -> str:
    check_blocks(template)
    variables = variables or {}
    rendered = _substitute_variables(template, variables)
    rendered = _expand_loops(rendered, variables)
    return _unwrap_unless_last(rendered)

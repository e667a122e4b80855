"""
Template rendering for generated declarations.

Templates are Jinja2 templates using delimiters that occur in neither Go
nor Python source, so literal output and template syntax never collide:

    <% if fields %> ... <% endif %>     statements
    <: type_name(spec) :>               expressions
    <# note #>                          comments
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping
from typing import Any

import jinja2

from .errors import TemplateError

TEMPLATE_SYNTAX = {
    "block_start_string": "<%",
    "block_end_string": "%>",
    "variable_start_string": "<:",
    "variable_end_string": ":>",
    "comment_start_string": "<#",
    "comment_end_string": "#>",
}


def _checked(name: str, function: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap a template function so it refuses values missing from the data."""

    @functools.wraps(function)
    def call(*args, **kwargs):
        for value in (*args, *kwargs.values()):
            if isinstance(value, jinja2.Undefined):
                raise TemplateError(f"{name}() called with a value that is not in the template data")
        return function(*args, **kwargs)

    return call


class TemplateRenderer:
    """Renders templates against a data context and a function table."""

    def __init__(self):
        self.jinja_env = jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            **TEMPLATE_SYNTAX,
        )

    def render(self, source: str, data: Any, functions: Mapping[str, Callable[..., Any]]) -> str:
        """Render a template.

        The data is available to the template as ``data``; when it is a
        mapping its keys are also top-level variables. A key named like a
        function does not hide the function.

        Args:
            source: Template source
            data: Template data
            functions: Functions callable from the template

        Returns:
            The rendered text

        Raises:
            TemplateError: If the template is malformed or uses data that
                is not in the context
        """
        try:
            template = self.jinja_env.from_string(source)
        except jinja2.TemplateSyntaxError as e:
            raise TemplateError(f"invalid template at line {e.lineno}: {e.message}") from e

        context: dict[str, Any] = {}
        if isinstance(data, Mapping):
            context.update(data)
        # Functions win over data keys of the same name
        context.update((name, _checked(name, function)) for name, function in functions.items())
        context["data"] = data

        try:
            return template.render(context)
        except jinja2.TemplateError as e:
            raise TemplateError(f"could not render template: {e}") from e

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from uritemplate import URITemplate


TEMPLATE_PARAM = "__template__"

_OPERATORS = "+#./;?&"
_VARNAME = r"(?:[A-Za-z0-9_]|%[0-9A-Fa-f]{2})(?:\.?(?:[A-Za-z0-9_]|%[0-9A-Fa-f]{2}))*"
_VARSPEC_RE = re.compile(
    rf"^(?P<name>{_VARNAME})(?:(?::(?P<prefix>[1-9][0-9]{{0,3}}))|(?P<explode>\*))?(?:=(?P<default>[^,]*))?$"
)


class InvalidTemplateError(ValueError):
    """Raised when a string is not a syntactically valid URI Template."""

    def __init__(self, template: str | None, reason: str) -> None:
        self.template = template
        self.reason = reason
        super().__init__(f"Invalid URI template {template!r}: {reason}")


@dataclass(frozen=True)
class TemplateVariable:
    name: str
    default: str | None = None


def is_url(text: str) -> bool:
    """True when ``text`` is an absolute URL carrying both a scheme and a host."""
    try:
        parts = urlsplit(text)
        host = parts.hostname
    except ValueError:
        return False
    return bool(parts.scheme) and bool(host)


def _expressions(text: str) -> list[str]:
    expressions: list[str] = []
    start: int | None = None
    for index, char in enumerate(text):
        if char == "{":
            if start is not None:
                raise InvalidTemplateError(text, f"nested '{{' at offset {index}")
            start = index
        elif char == "}":
            if start is None:
                raise InvalidTemplateError(text, f"unmatched '}}' at offset {index}")
            expressions.append(text[start + 1 : index])
            start = None
    if start is not None:
        raise InvalidTemplateError(text, f"unclosed '{{' at offset {start}")
    return expressions


def _validate_expression(template: str, expression: str) -> None:
    if not expression:
        raise InvalidTemplateError(template, "empty expression '{}'")

    body = expression[1:] if expression[0] in _OPERATORS else expression
    if not body:
        raise InvalidTemplateError(template, f"expression '{{{expression}}}' names no variable")

    for varspec in body.split(","):
        if not _VARSPEC_RE.match(varspec):
            raise InvalidTemplateError(template, f"invalid variable specification `{varspec}`")


def parse_template(text: str | None) -> URITemplate:
    if not text:
        raise InvalidTemplateError(text, "template is empty")

    for expression in _expressions(text):
        _validate_expression(text, expression)
    return URITemplate(text)


def template_variables(text: str) -> list[TemplateVariable]:
    """Variables of ``text`` in first-occurrence order, with embedded defaults.

    Invalid templates have no variables.
    """
    try:
        template = parse_template(text)
    except InvalidTemplateError:
        return []

    seen: dict[str, TemplateVariable] = {}
    for variable in template.variables:
        for name in variable.variable_names:
            if name not in seen:
                seen[name] = TemplateVariable(name=name, default=variable.defaults.get(name))
    return list(seen.values())


def is_template(text: str) -> bool:
    return bool(template_variables(text))


def uses_reserved_name(text: str) -> bool:
    """True when the template names a variable that collides with the form's template field."""
    return any(variable.name == TEMPLATE_PARAM for variable in template_variables(text))

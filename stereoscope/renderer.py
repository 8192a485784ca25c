from __future__ import annotations

import json

from stereoscope.classifier import RenderStrategy, classify
from stereoscope.config import DEFAULT_EXPAND_PATH
from stereoscope.detection import TEMPLATE_PARAM, template_variables
from stereoscope.fragments import Element, Fragment, element
from stereoscope.json_types import JsonArray, JsonObject, JsonValue


def render(value: JsonValue, *, expand_path: str = DEFAULT_EXPAND_PATH) -> Fragment:
    """Render a JSON value as an HTML fragment tree.

    Objects become definition lists, uniform arrays of objects become tables,
    other arrays become ordered lists, absolute URLs become links and URI
    Templates become forms posting to ``expand_path``.
    """

    strategy = classify(value)
    if strategy is RenderStrategy.mapping:
        return _render_mapping(value, expand_path=expand_path)
    if strategy is RenderStrategy.table:
        return _render_table(value, expand_path=expand_path)
    if strategy is RenderStrategy.list:
        return _render_list(value, expand_path=expand_path)
    if strategy is RenderStrategy.link:
        return element("a", value, href=value)
    if strategy is RenderStrategy.template_form:
        return _render_template_form(value, expand_path=expand_path)
    if strategy is RenderStrategy.plain_text:
        return _render_plain_text(value)
    return element("span", json.dumps(value, ensure_ascii=False))


def _render_mapping(data: JsonObject, *, expand_path: str) -> Element:
    items: list[Fragment] = []
    for key, value in data.items():
        items.append(element("dt", render(str(key), expand_path=expand_path)))
        items.append(element("dd", render(value, expand_path=expand_path)))
    return element("dl", *items)


def _render_table(rows: JsonArray, *, expand_path: str) -> Element:
    headers = list(rows[0].keys())
    head = element(
        "thead",
        element("tr", *(element("th", render(header, expand_path=expand_path)) for header in headers)),
    )
    body = element(
        "tbody",
        *(
            element("tr", *(element("td", render(row[key], expand_path=expand_path)) for key in headers))
            for row in rows
        ),
    )
    return element("table", head, body)


def _render_list(items: JsonArray, *, expand_path: str) -> Element:
    return element("ol", *(element("li", render(item, expand_path=expand_path)) for item in items))


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    while lines and not lines[-1]:
        lines.pop()
    return lines


def _render_plain_text(text: str) -> Element:
    children: list[Fragment] = []
    for line in _split_lines(text):
        children.append(element("span", line))
        children.append(element("br"))
    return element("div", *children)


def _render_template_form(text: str, *, expand_path: str) -> Element:
    fields = [
        element(
            "div",
            element(
                "label",
                f"{variable.name}: ",
                element("input", type="text", name=variable.name, value=variable.default),
            ),
            class_="url-template-variable",
        )
        for variable in template_variables(text)
    ]
    form = element(
        "form",
        element("input", type="hidden", name=TEMPLATE_PARAM, value=text),
        *fields,
        element("input", type="submit"),
        method="GET",
        action=expand_path,
    )
    return element("div", element("p", text), form, class_="url-template-form")

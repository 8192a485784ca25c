from __future__ import annotations

from enum import Enum

from stereoscope.detection import is_template, is_url, uses_reserved_name
from stereoscope.json_types import JsonValue


class RenderStrategy(str, Enum):
    mapping = "mapping"
    table = "table"
    list = "list"
    link = "link"
    template_form = "template_form"
    plain_text = "plain_text"
    scalar = "scalar"


def is_tabular(value: JsonValue) -> bool:
    """
    An array renders as a table when every element is an object and every
    element shares the first element's keys in the same order.

    A single-object array is tabular; an empty array is not.
    """

    if not isinstance(value, list) or not value:
        return False
    if not all(isinstance(item, dict) for item in value):
        return False

    header = list(value[0].keys())
    return all(list(item.keys()) == header for item in value[1:])


def classify(value: JsonValue) -> RenderStrategy:
    if isinstance(value, dict):
        return RenderStrategy.mapping

    if isinstance(value, list):
        return RenderStrategy.table if is_tabular(value) else RenderStrategy.list

    if isinstance(value, str):
        if is_url(value):
            if is_template(value) and not uses_reserved_name(value):
                return RenderStrategy.template_form
            return RenderStrategy.link
        return RenderStrategy.plain_text

    return RenderStrategy.scalar

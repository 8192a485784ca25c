from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias, Union

from markupsafe import Markup, escape


VOID_ELEMENTS = frozenset({"br", "hr", "img", "input", "meta", "link"})


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Element:
    tag: str
    attrs: tuple[tuple[str, str], ...] = ()
    children: tuple["Fragment", ...] = ()


Fragment: TypeAlias = Union[Element, Text]


def element(tag: str, *children: Fragment | str, **attrs: object) -> Element:
    """
    Build an element. Plain strings become text nodes, attributes set to
    ``None`` are left out and a trailing underscore is stripped from keyword
    names so ``class_="x"`` renders as ``class="x"``.
    """

    normalized_children = tuple(Text(child) if isinstance(child, str) else child for child in children)
    normalized_attrs = tuple(
        (name.removesuffix("_"), str(value)) for name, value in attrs.items() if value is not None
    )
    return Element(tag=tag, attrs=normalized_attrs, children=normalized_children)


def to_html(fragment: Fragment) -> Markup:
    if isinstance(fragment, Text):
        return escape(fragment.value)

    rendered_attrs = "".join(
        Markup(' {}="{}"').format(Markup(name), value) for name, value in fragment.attrs
    )
    opening = Markup("<{}{}>").format(Markup(fragment.tag), Markup(rendered_attrs))
    if fragment.tag in VOID_ELEMENTS:
        return opening

    inner = Markup("").join(to_html(child) for child in fragment.children)
    return opening + inner + Markup("</{}>").format(Markup(fragment.tag))

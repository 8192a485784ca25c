from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from bs4 import BeautifulSoup, Doctype
from jinja2 import BaseLoader, Environment
from markupsafe import Markup

from stereoscope.config import DEFAULT_EXPAND_PATH
from stereoscope.fragments import element, to_html
from stereoscope.json_types import JsonValue
from stereoscope.renderer import render


logger = logging.getLogger("stereoscope.page")

JSON_MEDIA_TYPE = "application/json"
TEXT_MEDIA_TYPE = "text/plain"
NO_CONTENT_PLACEHOLDER = "(No content)"

_PAGE_TEMPLATE = """<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>{{ meta.path }}</title>
</head>
<body>
  <h1>{{ meta.status_code }} {{ meta.url }}</h1>
  <h2>Headers</h2>
  <div>{{ headers_html }}</div>
  {% if has_content %}
  <h2>Response:</h2>
  {{ response_html }}
  {% else %}
  <p>{{ no_content }}</p>
  {% endif %}
  <h2>Raw:</h2>
  <tt><pre>{{ raw_text }}</pre></tt>
</body>
</html>
"""

_env = Environment(loader=BaseLoader(), autoescape=True)
_page_template = _env.from_string(_PAGE_TEMPLATE)


@dataclass(frozen=True)
class ResponseMetadata:
    status_code: int
    headers: dict[str, str]
    content_type: str
    body: bytes
    path: str
    url: str


@dataclass(frozen=True)
class ParsedBody:
    value: JsonValue = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class _Sections:
    response_html: Markup
    raw_text: str


def media_type(content_type: str | None) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def _charset(content_type: str | None) -> str:
    for parameter in (content_type or "").split(";")[1:]:
        name, _, value = parameter.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')
    return "utf-8"


def decode_body(body: bytes, content_type: str | None) -> str:
    try:
        return body.decode(_charset(content_type), errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


def parse_json_body(text: str) -> ParsedBody:
    try:
        return ParsedBody(value=json.loads(text))
    except json.JSONDecodeError as exc:
        return ParsedBody(error=str(exc))


def extract_body_markup(text: str) -> Markup:
    """
    Inner markup of the document's ``<body>``.

    Documents without a ``<body>`` element lose their doctype, ``<head>`` and
    ``<html>`` wrapper; whatever remains is the body.
    """

    soup = BeautifulSoup(text, "html.parser")
    if soup.body is not None:
        return Markup(soup.body.decode_contents())

    for node in list(soup.contents):
        if isinstance(node, Doctype):
            node.extract()
    if soup.head is not None:
        soup.head.decompose()
    for tag in soup.find_all(["title", "base", "meta"]):
        tag.decompose()
    if soup.html is not None:
        return Markup(soup.html.decode_contents())
    return Markup(soup.decode())


def _json_sections(
    meta: ResponseMetadata, text: str, parsed: ParsedBody, *, expand_path: str, json_indent: int
) -> _Sections:
    if not parsed.ok:
        logger.warning("malformed_json_body path=%s error=%s", meta.path, parsed.error)
        notice = element(
            "div",
            element("p", f"Could not parse JSON: {parsed.error}", class_="stereoscope-error"),
            element("pre", text),
        )
        return _Sections(response_html=to_html(notice), raw_text=text)

    rendered = to_html(element("div", render(parsed.value, expand_path=expand_path)))
    raw_text = json.dumps(parsed.value, indent=json_indent, ensure_ascii=False)
    return _Sections(response_html=rendered, raw_text=raw_text)


def build_page(
    meta: ResponseMetadata,
    parsed_body: ParsedBody | None = None,
    *,
    expand_path: str = DEFAULT_EXPAND_PATH,
    json_indent: int = 2,
) -> str:
    """
    Assemble the exploration page for a downstream response.

    ``parsed_body`` is only consulted for JSON responses; when omitted the
    body is parsed here.
    """

    text = decode_body(meta.body, meta.content_type)
    kind = media_type(meta.content_type)

    if not meta.body:
        sections = _Sections(response_html=Markup(""), raw_text="")
    elif kind == JSON_MEDIA_TYPE:
        if parsed_body is None:
            parsed_body = parse_json_body(text)
        sections = _json_sections(meta, text, parsed_body, expand_path=expand_path, json_indent=json_indent)
    elif kind == TEXT_MEDIA_TYPE:
        sections = _Sections(response_html=to_html(element("p", text)), raw_text=text)
    else:
        sections = _Sections(response_html=extract_body_markup(text), raw_text=text)

    headers_html = to_html(render(dict(meta.headers), expand_path=expand_path))
    return _page_template.render(
        meta=meta,
        headers_html=headers_html,
        has_content=bool(meta.body),
        response_html=sections.response_html,
        no_content=NO_CONTENT_PLACEHOLDER,
        raw_text=sections.raw_text,
    )

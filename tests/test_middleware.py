from __future__ import annotations

import pytest
from bs4 import BeautifulSoup
from fastapi import FastAPI
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from fastapi.testclient import TestClient

import stereoscope.main as app_main
from stereoscope.config import DEFAULT_EXPAND_PATH, Settings
from stereoscope.middleware import StereoscopeMiddleware

_HTML = {"Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"}
_JSON = {"Accept": "application/json"}


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.delenv("STEREOSCOPE_ENABLED", raising=False)
    monkeypatch.delenv("STEREOSCOPE_EXPAND_PATH", raising=False)
    with TestClient(app_main.app) as test_client:
        yield test_client


def _build_app(*, with_stereoscope: bool) -> FastAPI:
    app = FastAPI()
    if with_stereoscope:
        app.add_middleware(StereoscopeMiddleware, settings=Settings())

    @app.get("/json")
    def json_payload() -> dict[str, object]:
        return {"b": [1, 2.5, None], "a": "http://example.org/{id}", "é": True}

    @app.get("/text")
    def text() -> PlainTextResponse:
        return PlainTextResponse("hello\nworld", headers={"X-Custom": "1"})

    @app.get("/page")
    def page() -> HTMLResponse:
        return HTMLResponse("<html><head><title>x</title></head><body><p id='inner'>hi</p></body></html>")

    @app.get("/broken")
    def broken() -> Response:
        return Response(content=b"{not json", media_type="application/json")

    @app.get("/empty")
    def empty() -> Response:
        return Response(status_code=204)

    @app.get("/cookies")
    def cookies() -> Response:
        response = Response(content=b"[]", media_type="application/json")
        response.set_cookie("a", "1")
        response.set_cookie("b", "2")
        return response

    return app


@pytest.fixture()
def custom_client() -> TestClient:
    with TestClient(_build_app(with_stereoscope=True)) as test_client:
        yield test_client


@pytest.fixture()
def bare_client() -> TestClient:
    with TestClient(_build_app(with_stereoscope=False)) as test_client:
        yield test_client


def _soup(response) -> BeautifulSoup:
    return BeautifulSoup(response.text, "html.parser")


def test_non_html_clients_get_untouched_json(client: TestClient) -> None:
    plain = client.get("/associations")
    negotiated = client.get("/associations", headers=_JSON)

    assert plain.headers["content-type"] == "application/json"
    assert plain.content == negotiated.content
    assert plain.json() == {"foo": "bar", "baz": "buz"}


def test_wildcard_accept_does_not_activate(client: TestClient) -> None:
    response = client.get("/list", headers={"Accept": "*/*"})
    assert response.headers["content-type"] == "application/json"
    assert response.json() == ["Item 1", "Item 2", "Item 3"]


def test_html_clients_get_exploration_page(client: TestClient) -> None:
    response = client.get("/associations", headers=_HTML)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")

    soup = _soup(response)
    assert soup.title.get_text() == "/associations"
    assert soup.find("h1").get_text() == "200 http://testserver/associations"

    body_dl = soup.find("h2", string="Response:").find_next_sibling("div").find("dl")
    assert [child.get_text() for child in body_dl.find_all(["dt", "dd"], recursive=False)] == [
        "foo",
        "bar",
        "baz",
        "buz",
    ]


def test_index_links_are_clickable(client: TestClient) -> None:
    soup = _soup(client.get("/", headers=_HTML))
    hrefs = {anchor["href"] for anchor in soup.find_all("a")}
    assert "http://testserver/list" in hrefs
    assert "http://testserver/tabular" in hrefs


def test_tabular_endpoint_renders_table(client: TestClient) -> None:
    soup = _soup(client.get("/tabular", headers=_HTML))
    table = soup.find("table")
    assert [th.get_text() for th in table.find_all("th")] == ["id", "name", "date"]
    assert len(table.find("tbody").find_all("tr", recursive=False)) == 3


def test_uri_template_form_round_trip(client: TestClient) -> None:
    soup = _soup(client.get("/uri_template", headers=_HTML))
    form = soup.find("form")
    assert form["action"] == DEFAULT_EXPAND_PATH
    template = form.find("input", type="hidden")["value"]
    assert template == "http://testserver/foo/{subpath}?param1={param1}&param2={param2}"

    redirect = client.get(
        form["action"],
        params={"__template__": template, "subpath": "x", "param1": "1", "param2": "2"},
        headers=_HTML,
        follow_redirects=False,
    )
    assert redirect.status_code == 302
    assert redirect.headers["location"] == "http://testserver/foo/x?param1=1&param2=2"

    followed = client.get(redirect.headers["location"], headers=_JSON)
    assert followed.json() == {"param1": "1", "param2": "2", "splat": ["x"]}


def test_expansion_endpoint_rejects_invalid_template(client: TestClient) -> None:
    response = client.get(
        DEFAULT_EXPAND_PATH,
        params={"__template__": "http://testserver/{oops"},
        headers=_HTML,
        follow_redirects=False,
    )
    assert response.status_code == 400
    assert "Invalid URI template" in response.json()["detail"]


def test_expansion_endpoint_requires_template_parameter(client: TestClient) -> None:
    response = client.get(DEFAULT_EXPAND_PATH, headers=_HTML, follow_redirects=False)
    assert response.status_code == 400


def test_expansion_endpoint_is_inactive_for_non_html_clients(client: TestClient) -> None:
    response = client.get(DEFAULT_EXPAND_PATH, params={"__template__": "/foo/{x}"}, headers=_JSON)
    assert response.status_code == 404


def test_downstream_status_is_preserved(client: TestClient) -> None:
    response = client.get("/missing", headers=_HTML)
    assert response.status_code == 404
    assert response.headers["content-type"].startswith("text/html")
    assert _soup(response).find("h1").get_text().startswith("404 ")


def test_disabled_middleware_passes_through(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STEREOSCOPE_ENABLED", "0")
    response = client.get("/associations", headers=_HTML)
    assert response.json() == {"foo": "bar", "baz": "buz"}


def test_request_id_is_propagated(client: TestClient) -> None:
    response = client.get("/health", headers={**_HTML, "X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_plain_text_response_keeps_headers(custom_client: TestClient) -> None:
    response = custom_client.get("/text", headers=_HTML)

    assert response.headers["content-type"].startswith("text/html")
    assert response.headers["X-Custom"] == "1"

    soup = _soup(response)
    header_terms = [dt.get_text() for dt in soup.find("dl").find_all("dt")]
    assert "x-custom" in header_terms
    assert soup.find("pre").get_text() == "hello\nworld"


def test_html_response_is_embedded(custom_client: TestClient) -> None:
    soup = _soup(custom_client.get("/page", headers=_HTML))
    assert soup.find(id="inner").get_text() == "hi"
    assert soup.title.get_text() == "/page"


def test_malformed_json_is_reported_not_raised(custom_client: TestClient) -> None:
    response = custom_client.get("/broken", headers=_HTML)
    assert response.status_code == 200
    assert "Could not parse JSON" in response.text


def test_bodyless_responses_pass_through(custom_client: TestClient) -> None:
    response = custom_client.get("/empty", headers=_HTML)
    assert response.status_code == 204
    assert response.content == b""


def test_repeated_headers_survive_presentation(custom_client: TestClient) -> None:
    response = custom_client.get("/cookies", headers=_HTML)
    cookies = response.headers.get_list("set-cookie")
    assert [cookie.split(";")[0] for cookie in cookies] == ["a=1", "b=2"]
    assert response.headers["content-type"].startswith("text/html")


@pytest.mark.parametrize("accept", ["application/json", None, "*/*", "text/html;q=0"])
@pytest.mark.parametrize("path", ["/json", "/text", "/page", "/broken", "/cookies", "/missing"])
def test_non_html_clients_get_the_wrapped_app_output_unchanged(
    custom_client: TestClient, bare_client: TestClient, accept: str | None, path: str
) -> None:
    for test_client in (custom_client, bare_client):
        test_client.headers.pop("accept", None)
        if accept is not None:
            test_client.headers["accept"] = accept

    wrapped = custom_client.get(path)
    bare = bare_client.get(path)

    assert wrapped.status_code == bare.status_code
    assert wrapped.content == bare.content
    assert wrapped.headers.multi_items() == bare.headers.multi_items()

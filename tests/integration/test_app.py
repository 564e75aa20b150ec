"""
End-to-end tests: controllers served through the FastAPI application.
"""

import sys
import textwrap
from xml.etree.ElementTree import Element, SubElement

import pytest
from fastapi.testclient import TestClient

from actionkit import (
    CONTINUE,
    ActionContext,
    ActionRedirect,
    Controller,
    Error,
    ETagSupport,
    Html,
    Json,
    NoContent,
    NotFound,
    Ok,
    Redirect,
    RenderDefaults,
    RequireHeader,
    Unauthorized,
    Xml,
    action,
    before,
    build_app,
)
from actionkit.core.common.exceptions import ConfigurationError
from actionkit.core.controllers.registry import ControllerRegistry
from actionkit.core.di.container import ServiceCollection


class ArticleRepository:
    def __init__(self) -> None:
        self._articles = {1: "Hello world"}

    def get(self, id: int) -> str | None:
        return self._articles.get(id)

    def add(self, title: str) -> int:
        new_id = max(self._articles) + 1
        self._articles[new_id] = title
        return new_id

    def delete(self, id: int) -> None:
        self._articles.pop(id, None)


class Articles(Controller):
    capabilities = (RenderDefaults(site="News"),)

    def __init__(self, repo: ArticleRepository) -> None:
        self.repo = repo

    @action
    def index(self, ctx: ActionContext, page: int = 1):
        return f"<h1>{ctx.render_args['site']}</h1><p>page {page}</p>"

    @action
    def show(self, id: int):
        title = self.repo.get(id)
        if title is None:
            return NotFound("Article not found")
        return Html(f"<h1>{title}</h1>")

    @action
    def create(self, title: str):
        return ActionRedirect.to(Articles.show, id=self.repo.add(title))

    @action
    def delete(self, id: int):
        self.repo.delete(id)
        return NoContent

    @action
    def feed(self, id: int):
        root = Element("feed")
        SubElement(root, "title").text = self.repo.get(id) or ""
        return Xml(root)


class Admin(Controller):
    capabilities = (RequireHeader("x-user", otherwise=Unauthorized("Admin")),)

    @before
    def only_admins(self, ctx):
        if ctx.request.header("x-user") != "admin":
            return ActionRedirect.to("Articles.index")
        return CONTINUE

    @action
    def index(self):
        return Html("admin area")


class Status(Controller):
    @action
    def ready(self):
        return Error(503, "Not ready yet…")

    @action
    def ok(self):
        return Ok

    @action
    def moved(self):
        return Redirect("http://x", False)

    @action
    def crash(self):
        raise RuntimeError("boom")


class Api(Controller):
    capabilities = (ETagSupport,)

    @action
    def article(self, id: int):
        return Json({"id": id, "title": "Hello world"})


ROUTES = [
    {"method": "GET", "path": "/articles", "action": "Articles.index"},
    {"method": "POST", "path": "/articles", "action": "Articles.create"},
    {"method": "GET", "path": "/articles/{id:int}", "action": "Articles.show"},
    {"method": "DELETE", "path": "/articles/{id:int}", "action": "Articles.delete"},
    {"method": "GET", "path": "/articles/{id:int}/feed", "action": "Articles.feed"},
    {"method": "GET", "path": "/admin", "action": "Admin.index"},
    {"method": "GET", "path": "/status", "action": "Status.ready"},
    {"method": "GET", "path": "/status/ok", "action": "Status.ok"},
    {"method": "GET", "path": "/status/moved", "action": "Status.moved"},
    {"method": "GET", "path": "/status/crash", "action": "Status.crash"},
    {"method": "GET", "path": "/api/articles/{id:int}", "action": "Api.article"},
]


def _services() -> ServiceCollection:
    services = ServiceCollection()
    services.add_singleton(ArticleRepository)
    services.add_singleton(Articles)
    return services


@pytest.fixture
def app():
    return build_app(
        {"routes": ROUTES, "logging": {"request_logging": True}},
        controllers=[Articles, Admin, Status, Api],
        services=_services(),
    )


@pytest.fixture
def client(app) -> TestClient:
    with TestClient(app, follow_redirects=False) as client:
        yield client


class TestResults:
    def test_raw_string_with_render_defaults(self, client):
        response = client.get("/articles?page=2")
        assert response.status_code == 200
        assert response.headers["content-type"] == "text/html; charset=utf-8"
        assert response.text == "<h1>News</h1><p>page 2</p>"

    def test_not_found_with_message(self, client):
        response = client.get("/articles/99")
        assert response.status_code == 404
        assert "Article not found" in response.text

    def test_xml(self, client):
        response = client.get("/articles/1/feed")
        assert response.headers["content-type"] == "text/xml; charset=utf-8"
        assert response.text == "<feed><title>Hello world</title></feed>"

    def test_ok_is_empty_200(self, client):
        response = client.get("/status/ok")
        assert response.status_code == 200
        assert response.content == b""

    def test_temporary_redirect(self, client):
        response = client.get("/status/moved")
        assert response.status_code == 302
        assert response.headers["location"] == "http://x"

    def test_error_with_custom_status(self, client):
        response = client.get("/status")
        assert response.status_code == 503
        assert "Not ready yet…" in response.text

    def test_unhandled_exception_is_500(self, client):
        response = client.get("/status/crash")
        assert response.status_code == 500
        assert "boom" not in response.text


class TestActionsAndRedirects:
    def test_create_redirects_to_new_article(self, client):
        response = client.post("/articles", data={"title": "Second"})
        assert response.status_code == 302
        assert response.headers["location"] == "/articles/2"
        assert client.get("/articles/2").text == "<h1>Second</h1>"

    def test_json_body_binding(self, client):
        response = client.post("/articles", json={"title": "Third"})
        assert response.status_code == 302

    def test_delete_is_no_content(self, client):
        response = client.delete("/articles/1")
        assert response.status_code == 204
        assert client.get("/articles/1").status_code == 404

    def test_head_has_no_body(self, client):
        response = client.head("/articles/1")
        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["content-length"] == str(len("<h1>Hello world</h1>"))


class TestInterceptors:
    def test_missing_header_is_unauthorized_with_realm(self, client):
        response = client.get("/admin")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == 'Basic realm="Admin"'

    def test_interceptor_redirect_by_name(self, client):
        response = client.get("/admin", headers={"x-user": "guest"})
        assert response.status_code == 302
        assert response.headers["location"] == "/articles"

    def test_action_runs_when_interceptors_continue(self, client):
        response = client.get("/admin", headers={"x-user": "admin"})
        assert response.status_code == 200
        assert response.text == "admin area"

    def test_conditional_get(self, client):
        first = client.get("/api/articles/1")
        assert first.status_code == 200
        assert first.json() == {"id": 1, "title": "Hello world"}
        etag = first.headers["etag"]

        second = client.get("/api/articles/1", headers={"If-None-Match": etag})
        assert second.status_code == 304
        assert second.headers["etag"] == etag
        assert second.content == b""


class TestRoutingFailures:
    def test_unknown_path(self, client):
        response = client.get("/nothing/here")
        assert response.status_code == 404
        assert response.text == "GET /nothing/here"

    def test_wrong_method(self, client):
        response = client.put("/articles/1")
        assert response.status_code == 405
        assert response.headers["allow"] == "DELETE, GET"

    def test_invalid_argument_is_bad_request(self, client):
        assert client.get("/articles?page=abc").status_code == 400

    def test_missing_argument_is_bad_request(self, client):
        assert client.post("/articles", data={}).status_code == 400

    def test_malformed_json_is_bad_request(self, client):
        response = client.post(
            "/articles",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 400
        assert "Malformed JSON" in response.text


class TestApplicationBuilder:
    def test_registry_is_frozen_after_build(self, app):
        registry = app.state.service_provider.get_required_service(ControllerRegistry)
        assert registry.frozen
        assert "Articles.show" in registry.action_ids()

    def test_declared_controllers_from_configured_modules(
        self, tmp_path, monkeypatch
    ):
        module_name = "declared_pages_for_tests"
        (tmp_path / f"{module_name}.py").write_text(
            textwrap.dedent(
                """
                from actionkit import Controller, Text, action, controller


                @controller
                class Pages(Controller):
                    @action
                    def about(self):
                        return Text("about us")
                """
            ),
            encoding="utf-8",
        )
        monkeypatch.syspath_prepend(str(tmp_path))
        monkeypatch.delitem(sys.modules, module_name, raising=False)

        app = build_app(
            {
                "controllers": [module_name],
                "routes": [{"path": "/about", "action": "Pages.about"}],
            }
        )

        with TestClient(app) as client:
            response = client.get("/about")
        assert response.status_code == 200
        assert response.text == "about us"
        monkeypatch.delitem(sys.modules, module_name, raising=False)

    def test_unknown_controller_module(self):
        with pytest.raises(ConfigurationError):
            build_app({"controllers": ["no.such.module"]})

    def test_custom_charset(self):
        app = build_app(
            {
                "results": {"charset": "latin-1"},
                "routes": [{"path": "/articles/{id:int}", "action": "Articles.show"}],
            },
            controllers=[Articles],
            services=_services(),
        )
        with TestClient(app) as client:
            response = client.get("/articles/1")
        assert response.headers["content-type"] == "text/html; charset=latin-1"

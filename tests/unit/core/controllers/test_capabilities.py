"""
Tests for the bundled capability sets.
"""

import pytest

from actionkit.core.controllers.base import Controller, action, after
from actionkit.core.controllers.capabilities import (
    ETagSupport,
    RenderDefaults,
    RequireHeader,
    compute_etag,
)
from actionkit.core.controllers.registry import ControllerRegistry
from actionkit.core.domain.action_reference import ActionReference
from actionkit.core.domain.render_args import CHARSET_KEY, ETAG_KEY
from actionkit.core.domain.request_context import ActionContext, ActionRequest
from actionkit.core.domain.results import (
    CONTINUE,
    ActionRedirect,
    Error,
    Forbidden,
    Html,
    NotModified,
    Ok,
    Unauthorized,
)
from actionkit.core.services.action_invoker import ActionInvoker
from actionkit.core.services.request_dispatcher import RequestDispatcher
from actionkit.core.services.response_renderer import ResponseRenderer, strong_etag
from actionkit.core.services.result_resolver import ResultResolver
from actionkit.core.services.route_table import RouteTable


class Account(Controller):
    @action
    def login(self):
        return Html("login")


def _context(method="GET", headers=None, result=None):
    ctx = ActionContext(
        request=ActionRequest(method=method, path="/", headers=headers or {}),
        controller=Account(),
        action_name="login",
    )
    ctx.result = result
    return ctx


class TestRenderDefaults:
    def test_seeds_missing_values_only(self):
        ctx = _context()
        ctx.render_args["title"] = "Custom"

        outcome = RenderDefaults(title="Default", app="News").set_defaults(ctx)

        assert outcome is CONTINUE
        assert ctx.render_args.snapshot() == {"title": "Custom", "app": "News"}

    def test_runs_before_default_priority_hooks(self):
        assert RenderDefaults.hook_specs()[0][1].priority < 0


class TestRequireHeader:
    def test_present_header_continues_and_is_stored(self):
        ctx = _context(headers={"X-User": "ada"})
        outcome = RequireHeader("x-user", render_key="user").check_header(ctx)
        assert outcome is CONTINUE
        assert ctx.render_args["user"] == "ada"

    def test_missing_header_is_forbidden_by_default(self):
        assert RequireHeader("x-user").check_header(_context()) == Forbidden()

    def test_custom_refusal(self):
        capability = RequireHeader("authorization", otherwise=Unauthorized("app"))
        assert capability.check_header(_context()) == Unauthorized("app")

    def test_predicate_rejects_value(self):
        capability = RequireHeader("x-role", predicate=lambda v: v == "admin")
        assert capability.check_header(_context(headers={"x-role": "guest"})) == (
            Forbidden()
        )

    def test_redirect_to_login_action(self):
        capability = RequireHeader("x-user", redirect_to=Account.login)
        outcome = capability.check_header(_context())
        assert outcome == ActionRedirect(target=ActionReference("Account", "login"))


class TestETagSupport:
    def test_compute_etag_is_stable_and_quoted(self):
        etag = compute_etag(Html("same"))
        assert etag == compute_etag(Html("same"))
        assert etag.startswith('"') and etag.endswith('"')
        assert etag != compute_etag(Html("other"))

    def test_no_etag_for_non_content_results(self):
        assert compute_etag(Ok()) is None
        assert compute_etag(None) is None

    def test_marks_content_for_etag(self):
        ctx = _context(result=Html("page"))
        assert ETagSupport().conditional_get(ctx) is CONTINUE
        assert ctx.render_args[ETAG_KEY] == compute_etag(Html("page"))

    def test_etag_hashes_body_in_configured_charset(self):
        ctx = _context(result=Html("café"))
        ctx.render_args[CHARSET_KEY] = "latin-1"
        ETagSupport().conditional_get(ctx)
        assert ctx.render_args[ETAG_KEY] == strong_etag("café".encode("latin-1"))
        assert ctx.render_args[ETAG_KEY] != compute_etag(Html("café"))

    def test_matching_if_none_match_is_not_modified(self):
        etag = compute_etag(Html("page"))
        ctx = _context(headers={"If-None-Match": f'"other", {etag}'}, result=Html("page"))
        assert ETagSupport().conditional_get(ctx) == NotModified(etag)

    def test_ignores_unsafe_methods(self):
        ctx = _context(method="POST", result=Html("page"))
        assert ETagSupport().conditional_get(ctx) is CONTINUE
        assert ETAG_KEY not in ctx.render_args


class Guarded(Controller):
    capabilities = (RequireHeader("x-user", render_key="user"), ETagSupport)

    def __init__(self):
        self.ran = False

    @action
    def dashboard(self, ctx: ActionContext):
        self.ran = True
        return Html(f"hello {ctx.render_args['user']}")


class TestCapabilitiesInChain:
    @pytest.fixture
    def setup(self):
        registry = ControllerRegistry()
        registry.register(Guarded)
        registry.freeze()
        return registry, ActionInvoker(registry, ResultResolver(RouteTable()))

    @pytest.mark.asyncio
    async def test_refusal_short_circuits_the_action(self, setup):
        registry, invoker = setup
        result = await invoker.invoke("Guarded.dashboard", ActionRequest("GET", "/"))
        assert result == Forbidden()
        assert registry.get("Guarded").controller.ran is False

    @pytest.mark.asyncio
    async def test_conditional_get_after_action(self, setup):
        _, invoker = setup
        etag = compute_etag(Html("hello ada"))
        request = ActionRequest(
            "GET", "/", headers={"x-user": "ada", "if-none-match": etag}
        )
        assert await invoker.invoke("Guarded.dashboard", request) == NotModified(etag)


class Feed(Controller):
    capabilities = (ETagSupport,)

    def __init__(self):
        self.down = False

    @action
    def latest(self):
        return Html("café news")

    @after(priority=200)
    def maintenance(self, ctx):
        return Error(503, "down") if self.down else CONTINUE


class TestETagHeader:
    @pytest.fixture
    def feed_dispatcher(self):
        def build(charset="utf-8"):
            routes = RouteTable()
            routes.add("GET", "/feed", "Feed.latest")
            registry = ControllerRegistry()
            registry.register(Feed)
            registry.freeze()
            invoker = ActionInvoker(registry, ResultResolver(routes))
            dispatcher = RequestDispatcher(
                routes, registry, invoker, ResponseRenderer(charset)
            )
            return registry.get("Feed").controller, dispatcher

        return build

    @pytest.mark.asyncio
    async def test_etag_matches_sent_bytes(self, feed_dispatcher):
        _, dispatcher = feed_dispatcher("latin-1")
        envelope = await dispatcher.dispatch(ActionRequest("GET", "/feed"))
        assert envelope.body == "café news".encode("latin-1")
        assert envelope.headers["ETag"] == strong_etag(envelope.body)

    @pytest.mark.asyncio
    async def test_revalidation_in_configured_charset(self, feed_dispatcher):
        _, dispatcher = feed_dispatcher("latin-1")
        etag = (await dispatcher.dispatch(ActionRequest("GET", "/feed"))).headers["ETag"]
        envelope = await dispatcher.dispatch(
            ActionRequest("GET", "/feed", headers={"if-none-match": etag})
        )
        assert envelope.status_code == 304
        assert envelope.headers["ETag"] == etag

    @pytest.mark.asyncio
    async def test_replaced_result_carries_no_etag(self, feed_dispatcher):
        feed, dispatcher = feed_dispatcher()
        feed.down = True
        envelope = await dispatcher.dispatch(ActionRequest("GET", "/feed"))
        assert envelope.status_code == 503
        assert envelope.body == b"down"
        assert "ETag" not in envelope.headers

import pytest

from actionkit.core.controllers.base import (
    Controller,
    action,
    after,
    before,
    catch,
    collect_hooks,
)
from actionkit.core.domain.action_reference import OWNER_ATTRIBUTE
from actionkit.core.domain.interceptor import InterceptorStage


class Base(Controller):
    @before
    def authenticate(self, ctx):
        return None

    @action
    def index(self):
        return "index"

    @action
    def legacy(self):
        return "legacy"


class Child(Base):
    controller_name = "kids"

    @after(priority=3, only={"index"})
    def audit(self, ctx):
        return None

    # Plain override drops the action
    def legacy(self):
        return "gone"

    @action
    def extra(self):
        return "extra"


class TestControllerDeclaration:
    def test_controller_name_defaults_to_class_name(self):
        assert Base.controller_name == "Base"
        assert Child.controller_name == "kids"

    def test_actions_are_collected_through_inheritance(self):
        assert Base.action_names() == ["index", "legacy"]
        assert Child.action_names() == ["index", "extra"]
        assert Child.has_action("index")
        assert not Child.has_action("legacy")

    def test_get_action_returns_bound_method(self):
        child = Child()
        assert child.get_action("extra")() == "extra"
        with pytest.raises(KeyError):
            child.get_action("legacy")

    def test_actions_know_their_controller(self):
        assert getattr(Child.extra, OWNER_ATTRIBUTE) == "kids"
        assert getattr(Base.index, OWNER_ATTRIBUTE) == "Base"

    def test_hooks_are_collected_base_first(self):
        hooks = collect_hooks(Child)
        assert [name for name, _ in hooks] == ["authenticate", "audit"]
        spec = dict(hooks)["audit"]
        assert spec.stage is InterceptorStage.AFTER
        assert spec.priority == 3
        assert spec.only == frozenset({"index"})

    def test_catch_records_exception_types(self):
        @catch(KeyError, ValueError, priority=2)
        def handler(self, ctx, exc):
            return None

        spec = handler.__actionkit_hook__
        assert spec.stage is InterceptorStage.CATCH
        assert spec.exceptions == (KeyError, ValueError)

    def test_action_cannot_also_be_a_hook(self):
        with pytest.raises(TypeError):

            @before
            @action
            def both(self):
                return None

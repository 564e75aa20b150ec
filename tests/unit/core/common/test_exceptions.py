import pytest

from actionkit.core.common.exceptions import (
    ActionKitError,
    ActionNotFoundError,
    ArgumentBindingError,
    ConfigurationError,
    ControllerRegistrationError,
    ResultResolutionError,
    ReverseRoutingError,
)


@pytest.mark.parametrize(
    ("exc_type", "status_code"),
    [
        (ActionNotFoundError, 404),
        (ControllerRegistrationError, 500),
        (ReverseRoutingError, 500),
        (ResultResolutionError, 500),
        (ArgumentBindingError, 400),
        (ConfigurationError, 400),
    ],
)
def test_status_code_hints(exc_type, status_code):
    exc = exc_type()
    assert isinstance(exc, ActionKitError)
    assert exc.status_code == status_code


def test_to_dict_includes_extra_attributes():
    exc = ActionNotFoundError("No action", action_id="A.b", details={"k": "v"})
    assert exc.to_dict() == {
        "error": {
            "message": "No action",
            "type": "ActionNotFoundError",
            "details": {"k": "v"},
            "action_id": "A.b",
        }
    }


def test_base_error_defaults_to_500():
    assert ActionKitError("x").status_code == 500
    assert str(ActionKitError("x")) == "x"

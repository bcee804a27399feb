"""Tests for the jsonfunc CLI."""

import json
import sys
import types

import pytest
import typer
from starlette.requests import Request
from typer.testing import CliRunner

from jsonfunc import ResponseWriter
from jsonfunc.cli import app, load_callable


runner = CliRunner()

TARGETS = "jsonfunc_cli_targets"


def greet(name: str, gender: int) -> tuple[str, Exception | None]:
    if gender == 1:
        return f"Hi, Mr. {name}", None
    return "", ValueError("Sorry, I don't know about your gender.")


def cart(cart_id: int, name: str) -> tuple[str, Exception | None]:
    return f"{cart_id}:{name}", None


def cart_id(writer: ResponseWriter, request: Request) -> tuple[int, Exception | None]:
    return 30, None


def no_outcome(name: str) -> str:
    return name


@pytest.fixture(autouse=True)
def targets_module(monkeypatch: pytest.MonkeyPatch) -> types.ModuleType:
    """Register an importable module holding the CLI targets."""
    module = types.ModuleType(TARGETS)
    module.greet = greet
    module.cart = cart
    module.cart_id = cart_id
    module.no_outcome = no_outcome
    module.handlers = types.SimpleNamespace(greet=greet)
    monkeypatch.setitem(sys.modules, TARGETS, module)
    return module


class TestLoadCallable:
    """Tests for module:attribute resolution."""

    def test_plain_attribute(self) -> None:
        assert load_callable(f"{TARGETS}:greet") is greet

    def test_dotted_attribute(self) -> None:
        assert load_callable(f"{TARGETS}:handlers.greet") is greet

    @pytest.mark.parametrize("ref", ["greet", f"{TARGETS}:", ":greet"])
    def test_malformed(self, ref: str) -> None:
        with pytest.raises(typer.BadParameter, match="expected module:attribute"):
            load_callable(ref)

    def test_missing_module(self) -> None:
        with pytest.raises(typer.BadParameter, match="cannot import"):
            load_callable("jsonfunc_no_such_module:greet")

    def test_missing_attribute(self) -> None:
        with pytest.raises(typer.BadParameter, match="has no attribute"):
            load_callable(f"{TARGETS}:missing")


class TestVersionCommand:
    """Tests for the --version flag."""

    def test_version_shows_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "jsonfunc v0.1.0" in result.stdout


class TestCheckCommand:
    """Tests for the check command."""

    def test_valid_handler(self) -> None:
        result = runner.invoke(app, ["check", f"{TARGETS}:greet"])
        assert result.exit_code == 0
        assert "gender" in result.stdout
        assert "body" in result.stdout
        assert "Results: [str] + outcome" in result.stdout
        assert "Handler is valid" in result.stdout

    def test_with_injector(self) -> None:
        result = runner.invoke(app, ["check", f"{TARGETS}:cart", "-i", f"{TARGETS}:cart_id"])
        assert result.exit_code == 0
        assert "injector" in result.stdout

    def test_injector_as_target(self) -> None:
        result = runner.invoke(app, ["check", f"{TARGETS}:cart_id"])
        assert result.exit_code == 0
        assert "injector served directly" in result.stdout

    def test_invalid_shape(self) -> None:
        """A function without a trailing exception return is rejected."""
        result = runner.invoke(app, ["check", f"{TARGETS}:no_outcome"])
        assert result.exit_code == 1
        assert "Invalid handler" in result.stdout

    def test_unimportable_target(self) -> None:
        result = runner.invoke(app, ["check", "jsonfunc_no_such_module:greet"])
        assert result.exit_code == 2
        assert "Cannot load target" in result.stdout

    def test_invalid_log_level(self) -> None:
        result = runner.invoke(app, ["--log-level", "TRACE", "check", f"{TARGETS}:greet"])
        assert result.exit_code == 1
        assert "Logging configuration error" in result.stdout


class TestCallCommand:
    """Tests for the call command."""

    def test_success(self) -> None:
        result = runner.invoke(app, ["call", f"{TARGETS}:greet", "--params", '["Gates", 1]'])
        assert result.exit_code == 0
        assert "Status: 200" in result.stdout
        body = json.loads(result.stdout.split("\n", 1)[1])
        assert body == {"results": ["Hi, Mr. Gates", None]}

    def test_injected_arguments(self) -> None:
        result = runner.invoke(
            app, ["call", f"{TARGETS}:cart", "-i", f"{TARGETS}:cart_id", "-p", '["Gates"]']
        )
        assert result.exit_code == 0
        assert "30:Gates" in result.stdout

    def test_arity_error(self) -> None:
        result = runner.invoke(app, ["call", f"{TARGETS}:greet", "-p", '["Gates"]'])
        assert result.exit_code == 0
        assert "Status: 422" in result.stdout
        assert "require 2 parameters" in result.stdout

    def test_params_not_json(self) -> None:
        result = runner.invoke(app, ["call", f"{TARGETS}:greet", "-p", "[Gates"])
        assert result.exit_code == 2
        assert "not valid JSON" in result.stdout

from __future__ import annotations

import pytest

from marketplace_console.main import main


@pytest.fixture(autouse=True)
def _console_env(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONSOLE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CONSOLE_USE_MOCK_DATA", "true")
    monkeypatch.delenv("CONSOLE_API_BASE_URL", raising=False)


def test_remembered_login_survives_between_invocations(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["login", "admin@handmade.com", "--password", "admin123", "--remember", "--tenant", "tenant1"]) == 0
    assert "/tenant1/admin/dashboard" in capsys.readouterr().out

    assert main(["whoami"]) == 0
    out = capsys.readouterr().out
    assert "Role: super_admin" in out
    assert "Tenant: tenant1" in out

    assert main(["logout"]) == 0
    assert "/tenant1/admin/login" in capsys.readouterr().out
    assert main(["whoami"]) == 1


def test_login_failure_exits_with_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["login", "admin@handmade.com", "--password", "wrong"]) == 1

    assert "[AUTHENTICATION_FAILED]" in capsys.readouterr().err


def test_two_factor_code_option(capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["login", "security@handmade.com", "--password", "secure123", "--code", "123456", "--remember"])

    assert code == 0
    assert "Signed in as Security Officer" in capsys.readouterr().out


def test_two_factor_code_prompt(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr("builtins.input", lambda prompt: "000000")

    assert main(["login", "security@handmade.com", "--password", "secure123"]) == 1
    assert "[TWO_FACTOR_FAILED]" in capsys.readouterr().err


def test_scope_and_open_for_seller(capsys: pytest.CaptureFixture[str]) -> None:
    main(["login", "seller@johncrafts.com", "--password", "seller123", "--remember"])
    capsys.readouterr()

    assert main(["scope", "--seller", "SELLER-003", "--artisan", "ARTISAN-002"]) == 0
    out = capsys.readouterr().out
    assert "Seller: SELLER-001" in out
    assert "* ARTISAN-002" in out

    assert main(["open", "/settings"]) == 1
    assert "Not found" in capsys.readouterr().out

    assert main(["open", "/orders", "--role", "super_admin"]) == 1
    assert "Redirected to /dashboard" in capsys.readouterr().out


def test_forgot_password_and_activity(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["forgot-password", "nobody@example.com"]) == 0
    assert "If an account exists" in capsys.readouterr().out

    main(["login", "admin@handmade.com", "--password", "bad"])
    main(["login", "admin@handmade.com", "--password", "admin123", "--remember"])
    capsys.readouterr()

    assert main(["activity"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert "OK" in lines[0]
    assert "FAILED" in lines[1]


def test_routes_lists_role_table(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["routes", "--role", "artisan"]) == 0

    out = capsys.readouterr().out
    assert "Route table: artisan" in out
    assert "/orders" not in out


def test_invalid_config_exit_code(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("CONSOLE_USE_MOCK_DATA", "false")

    assert main(["whoami"]) == 2
    assert "CONSOLE_API_BASE_URL" in capsys.readouterr().err

import json

import pytest

from qrph_payments.cli import run_cli

from conftest import make_response

BASE_ARGS = ["--env-file", "missing.env", "--set", "QRPH_API_BASE_URL=https://api.test"]


@pytest.fixture
def http(mocker):
    session_cls = mocker.patch("qrph_payments.cli.requests.Session")
    return session_cls.return_value


def test_invalid_configuration(monkeypatch, http):
    monkeypatch.delenv("QRPH_API_BASE_URL", raising=False)
    assert run_cli(["--env-file", "missing.env", "status", "pay_1"]) == 1
    http.request.assert_not_called()


def test_status_command(http):
    http.request.return_value = make_response(200, {"success": True, "status": "pending"})

    assert run_cli([*BASE_ARGS, "status", "pay_1"]) == 0
    http.close.assert_called_once()


def test_create_with_empty_items_fails_before_request(tmp_path, http):
    checkout = tmp_path / "checkout.json"
    checkout.write_text(json.dumps({"items": []}), encoding="utf-8")

    code = run_cli([*BASE_ARGS, "create", "--amount", "10", "--checkout-file", str(checkout)])

    assert code == 1
    http.request.assert_not_called()


def test_cancel_command_failure(http):
    http.request.return_value = make_response(500, {"message": "boom"})
    assert run_cli([*BASE_ARGS, "cancel", "pay_1"]) == 1


def test_qr_command_prints_url(http, capsys):
    http.request.return_value = make_response(200, {"qrCodeUrl": "https://qr.test/1.png"})

    assert run_cli([*BASE_ARGS, "qr", "pi_1"]) == 0
    assert capsys.readouterr().out.strip() == "https://qr.test/1.png"


def test_download_qr_writes_file(tmp_path, http):
    http.request.return_value = make_response(200, content=b"PNGDATA", headers={"Content-Type": "image/png"})
    output = tmp_path / "qr.png"

    assert run_cli([*BASE_ARGS, "download-qr", "pay_1", "--output", str(output)]) == 0
    assert output.read_bytes() == b"PNGDATA"


def test_watch_command(http):
    http.request.return_value = make_response(200, {"success": True, "data": {"status": "paid"}})

    code = run_cli([*BASE_ARGS, "watch", "pay_1", "--interval", "0.01", "--timeout", "5"])

    assert code == 0

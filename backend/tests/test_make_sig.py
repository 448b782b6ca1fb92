import importlib.util
import io
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "make_sig.py"
BODY = b'{"type": "payment.succeeded", "data": {"id": "pay_123"}}\n'


@pytest.fixture
def make_sig():
    spec = importlib.util.spec_from_file_location("make_sig", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_signs_file_bytes_exactly(make_sig, sign, tmp_path, capsys):
    payload = tmp_path / "payload.json"
    payload.write_bytes(BODY)

    assert make_sig.main(["whsec_test", str(payload)]) == 0

    assert capsys.readouterr().out.strip() == sign(BODY, "whsec_test")


def test_signs_stdin(make_sig, sign, monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(BODY)))

    assert make_sig.main(["whsec_test"]) == 0

    assert capsys.readouterr().out.strip() == sign(BODY, "whsec_test")

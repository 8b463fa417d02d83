"""Tests for signed reports: generation, verification, tampering, lifecycle."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from tracescan.exceptions import SigningServiceError
from tracescan.reports import (
    ReportService,
    SigningService,
    canonical_bytes,
    strip_signature,
    verification_token,
    verify_signature,
)

SCAN_DATA = {
    "volumes": [{"identifier": "Root", "mount_path": "/", "used_gb": "349.90", "total_gb": "500.22",
                 "usage_percent": "69.9", "encryption_mechanism": "LUKS"}],
    "risk": {"score": 80, "risk": "HIGH", "factors": {}},
    "hidden_files": {"artifacts": [{"path": "/home/u/.bash_history", "size_bytes": 120, "category": "history"}],
                     "total_discovered": 1, "scan_root": "/home/u"},
    "browser_profiles": {"profiles": [], "total_found": 0},
    "note": "Ünïcode survives",
}


@pytest.fixture
def signer():
    s = SigningService()
    s.init()
    yield s
    s.shutdown()


@pytest.fixture
def report_service(signer, tmp_path) -> ReportService:
    return ReportService(signer=signer, reports_dir=tmp_path / "reports", version="1.0.0")


class ExplodingRenderer:
    def render(self, report, qr_png, destination):
        Path(destination).write_bytes(b"partial")
        raise OSError("disk full")


def test_generate_writes_signed_pair(report_service):
    result = report_service.generate_report(SCAN_DATA)

    assert result["success"] is True
    data_path = Path(result["data_path"])
    document_path = Path(result["document_path"])
    assert data_path.name == f"scan-report-{result['report_id']}.json"
    assert document_path.read_bytes().startswith(b"%PDF")

    report = json.loads(data_path.read_text(encoding="utf-8"))
    assert report["signature"] == result["signature"]
    assert report["version"] == "1.0.0"
    assert report["scan_data"]["note"] == "Ünïcode survives"
    assert not list(data_path.parent.glob("*.tmp"))


def test_roundtrip_verification(report_service):
    result = report_service.generate_report(SCAN_DATA)

    verdict = report_service.verify_report(result["data_path"])

    assert verdict["valid"] is True
    assert verdict["public_key_match"] is True
    assert verdict["report_id"] == result["report_id"]


def test_tampered_report_fails(report_service):
    result = report_service.generate_report(SCAN_DATA)
    path = Path(result["data_path"])
    report = json.loads(path.read_text(encoding="utf-8"))
    report["scan_data"]["risk"]["score"] = 5
    path.write_text(json.dumps(report), encoding="utf-8")

    verdict = report_service.verify_report(path)

    assert verdict["valid"] is False


def test_reordered_keys_still_verify(report_service):
    result = report_service.generate_report(SCAN_DATA)
    path = Path(result["data_path"])
    report = json.loads(path.read_text(encoding="utf-8"))
    reordered = dict(reversed(list(report.items())))
    path.write_text(json.dumps(reordered, indent=4), encoding="utf-8")

    assert report_service.verify_report(path)["valid"] is True


def test_report_from_other_key_is_valid_but_unmatched(report_service, tmp_path):
    other_signer = SigningService()
    other_signer.init()
    other = ReportService(signer=other_signer, reports_dir=tmp_path / "other")
    result = other.generate_report(SCAN_DATA)

    verdict = report_service.verify_report(result["data_path"])

    assert verdict["valid"] is True
    assert verdict["public_key_match"] is False


def test_render_failure_leaves_no_files(signer, tmp_path):
    reports_dir = tmp_path / "reports"
    service = ReportService(signer=signer, reports_dir=reports_dir, renderer=ExplodingRenderer())

    result = service.generate_report(SCAN_DATA)

    assert result["success"] is False
    assert "disk full" in result["error"]
    assert list(reports_dir.iterdir()) == []


def test_non_finite_numbers_are_rejected(report_service):
    result = report_service.generate_report({"ratio": float("nan")})
    assert result["success"] is False


def test_signing_before_init_fails(tmp_path):
    signer = SigningService()
    with pytest.raises(SigningServiceError):
        signer.sign(b"data")

    service = ReportService(signer=signer, reports_dir=tmp_path / "reports")
    result = service.generate_report(SCAN_DATA)
    assert result["success"] is False
    assert "not initialized" in result["error"]


def test_signer_lifecycle():
    signer = SigningService()
    signer.init()
    first_key = signer.public_key_b64
    signer.init()
    assert signer.public_key_b64 == first_key

    signer.shutdown()
    assert not signer.is_initialized
    with pytest.raises(SigningServiceError):
        signer.public_key_b64


def test_signer_loads_configured_key(tmp_path):
    key_path = tmp_path / "signing.pem"
    key_path.write_bytes(
        Ed25519PrivateKey.generate().private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    a, b = SigningService(key_path), SigningService(key_path)
    a.init()
    b.init()
    assert a.public_key_b64 == b.public_key_b64


def test_signer_rejects_bad_key_file(tmp_path):
    key_path = tmp_path / "signing.pem"
    key_path.write_text("not a key")
    with pytest.raises(SigningServiceError):
        SigningService(key_path).init()


def test_verify_unreadable_inputs(report_service, tmp_path):
    assert report_service.verify_report(tmp_path / "missing.json")["valid"] is False

    garbage = tmp_path / "garbage.json"
    garbage.write_text("{not json")
    assert "not valid JSON" in report_service.verify_report(garbage)["error"]

    unsigned = tmp_path / "unsigned.json"
    unsigned.write_text(json.dumps({"report_id": "x"}))
    assert report_service.verify_report(unsigned)["valid"] is False


def test_malformed_signature_is_invalid(report_service):
    result = report_service.generate_report(SCAN_DATA)
    report = json.loads(Path(result["data_path"]).read_text(encoding="utf-8"))
    report["signature"] = "%%%not-base64%%%"

    verdict = report_service.verify_document(report)

    assert verdict["valid"] is False
    assert verdict["error"]


def test_canonical_form_ignores_key_order_and_signature_fields():
    a = {"b": 1, "a": {"y": [1, 2], "x": "é"}}
    b = {"a": {"x": "é", "y": [1, 2]}, "b": 1}
    assert canonical_bytes(a) == canonical_bytes(b)
    assert canonical_bytes(a) == '{"a":{"x":"é","y":[1,2]},"b":1}'.encode("utf-8")
    assert strip_signature({**a, "signature": "s", "public_key": "k"}) == a


def test_verify_signature_directly(signer):
    data = b"payload"
    signature = signer.sign(data)
    assert verify_signature(signer.public_key_b64, signature, data) is True
    assert verify_signature(signer.public_key_b64, signature, b"other") is False


def test_verification_token():
    assert verification_token("abc", "0123456789abcdefXYZ") == "tracescan:abc:0123456789abcdef"


def test_oversized_report_is_rejected(signer, tmp_path):
    service = ReportService(signer=signer, reports_dir=tmp_path / "reports", max_report_bytes=1024)
    big = tmp_path / "big.json"
    big.write_text(json.dumps({"padding": "x" * 4096}))

    verdict = service.verify_report(big)

    assert verdict["valid"] is False
    assert "exceeds 1024 bytes" in verdict["error"]


def test_report_within_ceiling_still_verifies(signer, tmp_path):
    service = ReportService(signer=signer, reports_dir=tmp_path / "reports", max_report_bytes=64 * 1024)
    result = service.generate_report(SCAN_DATA)

    assert service.verify_report(result["data_path"])["valid"] is True


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes need POSIX")
def test_named_pipe_report_is_rejected(report_service, tmp_path):
    fifo = tmp_path / "report.json"
    os.mkfifo(fifo)

    verdict = report_service.verify_report(fifo)

    assert verdict["valid"] is False
    assert "not a regular file" in verdict["error"]

"""Canonical byte form of a report payload, shared by signing and verification."""

import json
from typing import Any

SIGNATURE_FIELDS = ("signature", "public_key")


def normalize(payload: Any) -> Any:
    """
    Round-trip a payload through JSON.

    Values JSON cannot represent are stringified, so the normalized form is
    exactly what a reader gets back after loading the persisted report.
    """
    return json.loads(json.dumps(payload, default=str, ensure_ascii=False))


def canonical_bytes(payload: dict) -> bytes:
    """Serialize with sorted keys and compact separators as UTF-8."""
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def strip_signature(report: dict) -> dict:
    """Return the report without its signature and public key."""
    return {k: v for k, v in report.items() if k not in SIGNATURE_FIELDS}

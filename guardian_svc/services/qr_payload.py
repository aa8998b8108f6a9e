"""
QR share payload.

The QR image itself is drawn by the client; this module produces the text
to encode. The payload is base64 of the compact UTF-8 JSON of the projected
bundle, encoded at error correction level L.
"""
import base64
import json
import logging
from dataclasses import dataclass
from typing import Optional

from schemas.fhir import Bundle
from services.compact_projector import project_for_qr

logger = logging.getLogger(__name__)

ERROR_CORRECTION_LEVEL = "L"
# Byte-mode capacity of a version 40 symbol at level L.
QR_MAX_PAYLOAD_BYTES = 2953
TOO_LARGE_NOTICE = "Data too large to generate a QR code"


@dataclass(frozen=True)
class QrShare:
    """What a client needs to draw the QR code, or why it cannot."""

    payload: Optional[str]
    partial: bool
    error_correction: str = ERROR_CORRECTION_LEVEL
    notice: Optional[str] = None


def encode_qr_payload(bundle: Bundle) -> str:
    """Base64 of the bundle's compact JSON."""
    raw = json.dumps(bundle.to_fhir_json(), ensure_ascii=False, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def build_qr_share(bundle: Bundle) -> QrShare:
    """
    Project a bundle for QR sharing and encode it.

    A payload over the symbol capacity is not an error: the share carries a
    notice instead of a payload.
    """
    projected = project_for_qr(bundle)
    partial = len(projected.observations) < len(bundle.observations)
    payload = encode_qr_payload(projected)

    if len(payload) > QR_MAX_PAYLOAD_BYTES:
        logger.info(
            "QR payload exceeds capacity",
            extra={"bundle_id": bundle.id, "payload_bytes": len(payload)}
        )
        return QrShare(payload=None, partial=partial, notice=TOO_LARGE_NOTICE)
    return QrShare(payload=payload, partial=partial)

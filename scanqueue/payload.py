"""Decode and encode the text carried by attendance QR codes.

A code holds either a bare identifier or a JSON object of the form
``{"idNumber": "...", "checksum": "..."}``. The checksum is the base-36
sum of the identifier's character codes; it is tamper evidence only.
"""
import json
from dataclasses import dataclass
from typing import Any, Optional

from scanqueue.logging_conf import logger

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


@dataclass(frozen=True)
class DecodedPayload:
    """Result of decoding one scan."""

    identifier: str
    checksum: Optional[str] = None
    verified: bool = False

    @property
    def has_checksum(self) -> bool:
        return self.checksum is not None


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def compute_checksum(identifier: str) -> str:
    """Base-36 of the sum of the identifier's character codes."""
    return _to_base36(sum(ord(char) for char in identifier))


def decode_payload(raw: Any) -> DecodedPayload:
    """
    Decode raw scan text into an identifier and optional checksum.

    Never raises: anything that is not a JSON object with an ``idNumber``
    is treated as an opaque identifier.
    """
    text = raw if isinstance(raw, str) else ("" if raw is None else str(raw))

    try:
        data = json.loads(text)
    except (ValueError, TypeError, RecursionError):
        data = None

    if not isinstance(data, dict) or "idNumber" not in data:
        return DecodedPayload(identifier=text.strip())

    identifier = _stringify(data["idNumber"]).strip()
    checksum = data.get("checksum")
    if checksum is None:
        return DecodedPayload(identifier=identifier)

    checksum = _stringify(checksum)
    expected = compute_checksum(identifier)
    verified = checksum == expected
    if not verified:
        logger.warning(
            f"Checksum mismatch for {identifier}: got {checksum!r}, expected {expected!r}",
            extra={"identifier": identifier},
        )
    return DecodedPayload(identifier=identifier, checksum=checksum, verified=verified)


def encode_payload(identifier: str) -> str:
    """Build the JSON text printed into a QR code for ``identifier``."""
    identifier = identifier.strip()
    return json.dumps(
        {"idNumber": identifier, "checksum": compute_checksum(identifier)},
        separators=(",", ":"),
    )


def _stringify(value: Any) -> str:
    # JSON numbers and booleans follow JavaScript's String() spelling
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)

import json
import logging

import pytest

from scanqueue.payload import DecodedPayload, compute_checksum, decode_payload, encode_payload


@pytest.mark.parametrize(
    "identifier,expected",
    [
        ("AB", "3b"),
        ("7", "1j"),
        ("", "0"),
        ("12345", "73"),
    ],
)
def test_compute_checksum_is_base36_of_char_code_sum(identifier, expected):
    assert compute_checksum(identifier) == expected


def test_plain_text_is_trimmed_identifier():
    assert decode_payload("  12345 \n") == DecodedPayload(identifier="12345", checksum=None, verified=False)


def test_json_with_matching_checksum_is_verified():
    payload = decode_payload('{"idNumber": "AB", "checksum": "3b"}')

    assert payload == DecodedPayload(identifier="AB", checksum="3b", verified=True)


def test_checksum_mismatch_is_flagged_and_logged(caplog):
    with caplog.at_level(logging.WARNING):
        payload = decode_payload('{"idNumber":"7","checksum":"t"}')

    assert payload.identifier == "7"
    assert payload.checksum == "t"
    assert payload.verified is False
    assert any("Checksum mismatch" in r.getMessage() for r in caplog.records)


def test_numeric_id_number_is_stringified_and_trimmed():
    payload = decode_payload('{"idNumber": 7, "checksum": "1j"}')

    assert payload.identifier == "7"
    assert payload.verified is True


def test_json_without_id_number_falls_back_to_raw_text():
    raw = '{"name": "someone"}'

    assert decode_payload(raw) == DecodedPayload(identifier=raw)


def test_json_without_checksum_is_unverified():
    assert decode_payload('{"idNumber": " 42 "}') == DecodedPayload(identifier="42")


@pytest.mark.parametrize("raw", ["[1, 2]", '"quoted"', "{broken", "null", None, 12345, "[" * 3000, "{\"a\":" * 3000])
def test_decoder_never_raises(raw):
    payload = decode_payload(raw)

    assert isinstance(payload.identifier, str)
    assert payload.checksum is None


def test_decoding_is_deterministic():
    raw = '{"idNumber":"7","checksum":"t"}'

    assert decode_payload(raw) == decode_payload(raw)


def test_encode_payload_produces_a_verifiable_code():
    text = encode_payload(" M-0042 ")

    assert json.loads(text) == {"idNumber": "M-0042", "checksum": compute_checksum("M-0042")}
    assert decode_payload(text).verified is True

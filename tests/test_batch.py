import json
from decimal import Decimal

import pytest
import requests

from snackmoney.core import sources
from snackmoney.core.batch import (
    parse_batch_document,
    parse_batch_input,
    parse_comma_separated,
)
from snackmoney.core.errors import (
    BatchParseError,
    InvalidAmountError,
    InvalidReceiverError,
    SourceError,
    UnknownPlatformError,
)


class StubResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class StubSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []
        self.closed = False

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True


DOCUMENT = {
    "platform": "twitter",
    "payments": [
        {"receiver": "alice", "amount": "5¢"},
        {"receiver": "bob", "amount": 0.25},
    ],
}


def test_compact_form():
    descriptor = parse_comma_separated("x.com/alice:1¢,bob:$0.5,carol:2")

    assert descriptor.platform == "x"
    assert [p.receiver for p in descriptor.payments] == ["alice", "bob", "carol"]
    assert [p.amount for p in descriptor.payments] == [
        Decimal("0.01"),
        Decimal("0.5"),
        Decimal("2"),
    ]
    assert descriptor.total_amount == Decimal("2.51")


def test_compact_form_tolerates_spaces_around_pairs():
    descriptor = parse_comma_separated("farcaster/toly:1, dwr:2")
    assert [p.receiver for p in descriptor.payments] == ["toly", "dwr"]


def test_compact_form_splits_on_last_colon():
    with pytest.raises(InvalidReceiverError) as excinfo:
        parse_comma_separated("x/al:ice:1")
    assert excinfo.value.raw == "al:ice"


def test_compact_form_requires_amount():
    with pytest.raises(BatchParseError) as excinfo:
        parse_comma_separated("x/alice")
    assert excinfo.value.reason == SourceError.MALFORMED


def test_compact_form_requires_platform_separator():
    with pytest.raises(BatchParseError):
        parse_comma_separated("alice:1,bob:2")


def test_compact_form_rejects_shell_hazard_amount():
    with pytest.raises(InvalidAmountError):
        parse_comma_separated("x/alice:$1")


def test_inline_json():
    descriptor = parse_batch_input(json.dumps(DOCUMENT))

    assert descriptor.platform == "x"
    assert descriptor.as_receivers() == [
        {"receiver": "alice", "amount": 0.05},
        {"receiver": "bob", "amount": 0.25},
    ]


def test_invalid_inline_json_reports_reason():
    with pytest.raises(BatchParseError) as excinfo:
        parse_batch_input('{"platform": "x",')
    assert excinfo.value.reason == SourceError.INVALID_JSON
    assert excinfo.value.source == "inline JSON"


def test_json_file(tmp_path):
    path = tmp_path / "batch.json"
    path.write_text(json.dumps(DOCUMENT), encoding="utf-8")

    from_suffix = parse_batch_input(str(path))
    from_prefix = parse_batch_input(f"file:{path}")

    assert from_suffix == from_prefix
    assert len(from_suffix.payments) == 2


def test_missing_file(tmp_path):
    with pytest.raises(BatchParseError) as excinfo:
        parse_batch_input(str(tmp_path / "missing.json"))
    assert excinfo.value.reason == SourceError.UNREADABLE_FILE


def test_url_source_uses_session():
    session = StubSession(StubResponse(200, json.dumps(DOCUMENT)))

    descriptor = parse_batch_input("https://example.com/batch.json", session=session, timeout=5)

    assert descriptor.platform == "x"
    assert session.calls == [("https://example.com/batch.json", 5)]


def test_url_http_error():
    session = StubSession(StubResponse(404, "not found"))
    with pytest.raises(BatchParseError) as excinfo:
        parse_batch_input("https://example.com/batch.json", session=session)
    assert excinfo.value.reason == SourceError.UNREACHABLE_URL


def test_url_transport_error():
    session = StubSession(error=requests.ConnectionError("boom"))
    with pytest.raises(BatchParseError) as excinfo:
        parse_batch_input("https://example.com/batch.json", session=session)
    assert excinfo.value.reason == SourceError.UNREACHABLE_URL


@pytest.mark.parametrize(
    "document",
    [
        {"payments": [{"receiver": "alice", "amount": 1}]},
        {"platform": "x"},
        {"platform": "x", "payments": []},
        {"platform": "x", "payments": [{"amount": 1}]},
        {"platform": "x", "payments": [{"receiver": "alice"}]},
    ],
)
def test_document_missing_fields(document):
    with pytest.raises(BatchParseError) as excinfo:
        parse_batch_document(document)
    assert excinfo.value.reason == SourceError.MISSING_FIELD


def test_document_must_be_object():
    with pytest.raises(BatchParseError) as excinfo:
        parse_batch_document(["x"])
    assert excinfo.value.reason == SourceError.MALFORMED


def test_document_rejects_unknown_platform():
    with pytest.raises(UnknownPlatformError):
        parse_batch_document({"platform": "myspace", "payments": [{"receiver": "a", "amount": 1}]})


def test_one_bad_receiver_rejects_whole_batch():
    document = {
        "platform": "x",
        "payments": [
            {"receiver": "alice", "amount": 1},
            {"receiver": "not valid!", "amount": 1},
        ],
    }
    with pytest.raises(InvalidReceiverError):
        parse_batch_document(document)


def test_compact_and_json_forms_agree():
    compact = parse_batch_input("x/alice:5¢,bob:0.25")
    inline = parse_batch_input(json.dumps(DOCUMENT))
    assert compact == inline


def test_empty_input():
    with pytest.raises(BatchParseError):
        parse_batch_input("   ")


def test_compact_and_string_amount_json_agree():
    document = {
        "platform": "x",
        "payments": [
            {"receiver": "alice", "amount": "5¢"},
            {"receiver": "bob", "amount": "$0.5"},
        ],
    }

    assert parse_batch_input("x/alice:5¢,bob:$0.5") == parse_batch_input(json.dumps(document))


def test_url_source_closes_its_own_session(monkeypatch):
    session = StubSession(StubResponse(200, json.dumps(DOCUMENT)))
    monkeypatch.setattr(sources.requests, "Session", lambda: session)

    descriptor = parse_batch_input("https://example.com/batch.json")

    assert descriptor.platform == "x"
    assert session.closed

import json

from jarvis.panel.models import (
    ErrorEnvelope,
    PanelItem,
    decode_error,
    decode_items,
    decode_json,
    pretty_body,
)


def test_panel_item_is_lenient():
    item = PanelItem.model_validate({"id": "12", "name": None, "type": "minute-n", "extra": 1})
    assert item.id == 12
    assert item.name == ""
    assert item.type == "minute-n"

    item = PanelItem.model_validate({"id": "abc"})
    assert item.id == 0


def test_error_envelope_is_error():
    assert ErrorEnvelope(status="error", msg="x").is_error
    assert not ErrorEnvelope(status=False, msg="x").is_error
    assert not ErrorEnvelope(status=True, msg="x").is_error
    assert not ErrorEnvelope(status="", msg="x").is_error
    assert not ErrorEnvelope().is_error


def test_decode_error_ignores_status_of_other_types():
    assert decode_error('{"status": false, "msg": ""}') is None
    assert decode_error('{"status": 0, "msg": "x"}') is None
    assert decode_error('{"status": 1}') is None
    assert decode_error('{"status": null, "msg": "x"}') is None


def test_decode_error_without_message():
    error = decode_error('{"status": "0"}')
    assert error is not None
    assert error.msg == ""
    assert error.message == 'the panel reported an error (status "0")'

    assert decode_error('{"status": "x", "msg": "denied"}').message == "denied"


def test_decode_json_returns_none_for_invalid_text():
    assert decode_json("not json") is None
    assert decode_json("") is None
    assert decode_json('{"a": 1}') == {"a": 1}


def test_decode_error():
    error = decode_error('{"status": "error", "msg": "the key is wrong"}')
    assert error is not None
    assert error.msg == "the key is wrong"

    assert decode_error('{"status": true, "msg": "ok"}') is None
    assert decode_error("[]") is None
    assert decode_error("garbage") is None


def test_decode_items_from_array_and_data_object():
    body = json.dumps([
        {"id": 1, "name": "backup", "type": "day"},
        {"id": 2, "name": "cleanup", "type": "minute-n"},
        "not an object",
    ])
    items = decode_items(body)
    assert [item.name for item in items] == ["backup", "cleanup"]
    assert items[1].id == 2

    items = decode_items(json.dumps({"data": [{"id": 3, "name": "example.com"}]}))
    assert len(items) == 1
    assert items[0].name == "example.com"


def test_decode_items_returns_empty_list_for_malformed_body():
    assert decode_items("") == []
    assert decode_items("<html>") == []
    assert decode_items('{"status": false}') == []


def test_pretty_body():
    assert pretty_body('{"a":1}') == '{\n    "a": 1\n}'
    assert pretty_body("plain text") == "plain text"
    assert "中文" in pretty_body('{"msg": "中文"}')

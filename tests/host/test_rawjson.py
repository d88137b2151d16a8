import json

import pytest

from kubenode.host.rawjson import scan_members


def test_members_keep_exact_value_bytes():
    data = b'{ "a" : {"z": 1,   "y":[1, 2 ]} ,"b":"x\\u00e9", "c": null, "d": 1.50}'
    m = scan_members(data)
    assert m["a"] == b'{"z": 1,   "y":[1, 2 ]}'
    assert m["b"] == b'"x\\u00e9"'
    assert m["c"] == b"null"
    assert m["d"] == b"1.50"


def test_empty_object():
    assert scan_members(b"  {}\n") == {}


def test_non_ascii_payload_survives():
    data = '{"driver": {"name": "nöde"}}'.encode("utf-8")
    assert scan_members(data)["driver"] == '{"name": "nöde"}'.encode("utf-8")


@pytest.mark.parametrize("bad", [b"", b"[]", b'{"a": }', b'{"a": 1', b'{"a": 1} trailing', b"\xff\xfe"])
def test_malformed_input_raises_value_error(bad):
    with pytest.raises(ValueError):
        scan_members(bad)


def test_errors_are_json_decode_errors():
    with pytest.raises(json.JSONDecodeError):
        scan_members(b'{"a" 1}')

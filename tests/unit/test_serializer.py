import pytest

from ghomap.errors import CorruptEntry, NotSerializable
from ghomap.storage.serializer import JSONSerializer


def test_dump_is_compact_utf8():
    s = JSONSerializer()
    assert s.dump({"a": [1, 2], "name": "café"}) == '{"a":[1,2],"name":"café"}'.encode("utf-8")
    assert s.extension == ".json"


def test_load_parses_json():
    s = JSONSerializer()
    assert s.load(b'{"a":[1,2,null]}') == {"a": [1, 2, None]}
    assert s.load(b"false") is False


@pytest.mark.parametrize("value", [{1, 2}, object(), float("nan"), b"bytes"])
def test_dump_rejects_non_json_values(value):
    with pytest.raises(NotSerializable):
        JSONSerializer().dump(value)


def test_dump_rejects_circular_structures():
    value = []
    value.append(value)
    with pytest.raises(NotSerializable):
        JSONSerializer().dump(value)


@pytest.mark.parametrize("raw", [b"{", b"", b"\xff\xfe", b"{'single': 1}"])
def test_load_rejects_malformed_payloads(raw):
    with pytest.raises(CorruptEntry):
        JSONSerializer().load(raw)

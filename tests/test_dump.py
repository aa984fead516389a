"""
Tests de exportación y de ida y vuelta (dump → decode).

Verifica que documentos nativos escritos con dump_documents() y leídos con
DocumentDecoder + to_native() conservan orden de campos, valores e
identidad de tipos extendidos.
"""

import io
import os
import sys
import uuid
from datetime import datetime, timezone

# Agregar directorio raíz al path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bson import Decimal128, Int64, ObjectId
from bson.code import Code
from bson.max_key import MaxKey
from bson.min_key import MinKey
from bson.regex import Regex
from bson.timestamp import Timestamp

from mongofixtures import DocumentDecoder, dump_documents, dump_fixtures, load, to_native
from tests.helpers import FakeDatabase

DOCUMENTS = [
    {
        "_id": ObjectId("5f1a2b3c4d5e6f7a8b9c0d1e"),
        "name": "Ana Pérez",
        "createdAt": datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc),
        "small": 7,
        "big": Int64(9007199254740993),
        "ratio": 0.25,
        "price": Decimal128("19.99"),
        "payload": b"\x00\x01binary",
        "ref": uuid.UUID("00112233-4455-6677-8899-aabbccddeeff"),
        "pattern": Regex("^ana", "i"),
        "oplog": Timestamp(1700000000, 3),
        "script": Code("function () { return 1; }"),
        "bounds": [MinKey(), MaxKey()],
        "nested": {"z": None, "a": [1, {"deep": True}]},
    },
    {"_id": ObjectId("5f1a2b3c4d5e6f7a8b9c0d1f"), "empty": {}, "list": []},
]


def decode_all(text):
    decoder = DocumentDecoder(io.BytesIO(text.encode("utf-8")))
    return [to_native(doc) for doc in decoder]


def test_round_trip_preserves_values_and_types():
    print("\n🔍 Test: ida y vuelta Extended JSON")

    stream = io.StringIO()
    written = dump_documents(DOCUMENTS, stream)
    decoded = decode_all(stream.getvalue())

    assert written == 2
    assert decoded == [to_native(doc) for doc in DOCUMENTS]

    first = decoded[0]
    assert isinstance(first["_id"], ObjectId)
    assert first["createdAt"] == DOCUMENTS[0]["createdAt"]
    assert isinstance(first["big"], Int64)
    assert type(first["small"]) is int
    assert isinstance(first["price"], Decimal128)
    assert first["payload"] == b"\x00\x01binary"
    assert first["ref"] == DOCUMENTS[0]["ref"]
    print(f"   ✅ {len(first)} campos con tipos preservados")


def test_round_trip_preserves_field_order():
    stream = io.StringIO()
    dump_documents(DOCUMENTS, stream)
    decoded = decode_all(stream.getvalue())

    for original, result in zip(DOCUMENTS, decoded):
        assert list(result) == list(original)
    assert list(decoded[0]["nested"]) == ["z", "a"]


def test_one_document_per_line():
    stream = io.StringIO()
    dump_documents(DOCUMENTS, stream)

    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("{") and lines[0].endswith("}")
    assert '"$oid"' in lines[0]
    assert "Ana Pérez" in lines[0]  # ensure_ascii=False


def test_dump_fixtures_then_load(tmp_path):
    """Exportar una base y volver a cargarla produce los mismos documentos."""
    print("\n🔍 Test: dump_fixtures → load")

    source = FakeDatabase()
    source["users"].documents.extend(to_native(doc) for doc in DOCUMENTS)
    source["logs.2024"].documents.append({"_id": 1, "msg": "hola"})

    exported = dump_fixtures(source, tmp_path)
    assert exported == {"logs.2024": 1, "users": 2}
    assert os.path.exists(tmp_path / "logs.2024.json")

    target = FakeDatabase()
    counts = load(target, tmp_path)

    assert counts == {"logs.2024": 1, "users": 2}
    assert target.documents("users") == source.documents("users")
    print(f"   ✅ {counts}")

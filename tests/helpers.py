"""
Funciones helper compartidas para todos los tests.

Proporciona:
- FakeDatabase / FakeCollection: base en memoria con la semántica de
  bulk_write + InsertOne que usa el loader (índice único en _id, escritura
  ordenada que corta en el primer error)
- write_fixture(): crea archivos de fixture en un directorio temporal
- RUNNING_AS_ROOT: para saltear los tests que dependen de permisos
- connect_to_mongo(): conexión real para los tests de integración
"""

import os
import sys

# Agregar directorio raíz al path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bson import ObjectId
from pymongo import MongoClient
from pymongo.errors import BulkWriteError, ConnectionFailure

from mongofixtures import config

# root lee cualquier archivo: los tests de permisos no aplican
RUNNING_AS_ROOT = hasattr(os, "geteuid") and os.geteuid() == 0


class FakeBulkWriteResult:
    """Subconjunto de pymongo.results.BulkWriteResult usado por el loader."""

    def __init__(self, inserted_count):
        self.inserted_count = inserted_count


class FakeCollection:
    """
    Colección en memoria.

    Attributes:
        name (str): Nombre de la colección
        documents (list): Documentos insertados, en orden
        bulk_calls (list): Un entry por llamada a bulk_write (lista de ops)
    """

    def __init__(self, name):
        self.name = name
        self.documents = []
        self.bulk_calls = []

    def bulk_write(self, requests, ordered=True, session=None):
        requests = list(requests)
        self.bulk_calls.append(requests)

        inserted = 0
        for index, op in enumerate(requests):
            document = dict(op._doc)
            document.setdefault("_id", ObjectId())

            if any(doc["_id"] == document["_id"] for doc in self.documents):
                raise BulkWriteError(
                    {
                        "writeErrors": [
                            {
                                "index": index,
                                "code": 11000,
                                "errmsg": f"E11000 duplicate key error collection: "
                                f"{self.name} dup key: {{ _id: {document['_id']!r} }}",
                                "op": document,
                            }
                        ],
                        "writeConcernErrors": [],
                        "nInserted": inserted,
                        "nUpserted": 0,
                        "nMatched": 0,
                        "nModified": 0,
                        "nRemoved": 0,
                        "upserted": [],
                    }
                )

            self.documents.append(document)
            inserted += 1

        return FakeBulkWriteResult(inserted)

    def find(self, filter=None, session=None):
        return FakeCursor(self.documents)


class FakeCursor:
    """Cursor mínimo: sort() por un campo y limit(), como usa dump_collection."""

    def __init__(self, documents):
        self._documents = list(documents)

    def sort(self, key, direction=1):
        self._documents.sort(key=lambda doc: doc[key], reverse=direction < 0)
        return self

    def limit(self, count):
        self._documents = self._documents[:count]
        return self

    def __iter__(self):
        return iter(self._documents)


class FakeDatabase:
    """
    Base de datos en memoria: db[nombre] crea la colección al primer acceso.

    Solo las colecciones que recibieron escrituras cuentan como existentes
    (igual que en MongoDB).
    """

    def __init__(self):
        self.collections = {}
        self.dropped = []

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    def documents(self, name):
        """Retorna los documentos de una colección (lista vacía si no existe)."""
        if name not in self.collections:
            return []
        return self.collections[name].documents

    def list_collection_names(self, session=None):
        return [name for name, coll in self.collections.items() if coll.documents]

    def drop_collection(self, name, session=None):
        self.collections.pop(name, None)
        self.dropped.append(name)


def write_fixture(root, relative_path, content):
    """
    Crea un archivo de fixture (y sus directorios) bajo `root`.

    Args:
        root: Directorio raíz (ej: tmp_path de pytest)
        relative_path: Ruta relativa (ej: 'sub/users.json')
        content: str (se escribe en UTF-8) o bytes

    Returns:
        str: Ruta absoluta del archivo creado
    """
    path = os.path.join(str(root), relative_path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    data = content.encode("utf-8") if isinstance(content, str) else content
    with open(path, "wb") as f:
        f.write(data)
    return path


def connect_to_mongo():
    """
    Conecta al MongoDB de tests usando mongofixtures/config.py.

    Returns:
        tuple: (client, database) de pymongo, o (None, None) si el servidor
               no está disponible
    """
    client = MongoClient(
        config.MONGO_URI,
        serverSelectionTimeoutMS=config.MONGO_SERVER_SELECTION_TIMEOUT_MS,
    )
    try:
        client.admin.command("ping")
    except ConnectionFailure:
        client.close()
        return None, None
    return client, client[config.MONGO_DATABASE_NAME]

"""
Exportación de documentos al formato de fixtures.

Escribe un documento Extended JSON canónico por línea, sin array ni comas,
que es exactamente lo que DocumentDecoder lee. Sirve para capturar fixtures
desde una base real:

    dump_collection(db, "users", "tests/fixtures/users.json", limit=200)

El modo canónico conserva Int64, double, Decimal128, fechas y ObjectId, así
que cargar el archivo generado reproduce los mismos documentos.
"""

import os

from bson.json_util import dumps

from . import config


def dump_documents(documents, stream, json_options=None) -> int:
    """
    Serializa documentos a un stream de texto, uno por línea.

    Args:
        documents: Iterable de documentos (dicts)
        stream: Objeto file-like abierto en modo texto
        json_options: JSONOptions (default: config.JSON_OPTIONS)

    Returns:
        int: Cantidad de documentos escritos
    """
    json_options = json_options or config.get_json_options()
    count = 0
    for document in documents:
        stream.write(dumps(document, json_options=json_options, ensure_ascii=False))
        stream.write("\n")
        count += 1
    return count


def dump_collection(db, collection, path, limit=None, session=None, verbose=None) -> int:
    """
    Exporta una colección a un archivo de fixture.

    Args:
        db: Base de datos (pymongo Database)
        collection: Nombre de la colección
        path: Archivo destino (se crean los directorios intermedios)
        limit: Máximo de documentos a exportar (None = todos)
        session: ClientSession opcional
        verbose: Imprime el resumen (default: config.VERBOSE)

    Returns:
        int: Cantidad de documentos exportados
    """
    cursor = db[collection].find(session=session).sort("_id", 1)
    if limit:
        cursor = cursor.limit(limit)

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        count = dump_documents(cursor, f)

    if config.is_verbose(verbose):
        print(f"📄 {collection}: {count:,} documentos → {path}")
    return count


def dump_fixtures(db, root, collections=None, limit=None, session=None) -> dict:
    """
    Exporta varias colecciones a `root/<colección>.json`.

    El resultado se puede volver a cargar con load(db, root).

    Args:
        db: Base de datos (pymongo Database)
        root: Directorio destino
        collections: Colecciones a exportar (None = todas las de la base)
        limit: Máximo de documentos por colección
        session: ClientSession opcional

    Returns:
        dict: {colección: documentos exportados}
    """
    if collections is None:
        collections = db.list_collection_names(session=session)

    exported = {}
    for collection in sorted(collections):
        path = os.path.join(root, f"{collection}.json")
        exported[collection] = dump_collection(
            db, collection, path, limit=limit, session=session
        )
    return exported

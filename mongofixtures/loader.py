"""
Carga de fixtures en MongoDB: un archivo → un batch → un bulk_write.

Flujo por colección (en orden alfabético de colección):
1. Abrir el archivo (OpenError si falla)
2. Decodificar documento por documento (DecodeError / TypeExtensionError)
3. Convertir a BSON nativo y envolver en InsertOne (ConversionError)
4. bulk_write ordenado del batch completo (WriteError si el servidor rechaza)

Cualquier falla corta la carga completa. Las colecciones ya escritas NO se
revierten y no hay reintentos.

POLÍTICA DE ARCHIVOS VACÍOS:
Un fixture sin documentos NO ejecuta bulk_write (pymongo rechaza un bulk
vacío con InvalidOperation). La colección figura con 0 en el resultado y no
se crea en la base.

Uso:
    # Carga única: descubre y carga
    counts = load(db, "tests/fixtures")

    # Carga reutilizable: mismo mapa, varias corridas
    loader = Loader(db, {"users": "tests/fixtures/users.json"})
    loader.load()
"""

import sys
from contextlib import nullcontext

import pymongo
from pymongo import InsertOne
from pymongo.errors import BulkWriteError, PyMongoError

from . import config
from .decoder import DocumentDecoder
from .discovery import FixtureSet, discover
from .errors import ConversionError, DecodeError, FixtureError, OpenError, WriteError
from .extended_types import to_native


class Loader:
    """
    Carga un FixtureSet en una base de datos.

    El handle de la base se inyecta: puede ser un pymongo Database o
    cualquier objeto que soporte db[nombre].bulk_write(ops, ...).

    Attributes:
        db: Base de datos destino
        fixtures (FixtureSet): Mapa colección → archivo
        verbose (bool): Imprime progreso por colección
    """

    def __init__(self, db, paths, verbose=None):
        self.db = db
        self.fixtures = paths if isinstance(paths, FixtureSet) else FixtureSet(paths)
        self.verbose = config.is_verbose(verbose)

    # =========================================================================
    # MÉTODOS PÚBLICOS
    # =========================================================================

    def load(self, session=None, timeout=None) -> dict:
        """
        Carga todas las colecciones del FixtureSet.

        Args:
            session: ClientSession de pymongo a usar en cada bulk_write
            timeout: Deadline en segundos para toda la carga (pymongo.timeout)

        Returns:
            dict: {colección: documentos insertados}

        Raises:
            OpenError, DecodeError, TypeExtensionError, ConversionError, WriteError:
                La primera falla encontrada, con colección y archivo
        """
        deadline = pymongo.timeout(timeout) if timeout is not None else nullcontext()
        inserted = {}

        with deadline:
            for collection in sorted(self.fixtures):
                path = self.fixtures[collection]
                try:
                    operations = self._read_batch(collection, path)
                    inserted[collection] = self._commit(
                        collection, path, operations, session
                    )
                except FixtureError as e:
                    self._report_failure(e)
                    raise

        if self.verbose:
            total = sum(inserted.values())
            print(f"✅ Fixtures cargados: {len(inserted)} colecciones, {total:,} documentos")
        return inserted

    # =========================================================================
    # MÉTODOS PRIVADOS - ARMADO DEL BATCH
    # =========================================================================

    def _read_batch(self, collection, path):
        """
        Abre el archivo y arma la lista de InsertOne.

        El archivo se cierra antes de retornar, también ante errores.
        """
        try:
            stream = open(path, "rb")
        except OSError as e:
            raise OpenError(
                f"No se pudo abrir el fixture: {e.strerror or e}",
                collection=collection,
                path=path,
            ) from e

        operations = []
        with stream:
            decoder = DocumentDecoder(stream)
            try:
                for document in decoder:
                    operations.append(InsertOne(to_native(document)))
            except (DecodeError, ConversionError) as e:
                e.attach(collection, path)
                raise

        return operations

    # =========================================================================
    # MÉTODOS PRIVADOS - ESCRITURA
    # =========================================================================

    def _commit(self, collection, path, operations, session):
        """
        Ejecuta un único bulk_write ordenado para la colección.

        Returns:
            int: Documentos insertados (0 si el batch estaba vacío)
        """
        if not operations:
            if self.verbose:
                print(f"   ⚠️  {collection}: fixture vacío, se omite la escritura")
            return 0

        try:
            result = self.db[collection].bulk_write(
                operations, ordered=True, session=session
            )
        except BulkWriteError as e:
            failed = len(e.details.get("writeErrors", []))
            raise WriteError(
                f"El servidor rechazó {failed} de {len(operations)} inserts",
                collection=collection,
                path=path,
                details=e.details,
            ) from e
        except PyMongoError as e:
            raise WriteError(
                f"Falló el bulk_write: {e}", collection=collection, path=path
            ) from e

        if self.verbose:
            print(f"   📦 {collection}: {result.inserted_count:,} documentos insertados")
        return result.inserted_count

    def _report_failure(self, error):
        if self.verbose:
            print(f"❌ {error}", file=sys.stderr)


def load(db, root, session=None, timeout=None, verbose=None) -> dict:
    """
    Descubre los fixtures bajo `root` y los carga en `db` en una sola llamada.

    Args:
        db: Base de datos destino (pymongo Database)
        root: Directorio raíz de los fixtures
        session: ClientSession opcional para los bulk_write
        timeout: Deadline en segundos para toda la carga
        verbose: Imprime progreso (default: config.VERBOSE)

    Returns:
        dict: {colección: documentos insertados}

    Raises:
        DiscoveryError: Si no se puede recorrer `root`
        FixtureError: Primera falla de la carga (ver Loader.load)

    Ejemplo:
        >>> counts = load(client["test"], "tests/fixtures")
        >>> counts
        {'orders': 3, 'users': 2}
    """
    fixtures = discover(root, verbose=verbose)
    return Loader(db, fixtures, verbose=verbose).load(session=session, timeout=timeout)


def drop_fixtures(db, fixtures, session=None):
    """
    Elimina las colecciones nombradas por un FixtureSet.

    Pensado para el teardown de tests: deja la base lista para volver a
    cargar los mismos fixtures (la carga no hace upsert).

    Args:
        db: Base de datos
        fixtures: FixtureSet o cualquier mapping colección → archivo
        session: ClientSession opcional
    """
    for collection in sorted(fixtures):
        db.drop_collection(collection, session=session)

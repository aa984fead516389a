"""
Carga de fixtures de test en MongoDB (un archivo por colección).

Estructura:
    discovery.py: discover() y FixtureSet (archivo → colección)
    decoder.py: DocumentDecoder (Extended JSON concatenado, en streaming)
    extended_types.py: Tabla TYPE_DECODERS ($oid, $date, ...) y to_native()
    loader.py: Loader, load() y drop_fixtures()
    dump.py: Exportación de colecciones al formato de fixtures
    errors.py: Jerarquía FixtureError
    config.py: Constantes y opciones de codec compartidas (.env)

Uso típico en un test de integración:
    from mongofixtures import load, drop_fixtures, discover

    counts = load(db, "tests/fixtures")
    ...
    drop_fixtures(db, discover("tests/fixtures"))
"""

from .decoder import DocumentDecoder
from .discovery import FixtureSet, collection_name_for, discover
from .dump import dump_collection, dump_documents, dump_fixtures
from .errors import (
    ConversionError,
    DecodeError,
    DiscoveryError,
    FixtureError,
    OpenError,
    TypeExtensionError,
    WriteError,
)
from .extended_types import TYPE_DECODERS, to_native
from .loader import Loader, drop_fixtures, load

__all__ = [
    "ConversionError",
    "DecodeError",
    "DiscoveryError",
    "DocumentDecoder",
    "FixtureError",
    "FixtureSet",
    "Loader",
    "OpenError",
    "TYPE_DECODERS",
    "TypeExtensionError",
    "WriteError",
    "collection_name_for",
    "discover",
    "drop_fixtures",
    "dump_collection",
    "dump_documents",
    "dump_fixtures",
    "load",
    "to_native",
]

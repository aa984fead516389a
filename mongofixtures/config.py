"""
Configuración centralizada para la carga de fixtures MongoDB.

ARQUITECTURA:
- mongofixtures/discovery.py: Descubre archivos de fixtures (1 archivo = 1 colección)
- mongofixtures/decoder.py: Decodifica Extended JSON en streaming
- mongofixtures/loader.py: Arma batches de InsertOne y hace bulk_write por colección
- mongofixtures/config.py: Este archivo (constantes y opciones de codec compartidas)

FLUJO DE CARGA:
1. discover(root) construye el mapa colección → archivo
2. Loader abre cada archivo y decodifica documento por documento
3. Cada documento se convierte a BSON nativo con CODEC_OPTIONS
4. Un solo bulk_write por colección (los archivos vacíos no escriben)

USO DE LAS FUNCIONES HELPER:
    # Opciones para convertir documentos a su forma nativa
    codec_options = get_codec_options()

    # Opciones para serializar fixtures (dump)
    json_options = get_json_options()

Las variables MONGO_* solo las usan los tests contra un servidor real.
"""

import os
from datetime import timezone

from bson.binary import UuidRepresentation
from bson.codec_options import CodecOptions
from bson.json_util import CANONICAL_JSON_OPTIONS
from dotenv import load_dotenv

# Carga las variables del archivo .env en las variables de entorno del sistema
load_dotenv()

# --- Configuración de MongoDB (solo tests de integración) ---
MONGO_URI = os.getenv("MONGO_URI") or "mongodb://localhost:27017/"
MONGO_DATABASE_NAME = os.getenv("MONGO_DATABASE_NAME") or "mongofixtures_test"
MONGO_SERVER_SELECTION_TIMEOUT_MS = 2000

# --- Configuración de Lectura ---
READ_CHUNK_SIZE = 64 * 1024  # Bytes leídos por iteración del decoder
FIXTURE_ENCODING = "utf-8-sig"  # Tolera BOM al inicio del archivo

# --- Salida por consola ---
# MONGOFIXTURES_VERBOSE=1 activa los mensajes de progreso por defecto
VERBOSE = (os.getenv("MONGOFIXTURES_VERBOSE") or "").lower() in ("1", "true", "yes", "si")

# --- Opciones de codec BSON ---
# Fechas siempre tz-aware en UTC, UUIDs en representación estándar (subtipo 4)
CODEC_OPTIONS = CodecOptions(
    tz_aware=True,
    tzinfo=timezone.utc,
    uuid_representation=UuidRepresentation.STANDARD,
)

# Modo canónico: conserva int32 vs int64 vs double al serializar
JSON_OPTIONS = CANONICAL_JSON_OPTIONS.with_options(
    tz_aware=True,
    tzinfo=timezone.utc,
    uuid_representation=UuidRepresentation.STANDARD,
)


# --- Funciones Helper ---


def get_codec_options() -> CodecOptions:
    """
    Retorna las opciones de codec usadas para convertir documentos a BSON nativo.

    Returns:
        CodecOptions: tz_aware=True, tzinfo=UTC, uuid_representation=STANDARD

    Ejemplo:
        >>> opts = get_codec_options()
        >>> opts.tz_aware
        True
    """
    return CODEC_OPTIONS


def get_json_options():
    """
    Retorna las opciones de Extended JSON usadas para escribir fixtures.

    Usa el modo canónico para que la decodificación posterior reproduzca
    exactamente los tipos (Int64 no se degrada a int, double no se
    confunde con entero).

    Returns:
        JSONOptions: Opciones canónicas con las mismas reglas que CODEC_OPTIONS
    """
    return JSON_OPTIONS


def is_verbose(verbose=None) -> bool:
    """
    Resuelve el flag de salida por consola.

    Args:
        verbose: Valor explícito pasado por el llamador (None = usar config)

    Returns:
        bool: True si deben imprimirse mensajes de progreso

    Ejemplo:
        >>> is_verbose(True)
        True
        >>> is_verbose(None) == VERBOSE
        True
    """
    if verbose is None:
        return VERBOSE
    return bool(verbose)

"""
Resolución de tags de Extended JSON a tipos nativos de bson.

Cada tipo no nativo de JSON se escribe en los fixtures como un objeto cuyo
primer tag reconocido selecciona la función de decodificación:

    {"$oid": "5f1a..."}                         → ObjectId
    {"$date": "2024-01-02T03:04:05Z"}           → datetime (UTC)
    {"$date": {"$numberLong": "1704164645000"}} → datetime (UTC)
    {"$binary": {"base64": "...", "subType": "00"}} → Binary
    {"$numberLong": "42"}                       → Int64

Agregar un tipo nuevo = una entrada en TYPE_DECODERS.

La función resolve_pairs() se usa como object_pairs_hook del scanner JSON:
se llama con cada objeto (de adentro hacia afuera), así que cuando llega
{"$date": {"$numberLong": "..."}} el valor interno ya es un Int64.
"""

import base64
import uuid
from datetime import datetime, timedelta, timezone

import bson
from bson import DBRef, Decimal128, Int64, ObjectId
from bson.binary import Binary
from bson.code import Code
from bson.errors import BSONError
from bson.max_key import MaxKey
from bson.min_key import MinKey
from bson.regex import Regex
from bson.timestamp import Timestamp

from . import config
from .errors import ConversionError, TypeExtensionError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1


# =========================================================================
# HELPERS DE VALIDACIÓN
# =========================================================================


def _expect_keys(document, required, optional=()):
    """Valida que el objeto tagueado tenga exactamente las keys esperadas."""
    keys = set(document)
    missing = set(required) - keys
    extra = keys - set(required) - set(optional)
    if missing:
        raise ValueError(f"faltan campos {sorted(missing)}")
    if extra:
        raise ValueError(f"campos inesperados {sorted(extra)}")


def _expect_str(value, what="un string"):
    if not isinstance(value, str):
        raise TypeError(f"se esperaba {what}, se obtuvo {type(value).__name__}")
    return value


def _expect_int(value):
    # bool es subclase de int en Python, pero no es un entero válido acá
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"se esperaba un entero, se obtuvo {type(value).__name__}")
    return value


# =========================================================================
# DECODIFICADORES POR TAG
# =========================================================================


def _decode_oid(document):
    _expect_keys(document, ["$oid"])
    return ObjectId(_expect_str(document["$oid"]))


def _decode_date(document):
    _expect_keys(document, ["$date"])
    value = document["$date"]

    # Formato relajado: ISO-8601
    if isinstance(value, str):
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    # Formato canónico ({"$numberLong": ...} ya resuelto a Int64) o legacy (ms)
    millis = _expect_int(value)
    return EPOCH + timedelta(milliseconds=millis)


def _decode_binary(document):
    value = document["$binary"]

    # Formato legacy: {"$binary": "<base64>", "$type": "<hex>"}
    if isinstance(value, str):
        _expect_keys(document, ["$binary", "$type"])
        payload, subtype = value, document["$type"]
    else:
        _expect_keys(document, ["$binary"])
        if not isinstance(value, dict):
            raise TypeError("se esperaba un objeto {base64, subType}")
        _expect_keys(value, ["base64", "subType"])
        payload, subtype = value["base64"], value["subType"]

    subtype = _expect_str(subtype, "un subType hex")
    if not 1 <= len(subtype) <= 2:
        raise ValueError(f"subType '{subtype}' debe tener 1 o 2 dígitos hex")
    data = base64.b64decode(_expect_str(payload, "base64"), validate=True)
    return Binary(data, int(subtype, 16))


def _decode_uuid(document):
    _expect_keys(document, ["$uuid"])
    return Binary.from_uuid(uuid.UUID(_expect_str(document["$uuid"])))


def _decode_number_int(document):
    _expect_keys(document, ["$numberInt"])
    number = int(_expect_str(document["$numberInt"]))
    if not INT32_MIN <= number <= INT32_MAX:
        raise OverflowError(f"{number} fuera de rango int32")
    return number


def _decode_number_long(document):
    _expect_keys(document, ["$numberLong"])
    number = int(_expect_str(document["$numberLong"]))
    if not INT64_MIN <= number <= INT64_MAX:
        raise OverflowError(f"{number} fuera de rango int64")
    return Int64(number)


def _decode_number_double(document):
    _expect_keys(document, ["$numberDouble"])
    return float(_expect_str(document["$numberDouble"]))


def _decode_number_decimal(document):
    _expect_keys(document, ["$numberDecimal"])
    return Decimal128(_expect_str(document["$numberDecimal"]))


def _decode_timestamp(document):
    _expect_keys(document, ["$timestamp"])
    value = document["$timestamp"]
    if not isinstance(value, dict):
        raise TypeError("se esperaba un objeto {t, i}")
    _expect_keys(value, ["t", "i"])
    return Timestamp(_expect_int(value["t"]), _expect_int(value["i"]))


def _decode_regular_expression(document):
    _expect_keys(document, ["$regularExpression"])
    value = document["$regularExpression"]
    if not isinstance(value, dict):
        raise TypeError("se esperaba un objeto {pattern, options}")
    _expect_keys(value, ["pattern", "options"])
    return Regex(_expect_str(value["pattern"]), _expect_str(value["options"]))


def _decode_legacy_regex(document):
    # {"$regex": {...}} con un documento es el operador de query: se deja igual
    pattern = document["$regex"]
    if not isinstance(pattern, str):
        return document
    _expect_keys(document, ["$regex"], optional=["$options"])
    return Regex(pattern, _expect_str(document.get("$options", ""), "un string de opciones"))


def _decode_code(document):
    _expect_keys(document, ["$code"], optional=["$scope"])
    code = _expect_str(document["$code"])
    if "$scope" in document:
        scope = document["$scope"]
        if not isinstance(scope, dict):
            raise TypeError("$scope debe ser un documento")
        return Code(code, scope)
    return Code(code)


def _decode_symbol(document):
    # bson no tiene tipo Symbol en Python 3: se decodifica como str
    _expect_keys(document, ["$symbol"])
    return _expect_str(document["$symbol"])


def _decode_min_key(document):
    _expect_keys(document, ["$minKey"])
    if document["$minKey"] != 1:
        raise ValueError("$minKey debe ser 1")
    return MinKey()


def _decode_max_key(document):
    _expect_keys(document, ["$maxKey"])
    if document["$maxKey"] != 1:
        raise ValueError("$maxKey debe ser 1")
    return MaxKey()


def _decode_undefined(document):
    _expect_keys(document, ["$undefined"])
    if document["$undefined"] is not True:
        raise ValueError("$undefined debe ser true")
    return None


def _decode_dbref(document):
    if "$id" not in document:
        raise ValueError("falta campo '$id'")
    collection = _expect_str(document["$ref"])
    database = document.get("$db")
    if database is not None:
        _expect_str(database)
    extra = {k: v for k, v in document.items() if k not in ("$ref", "$id", "$db")}
    return DBRef(collection, document["$id"], database, **extra)


TYPE_DECODERS = {
    "$oid": _decode_oid,
    "$date": _decode_date,
    "$binary": _decode_binary,
    "$uuid": _decode_uuid,
    "$numberInt": _decode_number_int,
    "$numberLong": _decode_number_long,
    "$numberDouble": _decode_number_double,
    "$numberDecimal": _decode_number_decimal,
    "$timestamp": _decode_timestamp,
    "$regularExpression": _decode_regular_expression,
    "$regex": _decode_legacy_regex,
    "$code": _decode_code,
    "$symbol": _decode_symbol,
    "$minKey": _decode_min_key,
    "$maxKey": _decode_max_key,
    "$undefined": _decode_undefined,
    "$ref": _decode_dbref,
}

# Errores que una función de TYPE_DECODERS puede lanzar ante un payload inválido
# (InvalidId es BSONError; binascii.Error es ValueError; Decimal128 lanza ArithmeticError)
PAYLOAD_ERRORS = (BSONError, ValueError, TypeError, ArithmeticError)


# =========================================================================
# API PÚBLICA
# =========================================================================


def resolve_pairs(pairs):
    """
    object_pairs_hook para json: arma el documento y resuelve tags conocidos.

    Args:
        pairs: Lista de tuplas (clave, valor) en el orden del archivo

    Returns:
        dict | tipo bson: Documento ordenado, o el tipo nativo si el objeto
                          es un tag reconocido

    Raises:
        TypeExtensionError: Si el tag es reconocido pero el payload es inválido
    """
    document = dict(pairs)
    tag = next((key for key, _ in pairs if key in TYPE_DECODERS), None)
    if tag is None:
        return document

    try:
        return TYPE_DECODERS[tag](document)
    except PAYLOAD_ERRORS as e:
        raise TypeExtensionError(tag, str(e)) from e


def to_native(document, codec_options=None):
    """
    Convierte un documento decodificado a su forma BSON nativa.

    Codifica y decodifica con bson usando las opciones del proyecto, de modo
    que el resultado es exactamente lo que el servidor va a almacenar
    (Binary subtipo 0 → bytes, subtipo 4 → uuid.UUID, fechas en UTC).

    Args:
        document: Documento producido por DocumentDecoder
        codec_options: CodecOptions (default: config.CODEC_OPTIONS)

    Returns:
        dict: Documento nativo, con el mismo orden de campos

    Raises:
        ConversionError: Si el valor no es un documento o bson no lo puede
                         codificar (ej: entero de más de 64 bits)
    """
    codec_options = codec_options or config.get_codec_options()

    if not isinstance(document, dict):
        raise ConversionError(
            f"Se esperaba un documento, se obtuvo {type(document).__name__}"
        )

    try:
        raw = bson.encode(document, codec_options=codec_options)
    except (BSONError, OverflowError, TypeError, ValueError) as e:
        raise ConversionError(f"No se pudo convertir el documento a BSON: {e}") from e
    return bson.decode(raw, codec_options=codec_options)

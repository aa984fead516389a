"""
Decodificador en streaming de archivos de fixtures.

Un archivo de fixture es una secuencia de objetos Extended JSON concatenados,
separados solo por espacios en blanco (NO es un array, NO hay comas):

    {"_id": {"$oid": "5f1a2b3c4d5e6f7a8b9c0d1e"}, "name": "Ana"}
    {"_id": {"$oid": "5f1a2b3c4d5e6f7a8b9c0d1f"}, "name": "Luis"}

El archivo se lee en bloques de config.READ_CHUNK_SIZE bytes, nunca completo,
y cada documento se entrega apenas termina de parsearse. Si un documento no
entra en lo leído, la próxima lectura es al menos tan grande como lo que ya
está pendiente (cada documento se re-parsea O(log n) veces). Un error de
sintaxis lejos del final del buffer se reporta sin seguir leyendo.

Uso:
    with open(path, "rb") as f:
        decoder = DocumentDecoder(f)
        for doc in decoder:
            ...

    # O con la interfaz explícita (None = fin del stream)
    doc = decoder.next_document()
"""

import codecs
import json
import re

from . import config
from .errors import DecodeError, TypeExtensionError
from .extended_types import resolve_pairs

WHITESPACE = re.compile(r"\s*")

# Un error a más de esta distancia del final del buffer no lo explica un bloque
# cortado (el literal más largo, -Infinity, tiene 9 caracteres)
TRUNCATION_WINDOW = 16


class DocumentDecoder:
    """
    Iterador de documentos sobre un stream binario.

    No es reiniciable ni thread-safe: un decoder = un archivo = un consumidor.

    Attributes:
        documents_read (int): Cantidad de documentos entregados hasta ahora
    """

    def __init__(self, stream, chunk_size=None, encoding=None):
        """
        Args:
            stream: Objeto file-like abierto en modo binario
            chunk_size: Bytes por lectura (default: config.READ_CHUNK_SIZE)
            encoding: Encoding del archivo (default: config.FIXTURE_ENCODING)
        """
        self._stream = stream
        self._chunk_size = chunk_size or config.READ_CHUNK_SIZE
        self._text_decoder = codecs.getincrementaldecoder(
            encoding or config.FIXTURE_ENCODING
        )()
        self._scanner = json.JSONDecoder(object_pairs_hook=resolve_pairs)

        self._buffer = ""
        self._pos = 0  # Posición dentro de _buffer
        self._consumed = 0  # Caracteres descartados del inicio del buffer
        self._line = 1  # Línea donde empieza _buffer
        self._eof = False

        self.documents_read = 0

    def __iter__(self):
        return self

    def next_document(self):
        """
        Decodifica el próximo documento del stream.

        Returns:
            dict | None: Documento con tags resueltos, o None al final del stream

        Raises:
            DecodeError, TypeExtensionError: Ver __next__()
        """
        try:
            return next(self)
        except StopIteration:
            return None

    def __next__(self):
        """
        Decodifica el próximo documento del stream.

        Un top-level que resuelve a un tipo (ej: {"$undefined": true}) se
        entrega tal cual; rechazarlo es trabajo de to_native().

        Raises:
            StopIteration: Al final del stream
            DecodeError: Sintaxis inválida, UTF-8 inválido o valor top-level
                         que no es un objeto
            TypeExtensionError: Tag $ reconocido con payload inválido
        """
        while True:
            self._skip_whitespace()

            if self._pos >= len(self._buffer):
                if self._eof:
                    raise StopIteration
                self._fill()
                continue

            if self._buffer[self._pos] != "{":
                raise self._error(
                    f"Se esperaba '{{' al inicio del documento, se encontró "
                    f"{self._buffer[self._pos]!r}",
                    self._pos,
                )

            start = self._pos
            try:
                document, end = self._scanner.raw_decode(self._buffer, start)
            except json.JSONDecodeError as e:
                # Puede ser un objeto cortado por el límite del bloque: leer más
                if not self._eof and self._may_be_truncated(e):
                    self._fill(len(self._buffer) - start)
                    continue
                raise self._error(f"JSON inválido: {e.msg}", e.pos) from e
            except TypeExtensionError as e:
                e.line, e.offset = self._locate(start)
                e.document_index = self.documents_read
                raise

            self._pos = end
            self.documents_read += 1
            self._compact()
            return document

    # =========================================================================
    # MÉTODOS PRIVADOS - BUFFER
    # =========================================================================

    def _fill(self, pending=0):
        """
        Lee el próximo bloque del stream y lo agrega al buffer.

        Args:
            pending: Caracteres de un documento todavía incompleto; la
                     lectura es al menos de ese tamaño para que el buffer
                     crezca al doble en cada reintento
        """
        chunk = self._stream.read(max(self._chunk_size, pending))
        try:
            if chunk:
                self._buffer += self._text_decoder.decode(chunk)
            else:
                self._buffer += self._text_decoder.decode(b"", final=True)
                self._eof = True
        except UnicodeDecodeError as e:
            raise self._error(
                f"El archivo no es {config.FIXTURE_ENCODING} válido: {e.reason}",
                len(self._buffer),
            ) from e

    def _may_be_truncated(self, error):
        """True si más texto del stream podría completar el documento."""
        if error.msg.startswith("Unterminated string"):
            return True
        return len(self._buffer) - error.pos <= TRUNCATION_WINDOW

    def _skip_whitespace(self):
        self._pos = WHITESPACE.match(self._buffer, self._pos).end()

    def _compact(self):
        """Descarta el texto ya consumido para acotar la memoria."""
        if self._pos < self._chunk_size:
            return
        self._line += self._buffer.count("\n", 0, self._pos)
        self._consumed += self._pos
        self._buffer = self._buffer[self._pos:]
        self._pos = 0

    def _locate(self, pos):
        """Traduce una posición del buffer a (línea, offset absoluto)."""
        line = self._line + self._buffer.count("\n", 0, pos)
        return line, self._consumed + pos

    def _error(self, message, pos):
        line, offset = self._locate(pos)
        return DecodeError(
            message,
            line=line,
            offset=offset,
            document_index=self.documents_read,
        )

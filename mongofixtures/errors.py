"""
Jerarquía de errores de la carga de fixtures.

Todos los errores heredan de FixtureError y llevan la colección y el archivo
donde ocurrieron, para identificar el fixture roto sin volver a correr con
trazas. La causa original queda encadenada (raise ... from).

    FixtureError
    ├── DiscoveryError      No se pudo recorrer el directorio raíz
    ├── OpenError           No se pudo abrir un archivo de fixture
    ├── DecodeError         Sintaxis inválida en el archivo
    │   └── TypeExtensionError  Tag $ reconocido con payload inválido
    ├── ConversionError     El documento no se puede llevar a BSON
    └── WriteError          El servidor rechazó el bulk_write
"""


class FixtureError(Exception):
    """
    Error base de mongofixtures.

    Attributes:
        collection (str|None): Colección destino del fixture
        path (str|None): Ruta del archivo de fixture
    """

    def __init__(self, message, collection=None, path=None):
        super().__init__(message)
        self.message = message
        self.collection = collection
        self.path = path

    def attach(self, collection=None, path=None):
        """
        Completa colección y ruta si todavía no estaban definidas.

        Returns:
            FixtureError: La misma instancia
        """
        if self.collection is None:
            self.collection = collection
        if self.path is None:
            self.path = path
        return self

    def __str__(self):
        context = []
        if self.collection is not None:
            context.append(f"colección '{self.collection}'")
        if self.path is not None:
            context.append(f"archivo '{self.path}'")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class DiscoveryError(FixtureError):
    """Falla al recorrer el directorio de fixtures."""


class OpenError(FixtureError):
    """Falla al abrir un archivo de fixture."""


class DecodeError(FixtureError):
    """
    Sintaxis inválida dentro de un archivo de fixture.

    Attributes:
        line (int|None): Línea (1-based) donde se detectó el error
        offset (int|None): Posición en caracteres desde el inicio del archivo
        document_index (int|None): Índice (0-based) del documento en el archivo
    """

    def __init__(
        self,
        message,
        collection=None,
        path=None,
        line=None,
        offset=None,
        document_index=None,
    ):
        super().__init__(message, collection=collection, path=path)
        self.line = line
        self.offset = offset
        self.document_index = document_index

    def __str__(self):
        text = super().__str__()
        if self.line is not None:
            text += f" [línea {self.line}, documento #{self.document_index}]"
        return text


class TypeExtensionError(DecodeError):
    """
    Tag de Extended JSON reconocido pero con payload inválido.

    Ejemplo: {"$oid": "abc"} (un ObjectId necesita 24 caracteres hex).

    Attributes:
        tag (str): Tag que falló (ej: '$oid', '$date')
    """

    def __init__(self, tag, reason, **kwargs):
        super().__init__(f"Valor inválido para {tag}: {reason}", **kwargs)
        self.tag = tag


class ConversionError(FixtureError):
    """El documento decodificado no se puede convertir a un documento BSON."""


class WriteError(FixtureError):
    """
    El servidor rechazó el bulk_write de una colección.

    Attributes:
        details (dict|None): BulkWriteError.details cuando está disponible
                             (incluye 'writeErrors' con el índice de cada falla)
    """

    def __init__(self, message, collection=None, path=None, details=None):
        super().__init__(message, collection=collection, path=path)
        self.details = details

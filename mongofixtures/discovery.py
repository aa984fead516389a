"""
Descubrimiento de archivos de fixtures.

CONVENCIÓN DE NAMING:
Archivo                        Colección
--------------------          -----------
fixtures/users.json       →   users
fixtures/sub/orders.json  →   orders
fixtures/data.tar.gz      →   data.tar     (solo se quita la última extensión)

Todos los archivos regulares debajo del directorio raíz son fixtures, a
cualquier profundidad. Los directorios se recorren pero nunca se nombran.

Si dos archivos producen el mismo nombre de colección gana el último en
orden lexicográfico de ruta (el recorrido es determinístico).
"""

import os
from collections.abc import Mapping

from . import config
from .errors import DiscoveryError


class FixtureSet(Mapping):
    """
    Mapa inmutable colección → ruta del archivo de fixture.

    Ejemplo:
        >>> fixtures = FixtureSet({"users": "fixtures/users.json"})
        >>> fixtures["users"]
        'fixtures/users.json'
    """

    def __init__(self, paths=None):
        self._paths = dict(paths or {})

    def __getitem__(self, collection):
        return self._paths[collection]

    def __iter__(self):
        return iter(self._paths)

    def __len__(self):
        return len(self._paths)

    def __repr__(self):
        return f"FixtureSet({self._paths!r})"


def collection_name_for(path) -> str:
    """
    Deriva el nombre de colección desde la ruta de un archivo.

    Args:
        path: Ruta del archivo (ej: 'fixtures/users.json')

    Returns:
        str: Nombre base sin la última extensión (ej: 'users')
    """
    return os.path.splitext(os.path.basename(path))[0]


def _raise_walk_error(error):
    raise DiscoveryError(
        f"No se pudo leer el directorio de fixtures: {error.strerror or error}",
        path=error.filename,
    ) from error


def discover(root, verbose=None) -> FixtureSet:
    """
    Recorre `root` recursivamente y arma el FixtureSet.

    Args:
        root: Directorio raíz de los fixtures
        verbose: Imprime cada fixture encontrado (default: config.VERBOSE)

    Returns:
        FixtureSet: Un entry por nombre de colección

    Raises:
        DiscoveryError: Si root no existe, no es un directorio, o algún
                        subdirectorio no se puede leer
    """
    verbose = config.is_verbose(verbose)
    root = os.fspath(root)

    if not os.path.isdir(root):
        reason = "no es un directorio" if os.path.exists(root) else "no existe"
        raise DiscoveryError(
            f"El directorio de fixtures {reason}", path=root
        )

    if verbose:
        print(f"🔍 Buscando fixtures en '{root}'...")

    files = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        for filename in filenames:
            path = os.path.join(dirpath, filename)
            if os.path.isfile(path):
                files.append(path)

    paths = {}
    for path in sorted(files):
        collection = collection_name_for(path)
        if verbose and collection in paths:
            print(
                f"   ⚠️  '{collection}': {paths[collection]} reemplazado por {path}"
            )
        paths[collection] = path

    if verbose:
        print(f"   ✅ {len(paths)} fixture(s) encontrados")

    return FixtureSet(paths)

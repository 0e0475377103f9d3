"""
Utilities for handling blob storage operations for lease documents.

Documents are addressed by path-based keys (``leases/<name>.pdf``,
``leases/signatures/<id>-<role>.png``...). Writes are atomic: content is
written to a temporary file in the target directory and renamed into place,
so a reader never observes a partially written PDF or image.
"""

import logging
import os
import tempfile

from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage, default_storage

from core.exceptions import IOFailure, NotFoundFailure

logger = logging.getLogger(__name__)


class AtomicFileSystemStorage(FileSystemStorage):
    """
    FileSystemStorage qui écrase les clés existantes et publie chaque
    fichier via os.replace.
    """

    def get_available_name(self, name, max_length=None):
        # Sémantique d'écrasement : une clé désigne toujours le même fichier
        return name

    def _save(self, name, content):
        full_path = self.path(name)
        directory = os.path.dirname(full_path)
        os.makedirs(directory, exist_ok=True)
        if self.directory_permissions_mode is not None:
            os.chmod(directory, self.directory_permissions_mode)

        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as tmp:
                if hasattr(content, "seek"):
                    content.seek(0)
                for chunk in content.chunks():
                    tmp.write(chunk)
            if self.file_permissions_mode is not None:
                os.chmod(tmp_path, self.file_permissions_mode)
            os.replace(tmp_path, full_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        return str(name).replace("\\", "/")


def save_bytes(name: str, data: bytes, storage=None) -> str:
    """
    Enregistre des octets sous la clé donnée (écrasement atomique).

    Returns:
        str: Clé effectivement utilisée par le stockage

    Raises:
        IOFailure: Si l'écriture échoue
    """
    storage = storage or default_storage
    try:
        saved_name = storage.save(name, ContentFile(data))
    except OSError as e:
        raise IOFailure(f"Impossible d'écrire {name}: {e}") from e

    logger.info(f"File saved successfully: {saved_name} ({len(data)} bytes)")
    return saved_name


def read_bytes(name: str, storage=None) -> bytes:
    """
    Lit le contenu complet d'une clé.

    Raises:
        NotFoundFailure: Si la clé n'existe pas
        IOFailure: Si la lecture échoue
    """
    storage = storage or default_storage
    if not name or not storage.exists(name):
        raise NotFoundFailure(f"Fichier introuvable: {name}")

    try:
        with storage.open(name, "rb") as f:
            return f.read()
    except OSError as e:
        raise IOFailure(f"Impossible de lire {name}: {e}") from e


def copy_file(source: str, destination: str, storage=None) -> str:
    """Copie une clé vers une autre (écriture atomique de la destination)."""
    storage = storage or default_storage
    logger.info(f"Copying file in storage: {source} -> {destination}")
    return save_bytes(destination, read_bytes(source, storage), storage)


def file_exists(name: str | None, storage=None) -> bool:
    storage = storage or default_storage
    return bool(name) and storage.exists(name)

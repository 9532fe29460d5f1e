"""Almacenamiento de adjuntos de tickets en disco.

Los archivos quedan en <STORAGE_DIR>/tickets/<archivo> y se publican como
/storage/tickets/<archivo> (ver el mount en main.py).
"""

import logging
import random
import re
from datetime import datetime
from pathlib import Path

log = logging.getLogger("gestion.storage")

PUBLIC_PREFIX = "/storage"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class AttachmentStorage:
    def __init__(self, root: Path, folder: str = "tickets"):
        self.root = Path(root)
        self.folder = folder
        (self.root / folder).mkdir(parents=True, exist_ok=True)

    def upload(self, filename: str, content: bytes) -> str:
        """Guarda el archivo y devuelve su URI pública."""
        suffix = Path(filename or "").suffix.lower()
        stem = _UNSAFE_CHARS.sub("_", Path(filename or "adjunto").stem)[:60] or "adjunto"
        stored_name = (
            f"ticket-{datetime.now().strftime('%Y%m%d%H%M%S')}"
            f"-{random.randint(0, 999999):06d}-{stem}{suffix}"
        )
        stored_path = self.root / self.folder / stored_name
        with stored_path.open("wb") as f:
            f.write(content)
        log.info("Adjunto guardado: %s", stored_path)
        return f"{PUBLIC_PREFIX}/{self.folder}/{stored_name}"

    def path_for(self, uri: str) -> Path:
        """Resuelve la URI pública a una ruta dentro del directorio de adjuntos."""
        prefix = f"{PUBLIC_PREFIX}/{self.folder}/"
        if not uri or not uri.startswith(prefix):
            raise ValueError(f"URI de adjunto desconocida: {uri!r}")
        name = uri[len(prefix):]
        if not name or "/" in name or name in (".", ".."):
            raise ValueError(f"URI de adjunto desconocida: {uri!r}")
        return self.root / self.folder / name

    def delete(self, uri: str) -> bool:
        """Elimina el adjunto referenciado; False si ya no existía."""
        path = self.path_for(uri)
        if not path.exists():
            return False
        path.unlink()
        log.info("Adjunto eliminado: %s", path)
        return True

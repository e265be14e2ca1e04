"""
Archivos subidos a disco: notas de audio, miniaturas de posts e imágenes del carrusel.
Las rutas leen el UploadFile y pasan los bytes; aquí se valida y se escribe.
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime
from pathlib import Path

from .config import AUDIO_DIR, CAROUSEL_DIR, MAX_UPLOAD_BYTES, POSTS_DIR
from .errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)

AUDIO_MIME = "audio/webm"
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")
_EXT_RE = re.compile(r"^\.[a-z0-9]{1,8}$")


def unique_name(suffix: str) -> str:
    """<timestamp ms>-<aleatorio><suffix>"""
    stamp = int(datetime.now().timestamp() * 1000)
    return f"{stamp}-{uuid.uuid4().hex[:10]}{suffix}"


def _check_size(content: bytes) -> None:
    if not content:
        raise ValidationFailed("El archivo está vacío")
    if len(content) > MAX_UPLOAD_BYTES:
        mb = MAX_UPLOAD_BYTES / (1024 * 1024)
        raise ValidationFailed(f"El archivo supera el límite de {mb:g}MB")


def _image_suffix(filename: str | None, content_type: str | None) -> str:
    if not content_type or not content_type.startswith("image/"):
        raise ValidationFailed("Solo se permiten imágenes")
    ext = Path(filename or "").suffix.lower()
    return ext if _EXT_RE.match(ext) else ".jpg"


def _write(directory: Path, name: str, content: bytes) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(content)
    logger.info(f"Archivo guardado: {path} ({len(content)} bytes)")
    return path


def save_audio(content: bytes, content_type: str | None) -> dict:
    if content_type != AUDIO_MIME:
        logger.warning(f"Audio rechazado, tipo {content_type}")
        raise ValidationFailed("Solo se permite formato WebM")
    _check_size(content)

    name = unique_name(".webm")
    _write(AUDIO_DIR, name, content)
    url = f"/uploads/audios/{name}"
    return {
        "message": "Audio subido exitosamente",
        "success": True,
        "url": url,
        "audioUrl": url,
        "filename": name,
        "mimetype": content_type,
    }


def save_post_thumbnail(content: bytes, filename: str | None, content_type: str | None) -> str:
    """Devuelve el nombre del archivo dentro de uploads/posts."""
    suffix = _image_suffix(filename, content_type)
    _check_size(content)
    name = unique_name(suffix)
    _write(POSTS_DIR, name, content)
    return name


def save_carousel_image(content: bytes, filename: str | None, content_type: str | None) -> dict:
    suffix = _image_suffix(filename, content_type)
    _check_size(content)
    name = unique_name(suffix)
    _write(CAROUSEL_DIR, name, content)
    return {
        "message": "Imagen subida exitosamente",
        "success": True,
        "url": f"/images/carousel/{name}",
        "filename": name,
        "mimetype": content_type,
    }


def list_carousel_images() -> list[str]:
    if not CAROUSEL_DIR.is_dir():
        return []
    return sorted(
        p.name for p in CAROUSEL_DIR.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def delete_carousel_image(filename: str) -> None:
    if not filename or ".." in filename or "/" in filename or "\\" in filename:
        logger.warning(f"Nombre de archivo rechazado: {filename!r}")
        raise ValidationFailed("Nombre de archivo no válido.")

    path = CAROUSEL_DIR / filename
    if not path.is_file():
        raise NotFound("La imagen no existe.")
    path.unlink()
    logger.info(f"Imagen del carrusel eliminada: {filename}")

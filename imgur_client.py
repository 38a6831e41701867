"""
imgur_client.py

Profile photo upload to the image host. Keyed by IMGUR_CLIENT_ID.
"""

import base64
import logging

import requests

from errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

UPLOAD_URL = "https://api.imgur.com/3/image"
ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/gif")
MAX_IMAGE_BYTES = 5 * 1024 * 1024

GENERIC_UPLOAD_ERROR = "Error desconocido al subir la imagen."


def check_image(data: bytes, mimetype: str):
    if not data:
        raise ValidationError("No se subió ningún archivo.")
    if mimetype not in ALLOWED_MIME_TYPES:
        raise ValidationError("Tipo de archivo no permitido. Solo se permiten JPG, PNG, GIF.")
    if len(data) > MAX_IMAGE_BYTES:
        raise ValidationError("La imagen supera el tamaño máximo de 5 MB.")


def upload_image(client_id, data: bytes, mimetype: str, title=None, description=None, timeout=15) -> str:
    """Upload an image and return its public link."""
    if not client_id:
        raise UpstreamError(
            "NOT_CONFIGURED",
            "Error de configuración del servidor. Contacte al administrador.",
            500,
        )
    check_image(data, mimetype)

    try:
        response = requests.post(
            UPLOAD_URL,
            headers={"Authorization": f"Client-ID {client_id}"},
            json={
                "image": base64.b64encode(data).decode("utf-8"),
                "type": "base64",
                "title": title,
                "description": description,
            },
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.error("Image host unreachable: %s", e)
        raise UpstreamError("UNAVAILABLE", GENERIC_UPLOAD_ERROR)

    try:
        payload = response.json()
    except ValueError:
        payload = {}

    if not response.ok or not payload.get("success"):
        details = payload.get("data")
        message = details.get("error") if isinstance(details, dict) and details.get("error") else GENERIC_UPLOAD_ERROR
        if not isinstance(message, str):
            message = GENERIC_UPLOAD_ERROR
        logger.warning("Image upload failed (%s): %s", response.status_code, payload)
        raise UpstreamError("UPLOAD_FAILED", message, response.status_code if not response.ok else 502)

    link = payload["data"]["link"]
    logger.info("Image uploaded: %s", link)
    return link

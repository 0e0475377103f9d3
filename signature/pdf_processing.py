"""
Incrustation des signatures manuscrites dans le PDF du bail
"""

import base64
import binascii
import io
import logging
import re

import fitz  # PyMuPDF
from django.core.files.storage import default_storage
from PIL import Image, UnidentifiedImageError

from backend.storage_utils import read_bytes, save_bytes
from core.exceptions import IOFailure, NotFoundFailure, RenderFailure, ValidationFailure
from signature.positions import get_signature_position

logger = logging.getLogger(__name__)

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
DATA_URL_PREFIX = re.compile(r"^data:[^,]*;base64,")


def decode_signature_payload(signature) -> bytes:
    """
    Décode une signature reçue du client.

    Accepte des octets PNG bruts, ou une chaîne base64 éventuellement préfixée
    par une data URL (data:image/png;base64,...).

    Raises:
        ValidationFailure: Si la signature est vide, mal encodée ou n'est pas un PNG
    """
    if not signature:
        raise ValidationFailure("Signature is required")

    if isinstance(signature, bytes) and signature.startswith(PNG_MAGIC):
        image_bytes = signature
    else:
        if isinstance(signature, bytes):
            signature = signature.decode("ascii", errors="ignore")
        encoded = "".join(DATA_URL_PREFIX.sub("", signature.strip()).split())
        try:
            image_bytes = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationFailure(f"Signature mal encodée: {e}") from e

    try:
        img = Image.open(io.BytesIO(image_bytes))
        img_format = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationFailure(f"Signature illisible: {e}") from e
    if img_format != "PNG":
        raise ValidationFailure(f"La signature doit être une image PNG (reçu: {img_format})")

    logger.info(f"Signature décodée: {len(image_bytes)} bytes")
    return image_bytes


def normalize_signature_image(image_bytes: bytes) -> bytes:
    """
    Décode l'image de signature et la ré-encode en PNG RGBA.

    Raises:
        RenderFailure: Si l'image ne peut pas être décodée
    """
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise RenderFailure(f"Image de signature illisible: {e}") from e

    output = io.BytesIO()
    img.convert("RGBA").save(output, format="PNG")
    return output.getvalue()


class SignatureEmbedder:
    """
    Superpose les images de signature sur une copie du document de base.

    Le PDF signé est TOUJOURS reconstruit depuis le document de base avec
    l'ensemble des signatures connues, jamais depuis un PDF déjà signé :
    une signature ne peut donc pas être apposée deux fois.
    """

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def embed(self, base_path: str, signatures: dict[str, str], output_path: str) -> str:
        """
        Args:
            base_path: Clé du PDF non signé
            signatures: rôle -> clé de l'image PNG (les rôles absents sont ignorés)
            output_path: Clé du PDF signé à produire

        Returns:
            str: Clé du PDF signé

        Raises:
            RenderFailure: PDF de base illisible ou image non décodable
            IOFailure: Écriture du PDF signé impossible
        """
        try:
            base_bytes = read_bytes(base_path, self.storage)
        except (NotFoundFailure, IOFailure) as e:
            raise RenderFailure(f"Document de base illisible ({base_path}): {e}") from e

        try:
            doc = fitz.open(stream=base_bytes, filetype="pdf")
        except (RuntimeError, ValueError) as e:
            raise RenderFailure(f"Document de base illisible ({base_path}): {e}") from e

        try:
            if doc.page_count == 0:
                raise RenderFailure(f"Document de base vide: {base_path}")

            page = doc[-1]
            page_height = page.rect.height

            for role, image_path in sorted(signatures.items()):
                if not image_path:
                    continue

                position = get_signature_position(role)
                try:
                    raw_image = read_bytes(image_path, self.storage)
                except (NotFoundFailure, IOFailure) as e:
                    raise RenderFailure(
                        f"Signature {role} illisible ({image_path}): {e}"
                    ) from e
                image_bytes = normalize_signature_image(raw_image)

                # Repère PDF (bas-gauche) puis conversion vers le repère PyMuPDF
                pdf_rect = position.pdf_rect(page_height)
                target = pdf_rect * page.transformation_matrix
                page.insert_image(
                    target, stream=image_bytes, keep_proportion=False, overlay=True
                )
                logger.info(
                    f"Signature {role} incrustée en ({pdf_rect.x0}, {pdf_rect.y0}) "
                    f"taille {position.width}x{position.height}"
                )

            signed_bytes = doc.tobytes()
        except RenderFailure:
            raise
        except (RuntimeError, ValueError) as e:
            raise RenderFailure(f"Erreur lors de l'incrustation des signatures: {e}") from e
        finally:
            doc.close()

        saved = save_bytes(output_path, signed_bytes, self.storage)
        logger.info(
            f"✅ PDF signé généré: {saved} "
            f"({sum(1 for path in signatures.values() if path)} signature(s))"
        )
        return saved

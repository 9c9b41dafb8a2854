"""Content-derived document ids, so re-indexing the same event is idempotent."""

import base64
import hashlib
import logging
import zlib
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "sha256"
FALLBACK_ALGORITHM = "crc32"


@dataclass(frozen=True)
class DocumentId:
    value: str
    algorithm: str
    # True when the id came from the non-cryptographic fallback
    degraded: bool = False

    def __str__(self) -> str:
        return self.value


def document_id(source: bytes, algorithm: str = DEFAULT_ALGORITHM) -> DocumentId:
    """Hash serialized document bytes into a URL-safe id.

    Falls back to CRC32 when *algorithm* is not available in this
    interpreter; such ids collide far more easily and are flagged degraded.
    """
    try:
        digest = hashlib.new(algorithm, source).digest()
    except (ValueError, TypeError):
        # Unknown names, or variable-length digests (shake_*) that need a size
        logger.warning(
            "Digest algorithm %r unavailable, using %s for document ids",
            algorithm,
            FALLBACK_ALGORITHM,
        )
        return DocumentId(
            value=f"{zlib.crc32(source) & 0xFFFFFFFF:08x}",
            algorithm=FALLBACK_ALGORITHM,
            degraded=True,
        )
    token = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return DocumentId(value=token, algorithm=algorithm)

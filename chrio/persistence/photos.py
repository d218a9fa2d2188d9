"""Session photo storage.

Photos arrive from the capture view as base64 (optionally as a data URL)
and are written under the configured photos directory, one folder per
client and per session.
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

from chrio.errors import NotFound, StorageUnavailable, ValidationError
from chrio.schemas.session import PHOTO_POSITIONS

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = "data:image/jpeg;base64,"


class PhotoStore:
    """Reads and writes session photos below a root directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser()

    def photo_path(
        self, client_id: int, client_firstname: str, session_no: int, image_type: str,
    ) -> Path:
        """Return where a photo for this client/session/position is stored."""
        if image_type not in PHOTO_POSITIONS:
            raise ValidationError(
                f"Unknown image type {image_type!r}; expected one of {', '.join(PHOTO_POSITIONS)}"
            )
        return (
            self.root
            / f"{client_id}_{client_firstname}"
            / f"session_{session_no}"
            / f"{image_type}_{client_firstname}.jpg"
        )

    def save_image(
        self,
        client_id: int,
        client_firstname: str,
        session_no: int,
        image_type: str,
        base64_image: str,
    ) -> str:
        """Decode a base64 image and write it to disk.

        A leading ``data:...;base64,`` header is ignored.

        Returns:
            The path of the written file.
        """
        path = self.photo_path(client_id, client_firstname, session_no, image_type)
        payload = base64_image.rsplit(",", 1)[-1]
        try:
            image_data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Image data is not valid base64: {e}") from None

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(image_data)
        except OSError as e:
            raise StorageUnavailable(f"Cannot write photo {path}: {e}") from e

        logger.info("Saved %s photo for client %s session %s", image_type, client_id, session_no)
        return str(path)

    def read_image_base64(self, path: str) -> str:
        """Return a stored photo as a JPEG data URL."""
        try:
            image_data = Path(path).read_bytes()
        except FileNotFoundError:
            raise NotFound(f"Photo not found: {path}") from None
        except OSError as e:
            raise StorageUnavailable(f"Cannot read photo {path}: {e}") from e
        return _DATA_URL_PREFIX + base64.b64encode(image_data).decode("ascii")

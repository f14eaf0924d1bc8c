import base64
import binascii
import io
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

from PIL import Image, UnidentifiedImageError

from fleetpm.errors import AppError

DATA_URL_EXTENSIONS = {"image/jpeg": "jpg", "image/webp": "webp", "image/png": "png"}


class FileService:
    @classmethod
    def save_camera_data_url(cls, data_url: str, upload_root: str):
        if not data_url or "base64," not in data_url:
            return None
        header, encoded = data_url.split("base64,", 1)
        extension = next((ext for mime, ext in DATA_URL_EXTENSIONS.items() if mime in header), "png")

        try:
            raw = base64.b64decode(encoded, validate=True)
            # Verify actual image bytes, not just the declared MIME type.
            Image.open(io.BytesIO(raw)).verify()
        except (binascii.Error, ValueError, UnidentifiedImageError, OSError) as exc:
            raise AppError("Invalid camera image payload.", 400) from exc

        dated_folder = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        folder = Path(upload_root) / dated_folder
        try:
            folder.mkdir(parents=True, exist_ok=True)
            unique_filename = f"{uuid4().hex}.{extension}"
            (folder / unique_filename).write_bytes(raw)
        except OSError as exc:
            raise AppError("Could not store image.", 500) from exc
        return str(Path(upload_root).name + "/" + dated_folder + "/" + unique_filename)

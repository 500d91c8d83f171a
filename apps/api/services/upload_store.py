"""
Upload Store
Keeps partner documents on disk under <root>/partners/<partner_id>/.

Records only hold paths relative to the static root (e.g.
"uploads/partners/7/passport_1718000000000_photo.jpg") so the same value can be
served from the /uploads mount or read back for inlining.
"""

import os
import re
import base64
import shutil
import logging
from dataclasses import dataclass
from typing import Optional

from exceptions import StorageError

logger = logging.getLogger(__name__)

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@dataclass
class UploadedFile:
    """A file received in a multipart request, already read into memory"""
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


def get_mime_type(path: str) -> str:
    ext = os.path.splitext(path)[1].lower()
    return MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


def safe_filename(filename: Optional[str]) -> str:
    """Strip directories and unusual characters from a client-supplied name"""
    name = os.path.basename((filename or "").replace("\\", "/")).strip()
    name = _UNSAFE_CHARS.sub("_", name).lstrip(".")
    return name or "file"


class UploadStore:
    def __init__(self, root: str, url_prefix: str = "uploads"):
        self.root = os.path.abspath(root)
        self.url_prefix = url_prefix.strip("/")

    def partner_dir(self, partner_id: int) -> str:
        return os.path.join(self.root, "partners", str(partner_id))

    def save_partner_file(
        self,
        partner_id: int,
        kind: str,
        upload: UploadedFile,
        stamp: int,
        index: Optional[int] = None
    ) -> str:
        """Write one document and return its relative path.

        The name is "<kind>_<stamp>[_<index>]_<original>", so files sharing an
        original name never overwrite each other.
        """
        parts = [kind, str(stamp)]
        if index is not None:
            parts.append(str(index))
        parts.append(safe_filename(upload.filename))
        name = "_".join(parts)

        directory = self.partner_dir(partner_id)
        try:
            os.makedirs(directory, exist_ok=True)
            with open(os.path.join(directory, name), "wb") as f:
                f.write(upload.content)
        except OSError as e:
            raise StorageError(f"Could not store {kind} for partner {partner_id}: {e}")

        return f"{self.url_prefix}/partners/{partner_id}/{name}"

    def resolve(self, relative_path: str) -> Optional[str]:
        """Absolute path for a stored reference, or None if it escapes the store"""
        parts = [p for p in relative_path.replace("\\", "/").split("/") if p]
        if parts and parts[0] == self.url_prefix:
            parts = parts[1:]
        if not parts:
            return None

        candidate = os.path.realpath(os.path.join(self.root, *parts))
        if os.path.commonpath([candidate, os.path.realpath(self.root)]) != os.path.realpath(self.root):
            logger.warning(f"Rejected upload path outside store: {relative_path}")
            return None
        return candidate

    def read_data_url(self, relative_path: Optional[str]) -> Optional[str]:
        """Inline a stored file as a data URL; None when it is missing or unreadable"""
        if not relative_path:
            return None

        path = self.resolve(relative_path)
        if path is None or not os.path.isfile(path):
            logger.warning(f"Referenced upload missing on disk: {relative_path}")
            return None

        try:
            with open(path, "rb") as f:
                payload = base64.b64encode(f.read()).decode("ascii")
        except OSError as e:
            logger.error(f"Error reading upload {relative_path}: {e}")
            return None

        return f"data:{get_mime_type(path)};base64,{payload}"

    def remove_partner_files(self, partner_id: int) -> bool:
        """Best-effort removal of a partner's upload directory"""
        directory = self.partner_dir(partner_id)
        if not os.path.exists(directory):
            return True
        try:
            shutil.rmtree(directory)
        except OSError as e:
            logger.warning(f"Could not remove upload dir {directory}: {e}")
            return False
        return True

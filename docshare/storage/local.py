import asyncio
import logging
from pathlib import Path
from urllib.parse import quote

from docshare.schemas.attachment import ObjectMetadata

from .base import AttachmentService, ObjectConflictError, ObjectStorageError

logger = logging.getLogger(__name__)


class LocalAttachmentService(AttachmentService):
    """Objects stored as files below ``root/bucket``, served under ``public_base_url``.

    Content type and cache control are kept next to each object under
    ``root/.metadata`` and sent back by ``ObjectStaticFiles``.
    """

    METADATA_DIR = ".metadata"

    def __init__(
        self, root: str | Path, public_base_url: str, bucket: str = "documents"
    ):
        self.root = Path(root)
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.metadata_root = self.root / self.METADATA_DIR

    def _path_for(self, key: str) -> Path:
        bucket_dir = (self.root / self.bucket).resolve()
        path = (bucket_dir / key).resolve()
        if bucket_dir not in path.parents:
            raise ObjectStorageError(f"Key '{key}' escapes the bucket.")
        return path

    def _metadata_path_for(self, key: str) -> Path:
        return self.metadata_root / self.bucket / f"{key}.json"

    def _write(
        self,
        path: Path,
        data: bytes,
        overwrite: bool,
        key: str,
        metadata: ObjectMetadata,
    ) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # "xb" fails if the file exists, which gives upsert=false semantics
        with open(path, "wb" if overwrite else "xb") as f:
            f.write(data)
        metadata_path = self._metadata_path_for(key)
        metadata_path.parent.mkdir(parents=True, exist_ok=True)
        metadata_path.write_text(metadata.model_dump_json())

    async def put(
        self,
        key: str,
        data: bytes,
        *,
        overwrite: bool = False,
        content_type: str | None = None,
        cache_control: str | None = None,
    ) -> None:
        path = self._path_for(key)
        metadata = ObjectMetadata(
            content_type=content_type, cache_control=cache_control
        )
        try:
            await asyncio.to_thread(self._write, path, data, overwrite, key, metadata)
        except FileExistsError as e:
            logger.warning(f"[LocalStorage] Refusing to overwrite object '{key}'")
            raise ObjectConflictError(f"Object '{key}' already exists.") from e
        except OSError as e:
            logger.error(f"[LocalStorage] Failed to write object '{key}': {e}")
            raise ObjectStorageError(f"Failed to store object '{key}'.") from e
        logger.debug(f"[LocalStorage] Saved object: {path} ({len(data)} bytes)")

    async def public_url_of(self, key: str) -> str:
        self._path_for(key)
        return f"{self.public_base_url}/{self.bucket}/{quote(key)}"

    def metadata_for_served_path(self, served_path: str) -> ObjectMetadata | None:
        """Metadata of the file at ``served_path``, a path relative to ``root``."""
        metadata_root = self.metadata_root.resolve()
        path = (metadata_root / f"{served_path}.json").resolve()
        if metadata_root not in path.parents or not path.is_file():
            return None
        return ObjectMetadata.model_validate_json(path.read_text())

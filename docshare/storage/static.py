import asyncio
from pathlib import Path

from starlette.exceptions import HTTPException
from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

from .local import LocalAttachmentService


def cache_control_header(value: str) -> str:
    """A bare number of seconds, as uploads record it, becomes ``max-age=N``."""
    return f"max-age={value}" if value.isdigit() else value


class ObjectStaticFiles(StaticFiles):
    """Serves a LocalAttachmentService's objects with the headers stored at upload."""

    def __init__(self, attachments: LocalAttachmentService, **kwargs):
        self.attachments = attachments
        super().__init__(directory=attachments.root, **kwargs)

    async def get_response(self, path: str, scope: Scope) -> Response:
        if Path(path).parts[:1] == (LocalAttachmentService.METADATA_DIR,):
            raise HTTPException(status_code=404)

        response = await super().get_response(path, scope)
        if response.status_code not in (200, 304):
            return response

        metadata = await asyncio.to_thread(
            self.attachments.metadata_for_served_path, path
        )
        if metadata is None:
            return response
        if metadata.cache_control:
            response.headers["cache-control"] = cache_control_header(
                metadata.cache_control
            )
        if metadata.content_type and response.status_code == 200:
            response.headers["content-type"] = metadata.content_type
        return response

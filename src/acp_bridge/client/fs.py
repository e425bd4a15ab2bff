"""Local filesystem handlers for fs/read_text_file and fs/write_text_file."""

from __future__ import annotations

from pathlib import Path

from acp_bridge.errors import JsonRpcError
from acp_bridge.logging import get_logger
from acp_bridge.types.requests import ReadTextFileRequest, WriteTextFileRequest
from acp_bridge.types.responses import ReadTextFileResponse, WriteTextFileResponse

log = get_logger("fs")


class LocalFileSystem:
    """Serves agent file requests from the local disk.

    When ``root`` is set, paths must resolve inside it.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root).resolve() if root is not None else None

    def _resolve(self, path: str) -> Path:
        resolved = Path(path)
        if self.root is None:
            return resolved
        if not resolved.is_absolute():
            resolved = self.root / resolved
        resolved = resolved.resolve()
        if not resolved.is_relative_to(self.root):
            raise JsonRpcError.invalid_params({"path": path, "reason": "outside root"})
        return resolved

    async def read_text_file(self, req: ReadTextFileRequest) -> ReadTextFileResponse:
        """Read a file, optionally sliced by 1-based ``line`` and ``limit``."""
        path = self._resolve(req.path)
        log.debug("Reading %s", path)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise JsonRpcError.invalid_params({"path": req.path, "reason": "not found"}) from e

        if req.line is not None or req.limit is not None:
            lines = content.splitlines(keepends=True)
            start = max((req.line or 1) - 1, 0)
            end = start + (req.limit if req.limit is not None else len(lines))
            content = "".join(lines[start:end])

        return ReadTextFileResponse(content=content)

    async def write_text_file(self, req: WriteTextFileRequest) -> WriteTextFileResponse:
        path = self._resolve(req.path)
        log.debug("Writing %s", path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(req.content, encoding="utf-8")
        return WriteTextFileResponse()

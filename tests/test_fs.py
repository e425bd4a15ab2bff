"""Tests for the local filesystem handlers."""

from __future__ import annotations

from pathlib import Path

import pytest

from acp_bridge.client.fs import LocalFileSystem
from acp_bridge.errors import JsonRpcError
from acp_bridge.types.requests import ReadTextFileRequest, WriteTextFileRequest


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "notes.txt").write_text("one\ntwo\nthree\nfour\n")
    return tmp_path


def read(path: str | Path, line: int | None = None, limit: int | None = None) -> ReadTextFileRequest:
    return ReadTextFileRequest(session_id="s1", path=str(path), line=line, limit=limit)


class TestReadTextFile:
    """Tests for fs/read_text_file."""

    @pytest.mark.asyncio
    async def test_whole_file(self, project: Path) -> None:
        fs = LocalFileSystem()
        response = await fs.read_text_file(read(project / "notes.txt"))
        assert response.content == "one\ntwo\nthree\nfour\n"

    @pytest.mark.asyncio
    async def test_line_and_limit(self, project: Path) -> None:
        fs = LocalFileSystem()
        response = await fs.read_text_file(read(project / "notes.txt", line=2, limit=2))
        assert response.content == "two\nthree\n"

    @pytest.mark.asyncio
    async def test_line_only(self, project: Path) -> None:
        fs = LocalFileSystem()
        response = await fs.read_text_file(read(project / "notes.txt", line=4))
        assert response.content == "four\n"

    @pytest.mark.asyncio
    async def test_limit_only(self, project: Path) -> None:
        fs = LocalFileSystem()
        response = await fs.read_text_file(read(project / "notes.txt", limit=1))
        assert response.content == "one\n"

    @pytest.mark.asyncio
    async def test_relative_to_root(self, project: Path) -> None:
        fs = LocalFileSystem(project)
        response = await fs.read_text_file(read("notes.txt", limit=1))
        assert response.content == "one\n"

    @pytest.mark.asyncio
    async def test_not_found(self, project: Path) -> None:
        fs = LocalFileSystem(project)
        with pytest.raises(JsonRpcError) as exc_info:
            await fs.read_text_file(read("missing.txt"))
        assert exc_info.value.code == -32602
        assert exc_info.value.data["reason"] == "not found"

    @pytest.mark.asyncio
    async def test_outside_root(self, project: Path) -> None:
        fs = LocalFileSystem(project / "sub")
        with pytest.raises(JsonRpcError) as exc_info:
            await fs.read_text_file(read("../notes.txt"))
        assert exc_info.value.data["reason"] == "outside root"


class TestWriteTextFile:
    """Tests for fs/write_text_file."""

    @pytest.mark.asyncio
    async def test_creates_parents(self, tmp_path: Path) -> None:
        fs = LocalFileSystem(tmp_path)
        await fs.write_text_file(
            WriteTextFileRequest(session_id="s1", path="a/b/out.txt", content="hello")
        )
        assert (tmp_path / "a" / "b" / "out.txt").read_text() == "hello"

    @pytest.mark.asyncio
    async def test_overwrites(self, project: Path) -> None:
        fs = LocalFileSystem()
        target = project / "notes.txt"
        await fs.write_text_file(WriteTextFileRequest(session_id="s1", path=str(target), content="x"))
        assert target.read_text() == "x"

    @pytest.mark.asyncio
    async def test_outside_root(self, tmp_path: Path) -> None:
        fs = LocalFileSystem(tmp_path / "root")
        with pytest.raises(JsonRpcError):
            await fs.write_text_file(
                WriteTextFileRequest(session_id="s1", path=str(tmp_path / "escape.txt"), content="x")
            )
        assert not (tmp_path / "escape.txt").exists()

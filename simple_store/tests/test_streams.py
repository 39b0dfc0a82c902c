import aiofiles
import pytest

from simple_store.app.services.streams import LookupStatus, copy_stream, iter_file, open_value


async def chunks_of(*parts):
    for part in parts:
        yield part


@pytest.mark.asyncio
async def test_open_value_missing(tmp_path):
    lookup = await open_value(tmp_path / "missing")
    assert lookup.status is LookupStatus.NOT_FOUND
    assert lookup.handle is None


@pytest.mark.asyncio
async def test_open_value_directory_is_not_found(tmp_path):
    lookup = await open_value(tmp_path)
    assert lookup.status is LookupStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_open_value_ok(tmp_path):
    path = tmp_path / "value"
    path.write_bytes(b"abc")

    lookup = await open_value(path)
    assert lookup.ok
    assert lookup.stat.st_size == 3
    assert await lookup.handle.read() == b"abc"
    await lookup.handle.close()


@pytest.mark.asyncio
async def test_iter_file_reads_fixed_chunks(tmp_path):
    path = tmp_path / "value"
    path.write_bytes(b"x" * 10000)

    lookup = await open_value(path)
    sizes = [len(chunk) async for chunk in iter_file(lookup.handle)]
    assert sizes == [4096, 4096, 1808]
    assert lookup.handle.closed


@pytest.mark.asyncio
async def test_copy_stream(tmp_path):
    path = tmp_path / "out"
    async with aiofiles.open(path, 'wb') as f:
        copied = await copy_stream(chunks_of(b"ab", b"", b"cd"), f)
    assert copied == 4
    assert path.read_bytes() == b"abcd"

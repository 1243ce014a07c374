"""Tests for the line-oriented stream reader and the POST streaming helper."""
# pylint: disable=missing-function-docstring  # test names are self-documenting
# pylint: disable=missing-class-docstring  # test class names are self-documenting

import json

import httpx
import pytest

from quipubase import LineReader, NoResponseBody, read_lines, use_stream


async def _chunks(*parts):
    for part in parts:
        yield part


async def _collect(*parts) -> list[str]:
    lines: list[str] = []
    await read_lines(_chunks(*parts), lines.append)
    return lines


class TestLineReader:
    def test_partial_line_is_held_until_newline(self):
        reader = LineReader()
        assert reader.feed("hel") == []
        assert reader.feed("lo\nwor") == ["hello\n"]
        assert reader.flush() == ["wor\n"]

    def test_strips_data_prefix(self):
        reader = LineReader()
        assert reader.feed('data: {"a": 1}\n') == ['{"a": 1}\n']

    def test_skips_blank_and_done_lines(self):
        reader = LineReader()
        assert reader.feed("one\n\n   \ndata: [DONE]\n[DONE]\ntwo\n") == ["one\n", "two\n"]

    def test_flush_skips_done_token(self):
        reader = LineReader()
        reader.feed("data: [DONE]")
        assert reader.flush() == []

    def test_flush_empties_buffer(self):
        reader = LineReader()
        reader.feed("tail")
        assert reader.flush() == ["tail\n"]
        assert reader.flush() == []

    def test_multibyte_character_split_across_byte_chunks(self):
        encoded = "café\n".encode("utf-8")
        reader = LineReader()
        assert reader.feed(encoded[:4]) == []
        assert reader.feed(encoded[4:]) == ["café\n"]

    def test_surrounding_whitespace_trimmed(self):
        reader = LineReader()
        assert reader.feed("  padded \r\n") == ["padded\n"]


class TestReadLines:
    async def test_chunked_matches_unchunked(self):
        data = 'data: {"n": 1}\ndata: {"n": 2}\n\ndata: {"n": 3}\n'
        whole = await _collect(data)
        split = await _collect(data[:5], data[5:17], data[17:18], data[18:])
        assert split == whole
        assert whole == ['{"n": 1}\n', '{"n": 2}\n', '{"n": 3}\n']

    async def test_each_line_delivered_exactly_once(self):
        lines = await _collect("ab", "c\nd", "ef\n", "gh")
        assert lines == ["abc\n", "def\n", "gh\n"]

    async def test_final_chunk_without_newline_is_flushed(self):
        assert await _collect("first\nlast") == ["first\n", "last\n"]

    async def test_done_and_blank_never_reach_callback(self):
        assert await _collect("data: [DONE]\n", "\n", "data: \n") == []

    async def test_async_callback_is_awaited(self):
        seen = []

        async def callback(line):
            seen.append(line)

        await read_lines(_chunks(b"x\ny\n"), callback)
        assert seen == ["x\n", "y\n"]


class TestUseStream:
    async def test_posts_json_and_streams_lines(self):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=b"data: one\ndata: two\ndata: [DONE]\n")

        lines = []
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            await use_stream(http, "http://quipubase.test/v1/stream", {"q": 1}, lines.append)

        assert lines == ["one\n", "two\n"]
        assert captured[0].method == "POST"
        assert captured[0].headers["content-type"] == "application/json"
        assert json.loads(captured[0].content) == {"q": 1}

    async def test_no_content_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(204))
        async with httpx.AsyncClient(transport=transport) as http:
            with pytest.raises(NoResponseBody):
                await use_stream(http, "http://quipubase.test/v1/stream", {}, print)

"""
Stream Decoder Tests
====================

Frame parsing, chunk reassembly and FragmentStream lifecycle.
"""

import asyncio
import gc

import httpx
import pytest

from moondream_vl.exceptions import ParseError, TransportError
from moondream_vl.stream import FragmentStream, StreamFrame, decode_stream, parse_frame


async def iter_chunks(chunks):
    for chunk in chunks:
        yield chunk


async def collect(chunks):
    return [fragment async for fragment in decode_stream(iter_chunks(chunks))]


class TestParseFrame:
    """Tests for single-line frame parsing."""

    def test_non_data_line_is_not_a_frame(self):
        assert parse_frame("") is None
        assert parse_frame("event: message") is None
        assert parse_frame(": keep-alive") is None

    def test_chunk_frame(self):
        assert parse_frame('data: {"chunk": "hi"}') == StreamFrame(chunk="hi", completed=False)

    def test_completed_frame(self):
        frame = parse_frame('data: {"completed": true}')
        assert frame.chunk is None
        assert frame.completed is True

    def test_invalid_json_raises(self):
        with pytest.raises(ParseError) as exc_info:
            parse_frame("data: {not json")
        assert "{not json" in str(exc_info.value)
        assert exc_info.value.cause is not None

    def test_non_object_json_raises(self):
        with pytest.raises(ParseError):
            parse_frame("data: [1, 2]")

    def test_non_string_chunk_raises(self):
        with pytest.raises(ParseError):
            parse_frame('data: {"chunk": 42}')


class TestDecodeStream:
    """Tests for the incremental decoder."""

    @pytest.mark.asyncio
    async def test_chunking_does_not_change_output(self):
        payload = b'data: {"chunk":"ab"}\n'

        whole = await collect([payload])
        byte_by_byte = await collect([payload[i:i + 1] for i in range(len(payload))])

        assert whole == ["ab"]
        assert byte_by_byte == ["ab"]

    @pytest.mark.asyncio
    async def test_fragments_in_arrival_order(self):
        chunks = [
            b'data: {"chunk": "A cat"}\ndata: {"ch',
            b'unk": " on a"}\n',
            b'data: {"chunk": " sofa"}\ndata: {"completed": true}\n',
        ]
        assert await collect(chunks) == ["A cat", " on a", " sofa"]

    @pytest.mark.asyncio
    async def test_completed_stops_reading(self):
        consumed = []

        async def source():
            for chunk in (
                b'data: {"chunk": "a"}\n',
                b'data: {"completed": true}\n',
                b'data: {"chunk": "late"}\n',
            ):
                consumed.append(chunk)
                yield chunk

        fragments = [f async for f in decode_stream(source())]

        assert fragments == ["a"]
        assert len(consumed) == 2

    @pytest.mark.asyncio
    async def test_frames_after_completed_in_same_chunk_are_dropped(self):
        chunks = [b'data: {"completed": true}\ndata: {"chunk": "x"}\n']
        assert await collect(chunks) == []

    @pytest.mark.asyncio
    async def test_chunk_and_completed_in_one_frame(self):
        chunks = [b'data: {"chunk": "last", "completed": true}\ndata: {"chunk": "x"}\n']
        assert await collect(chunks) == ["last"]

    @pytest.mark.asyncio
    async def test_trailing_unterminated_frame_is_flushed(self):
        chunks = [b'data: {"chunk": "a"}\n', b'data: {"chunk": "b"}']
        assert await collect(chunks) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_trailing_noise_is_ignored(self):
        chunks = [b'data: {"chunk": "a"}\n', b"garbage without prefix"]
        assert await collect(chunks) == ["a"]

    @pytest.mark.asyncio
    async def test_non_data_lines_are_skipped(self):
        chunks = [b'\n: ping\nevent: message\ndata: {"chunk": "x"}\n\n']
        assert await collect(chunks) == ["x"]

    @pytest.mark.asyncio
    async def test_crlf_line_endings(self):
        chunks = [b'data: {"chunk": "x"}\r\ndata: {"completed": true}\r\n']
        assert await collect(chunks) == ["x"]

    @pytest.mark.asyncio
    async def test_multibyte_character_split_across_chunks(self):
        payload = 'data: {"chunk": "café ☕"}\n'.encode("utf-8")
        split_at = payload.index("é".encode("utf-8")) + 1

        assert await collect([payload[:split_at], payload[split_at:]]) == ["café ☕"]

    @pytest.mark.asyncio
    async def test_invalid_json_fails_without_emitting_line(self):
        fragments = []
        with pytest.raises(ParseError):
            async for fragment in decode_stream(
                iter_chunks([b'data: {"chunk": "ok"}\ndata: {"chunk": "bad"\n', b'data: {"chunk": "never"}\n'])
            ):
                fragments.append(fragment)

        assert fragments == ["ok"]

    @pytest.mark.asyncio
    async def test_invalid_trailing_frame_fails(self):
        with pytest.raises(ParseError):
            await collect([b'data: {"chunk": '])

    @pytest.mark.asyncio
    async def test_invalid_utf8_fails(self):
        with pytest.raises(ParseError):
            await collect([b'data: {"chunk": "\xff\xfe"}\n'])

    @pytest.mark.asyncio
    async def test_empty_stream_completes(self):
        assert await collect([]) == []

    @pytest.mark.asyncio
    async def test_long_frame_in_tiny_chunks(self):
        text = "x" * 5000
        payload = ('data: {"chunk": "%s"}\n' % text).encode()
        chunks = [payload[i:i + 3] for i in range(0, len(payload), 3)]

        assert await collect(chunks) == [text]

    @pytest.mark.asyncio
    async def test_line_without_newline_is_bounded(self):
        chunks = iter_chunks([b"data: " + b"x" * 40] * 10)

        with pytest.raises(ParseError) as exc_info:
            [f async for f in decode_stream(chunks, max_line_chars=100)]
        assert "100" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_oversized_tail_after_newline_is_bounded(self):
        chunks = iter_chunks([b'data: {"chunk": "a"}\n' + b"y" * 200])
        fragments = []

        with pytest.raises(ParseError):
            async for fragment in decode_stream(chunks, max_line_chars=100):
                fragments.append(fragment)
        assert fragments == []

    @pytest.mark.asyncio
    async def test_lines_at_the_limit_are_accepted(self):
        line = b'data: {"chunk": "' + b"z" * 20 + b'"}'
        chunks = iter_chunks([line[:10], line[10:], b"\n"])

        assert [f async for f in decode_stream(chunks, max_line_chars=len(line))] == ["z" * 20]


class TestFragmentStream:
    """Tests for the response-owning wrapper."""

    @pytest.mark.asyncio
    async def test_collect_and_release_on_completion(self):
        response = httpx.Response(
            200,
            content=iter_chunks([b'data: {"chunk": "Hello"}\n', b'data: {"chunk": " world"}\ndata: {"completed": true}\n']),
        )
        stream = FragmentStream(response)

        assert await stream.collect() == "Hello world"
        assert stream.closed
        assert response.is_closed

    @pytest.mark.asyncio
    async def test_single_consumer(self):
        stream = FragmentStream(httpx.Response(200, content=iter_chunks([b'data: {"chunk": "a"}\n'])))

        assert [f async for f in stream] == ["a"]
        with pytest.raises(RuntimeError):
            stream.__aiter__()

    @pytest.mark.asyncio
    async def test_early_close_releases_response(self):
        response = httpx.Response(
            200,
            content=iter_chunks([b'data: {"chunk": "a"}\n', b'data: {"chunk": "b"}\n']),
        )
        stream = FragmentStream(response)

        iterator = stream.__aiter__()
        assert await iterator.__anext__() == "a"
        await stream.aclose()

        assert stream.closed
        assert response.is_closed
        with pytest.raises(StopAsyncIteration):
            await iterator.__anext__()

    @pytest.mark.asyncio
    async def test_close_before_iteration(self):
        response = httpx.Response(200, content=iter_chunks([b'data: {"chunk": "a"}\n']))

        async with FragmentStream(response) as stream:
            pass

        assert stream.closed
        assert response.is_closed

    @pytest.mark.asyncio
    async def test_parse_error_releases_response(self):
        response = httpx.Response(200, content=iter_chunks([b"data: nope\n"]))
        stream = FragmentStream(response)

        with pytest.raises(ParseError):
            await stream.collect()
        assert response.is_closed

    @pytest.mark.asyncio
    async def test_error_status_surfaces_as_transport_error(self):
        stream = FragmentStream(httpx.Response(500, content=b"internal error"))

        with pytest.raises(TransportError) as exc_info:
            await stream.collect()

        assert exc_info.value.status_code == 500
        assert "internal error" in str(exc_info.value)
        assert stream.closed

    @pytest.mark.asyncio
    async def test_network_failure_mid_stream(self):
        async def broken():
            yield b'data: {"chunk": "a"}\n'
            raise httpx.ReadError("connection reset")

        stream = FragmentStream(httpx.Response(200, content=broken()))
        fragments = []

        with pytest.raises(TransportError) as exc_info:
            async for fragment in stream:
                fragments.append(fragment)

        assert fragments == ["a"]
        assert isinstance(exc_info.value.cause, httpx.ReadError)
        assert stream.closed

    @pytest.mark.asyncio
    async def test_abandoned_loop_releases_response(self):
        response = httpx.Response(
            200,
            content=iter_chunks([b'data: {"chunk": "a"}\n', b'data: {"chunk": "b"}\n']),
        )
        stream = FragmentStream(response)

        async for fragment in stream:
            assert fragment == "a"
            break

        # The loop's async generator hook closes the dropped iterator
        gc.collect()
        for _ in range(20):
            if stream.closed:
                break
            await asyncio.sleep(0)

        assert stream.closed
        assert response.is_closed

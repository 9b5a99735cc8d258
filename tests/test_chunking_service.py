"""Tests for the sliding-window chunker."""

from unittest.mock import MagicMock, patch

import pytest

from knowledge_assistant.exceptions import ChunkingError
from knowledge_assistant.models.indexing import ChunkingOptions, ChunkingPreset
from knowledge_assistant.services.chunking_service import ChunkingService

HEADER = "Document: Plan\n\n"


@pytest.fixture
def svc():
    return ChunkingService()


def bodies(chunks):
    return [c.text[len(HEADER):] for c in chunks]


class TestWindows:
    def test_short_text_is_one_chunk(self, svc):
        chunks = svc.chunk_document("hello world", "Plan", 1600, 400)
        assert len(chunks) == 1
        assert chunks[0].text == HEADER + "hello world"
        assert chunks[0].chunk_index == 0

    def test_every_chunk_starts_with_header(self, svc):
        chunks = svc.chunk_document("x" * 5000, "Plan", 1000, 200)
        assert all(c.text.startswith(HEADER) for c in chunks)

    def test_step_count_and_indices(self, svc):
        # L=5000, S=1000, O=200: ceil((5000-200)/800) = 6 windows
        chunks = svc.chunk_document("a" * 5000, "Plan", 1000, 200)
        assert len(chunks) == 6
        assert [c.chunk_index for c in chunks] == list(range(6))

    def test_consecutive_windows_overlap(self, svc):
        text = "".join(chr(ord("a") + i % 26) for i in range(3000))
        parts = bodies(svc.chunk_document(text, "Plan", 1000, 250))
        for prev, nxt in zip(parts, parts[1:]):
            assert prev[-250:] == nxt[:250]

    def test_windows_cover_text(self, svc):
        text = "".join(chr(ord("a") + i % 26) for i in range(2345))
        parts = bodies(svc.chunk_document(text, "Plan", 500, 100))
        rebuilt = parts[0] + "".join(p[100:] for p in parts[1:])
        assert rebuilt == text

    def test_last_window_reaches_end(self, svc):
        text = "b" * 1700
        parts = bodies(svc.chunk_document(text, "Plan", 1600, 400))
        assert len(parts) == 2
        assert parts[-1] == "b" * 500

    def test_text_exactly_chunk_size(self, svc):
        assert len(svc.chunk_document("c" * 1600, "Plan", 1600, 400)) == 1

    def test_defaults_from_settings(self, svc):
        chunks = svc.chunk_document("d" * 4000, "Plan")
        assert len(bodies(chunks)[0]) == 1600

    def test_token_count_is_populated(self, svc):
        chunks = svc.chunk_document("some words here", "Plan")
        assert chunks[0].token_count > 0


class TestSanitizing:
    def test_empty_text_gives_placeholder(self, svc):
        chunks = svc.chunk_document("", "Plan")
        assert len(chunks) == 1
        assert chunks[0].text == "Document: Plan\n\n(empty document)"

    def test_only_null_bytes_gives_placeholder(self, svc):
        chunks = svc.chunk_document("\x00\x00", "Plan")
        assert chunks[0].text.endswith("(empty document)")

    def test_null_bytes_are_stripped(self, svc):
        chunks = svc.chunk_document("ab\x00cd", "Plan")
        assert "\x00" not in chunks[0].text
        assert chunks[0].text == HEADER + "abcd"


class TestValidation:
    @pytest.mark.parametrize("size,overlap", [(100, 100), (100, 150), (0, 0), (-5, 0), (100, -1)])
    def test_invalid_parameters_raise(self, svc, size, overlap):
        with pytest.raises(ChunkingError) as exc_info:
            svc.chunk_document("text", "Plan", size, overlap)
        assert exc_info.value.status_code == 400


class TestChunkingOptions:
    def test_preset_applies(self):
        options = ChunkingOptions.resolve(1600, 400, preset=ChunkingPreset.PRECISE)
        assert (options.chunk_size, options.chunk_overlap) == (800, 200)

    def test_explicit_values_win_over_preset(self):
        options = ChunkingOptions.resolve(
            1600, 400, preset=ChunkingPreset.CONTEXT_RICH, chunk_overlap=100
        )
        assert (options.chunk_size, options.chunk_overlap) == (3200, 100)

    def test_defaults_without_preset(self):
        options = ChunkingOptions.resolve(1600, 400)
        assert (options.chunk_size, options.chunk_overlap) == (1600, 400)


class TestTokenCounts:
    def test_encoding_loaded_on_first_chunk(self):
        encoding = MagicMock()
        encoding.encode.return_value = [1, 2, 3]
        with patch(
            "knowledge_assistant.services.chunking_service.tiktoken.get_encoding", return_value=encoding
        ) as get_encoding:
            svc = ChunkingService()
            get_encoding.assert_not_called()

            chunks = svc.chunk_document("x" * 2500, "Plan", 1000, 200)

        get_encoding.assert_called_once_with("cl100k_base")
        assert [c.token_count for c in chunks] == [3, 3, 3]

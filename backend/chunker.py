"""
Text chunking for course content.

Course text (typed content or PDF-extracted text) is normalized, split on
natural boundaries and greedily packed into bounded chunks. Every chunk is an
exact slice of the normalized text, so start/end offsets always point back
into it and consecutive chunks share at most `overlap` characters.
"""

import logging
import re

from models import Chunk, CourseId

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 500
DEFAULT_CHUNK_OVERLAP = 50

_HORIZONTAL_WHITESPACE = re.compile(r"[ \t]+")
_LINE_PADDING = re.compile(r"^[ \t]+|[ \t]+$", re.MULTILINE)
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_PARAGRAPH_BREAK = re.compile(r"\n{2,}")
_LINE_BREAK = re.compile(r"\n+")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")

Span = tuple[int, int]


def normalize_text(text: str) -> str:
    """Collapse horizontal whitespace, unify line endings and cap blank lines at one."""
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    normalized = _HORIZONTAL_WHITESPACE.sub(" ", normalized)
    normalized = _LINE_PADDING.sub("", normalized)
    normalized = _EXCESS_NEWLINES.sub("\n\n", normalized)
    return normalized.strip()


def _trim(text: str, start: int, end: int) -> Span:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end


def _split_spans(text: str, pattern: re.Pattern, start: int, end: int) -> list[Span]:
    """Split text[start:end] on `pattern`, returning trimmed, non-empty spans."""
    spans = []
    pos = start
    for match in pattern.finditer(text, start, end):
        spans.append(_trim(text, pos, match.start()))
        pos = match.end()
    spans.append(_trim(text, pos, end))
    return [(s, e) for s, e in spans if e > s]


class Chunker:
    """Splits normalized text into bounded, overlapping chunks"""

    def __init__(self, target_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_CHUNK_OVERLAP):
        if target_size <= 0:
            raise ValueError("target_size must be positive")
        if overlap < 0 or overlap >= target_size:
            raise ValueError("overlap must be in [0, target_size)")
        self.target_size = target_size
        self.overlap = overlap

    def chunk(self, text: str | None, course_id: CourseId = 0) -> list[Chunk]:
        """
        Chunk text for a course.

        Args:
            text: Raw or already-normalized course text
            course_id: Course the chunks belong to

        Returns:
            Chunks with contiguous 0-based indices; empty for blank input
        """
        if text is None or not text.strip():
            return []

        normalized = normalize_text(text)
        segments = self._segments(normalized)
        chunks = self._pack(normalized, segments, course_id)

        logger.info(
            "Created %d chunks from %d characters of content", len(chunks), len(normalized)
        )
        return chunks

    def _segments(self, text: str) -> list[Span]:
        spans = _split_spans(text, _PARAGRAPH_BREAK, 0, len(text))

        # PDF extractions often come without paragraph breaks
        if len(spans) == 1 and len(text) > self.target_size:
            spans = _split_spans(text, _LINE_BREAK, 0, len(text))
            if len(spans) == 1:
                spans = _split_spans(text, _SENTENCE_BREAK, 0, len(text))

        segments = []
        for start, end in spans:
            if end - start > self.target_size:
                segments.extend(self._split_large(text, start, end))
            else:
                segments.append((start, end))
        return segments

    def _split_large(self, text: str, start: int, end: int) -> list[Span]:
        """Split an oversized segment by sentences, then word-safe hard splits."""
        limit = self.target_size - self.overlap
        sentences = _split_spans(text, _SENTENCE_BREAK, start, end)
        if len(sentences) <= 1:
            return self._hard_split(text, start, end, limit)

        pieces = []
        for s, e in sentences:
            if e - s > limit:
                pieces.extend(self._split_large(text, s, e))
            else:
                pieces.append((s, e))
        return pieces

    @staticmethod
    def _hard_split(text: str, start: int, end: int, limit: int) -> list[Span]:
        pieces = []
        pos = start
        while pos < end:
            cut = min(pos + limit, end)
            if cut < end:
                # Last whitespace at or before the boundary
                boundary = cut
                while boundary > pos and not text[boundary].isspace():
                    boundary -= 1
                if boundary > pos:
                    cut = boundary
            piece = _trim(text, pos, cut)
            if piece[1] > piece[0]:
                pieces.append(piece)
            pos = cut
            while pos < end and text[pos].isspace():
                pos += 1
        return pieces

    def _pack(self, text: str, segments: list[Span], course_id: CourseId) -> list[Chunk]:
        chunks: list[Chunk] = []
        buf_start = buf_end = None

        for seg_start, seg_end in segments:
            if buf_start is None:
                buf_start, buf_end = seg_start, seg_end
            elif seg_end - buf_start <= self.target_size:
                buf_end = seg_end
            else:
                chunks.append(self._make_chunk(text, course_id, len(chunks), buf_start, buf_end))
                buf_start = self._overlap_start(text, buf_start, buf_end, seg_start, seg_end)
                buf_end = seg_end

        if buf_start is not None:
            chunks.append(self._make_chunk(text, course_id, len(chunks), buf_start, buf_end))
        return chunks

    def _overlap_start(
        self, text: str, buf_start: int, buf_end: int, seg_start: int, seg_end: int
    ) -> int:
        """Where the next chunk starts: the tail of the closed chunk, never past the size bound."""
        if self.overlap == 0:
            return seg_start

        start = max(buf_end - self.overlap, buf_start, seg_end - self.target_size)
        if start >= seg_start:
            return seg_start

        # Don't open a chunk in the middle of a word
        if start > 0 and not text[start - 1].isspace():
            while start < buf_end and not text[start].isspace():
                start += 1
        while start < seg_start and text[start].isspace():
            start += 1
        return start

    @staticmethod
    def _make_chunk(text: str, course_id: CourseId, index: int, start: int, end: int) -> Chunk:
        return Chunk(
            course_id=course_id,
            index=index,
            text=text[start:end],
            start_offset=start,
            end_offset=end,
        )


def chunk_text(
    text: str | None,
    course_id: CourseId = 0,
    target_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[Chunk]:
    """Convenience wrapper around Chunker for one-off calls."""
    return Chunker(target_size=target_size, overlap=overlap).chunk(text, course_id=course_id)

import logging

from chunk_store import ChunkPersistence
from models import Chunk, ChunkStats, CourseId

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n"


class ContextAssembler:
    """Builds generation context from a course's stored chunks"""

    def __init__(self, store: ChunkPersistence):
        self.store = store

    def full_context(self, course_id: CourseId) -> str:
        """All chunk texts of the course, in index order, separated by blank lines."""
        return self.join(self.store.get_chunks(course_id))

    def sampled(self, course_id: CourseId, k: int) -> list[Chunk]:
        """
        At most `k` chunks spread evenly across the whole course.

        Takes every `len(chunks) // k`-th chunk starting at 0, so the sample
        covers the beginning, middle and end of the material.
        """
        chunks = self.store.get_chunks(course_id)
        if k <= 0:
            return []
        if k >= len(chunks):
            return chunks

        step = len(chunks) // k
        return [chunks[i * step] for i in range(k)]

    def sampled_context(self, course_id: CourseId, k: int) -> str:
        return self.join(self.sampled(course_id, k))

    def context_for_generation(self, course_id: CourseId, max_chunks: int = 0) -> str:
        """Full context, or an even sample when `max_chunks` is set and exceeded."""
        if max_chunks > 0 and self.chunk_count(course_id) > max_chunks:
            logger.info("Sampling %d chunks of course %s for generation", max_chunks, course_id)
            return self.sampled_context(course_id, max_chunks)
        return self.full_context(course_id)

    def search(self, course_id: CourseId, keyword: str) -> list[Chunk]:
        """Chunks containing `keyword` (case-insensitive), in index order."""
        needle = keyword.strip().lower()
        if not needle:
            return []
        return [c for c in self.store.get_chunks(course_id) if needle in c.text.lower()]

    def is_indexed(self, course_id: CourseId) -> bool:
        return self.chunk_count(course_id) > 0

    def chunk_count(self, course_id: CourseId) -> int:
        return len(self.store.get_chunks(course_id))

    def stats(self, course_id: CourseId) -> ChunkStats:
        chunks = self.store.get_chunks(course_id)
        if not chunks:
            return ChunkStats(chunk_count=0, total_characters=0, average_chunk_size=0.0)

        total = sum(len(c.text) for c in chunks)
        return ChunkStats(
            chunk_count=len(chunks),
            total_characters=total,
            average_chunk_size=total / len(chunks),
        )

    @staticmethod
    def join(chunks: list[Chunk]) -> str:
        return CONTEXT_SEPARATOR.join(c.text for c in chunks)

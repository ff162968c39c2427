import logging
import threading
from typing import Iterable, Protocol

from models import Chunk, CourseId

logger = logging.getLogger(__name__)


class ChunkPersistence(Protocol):
    """Storage interface the pipeline needs for course chunks"""

    def replace_chunks(self, course_id: CourseId, chunks: Iterable[Chunk]) -> None: ...

    def get_chunks(self, course_id: CourseId) -> list[Chunk]: ...


class ChunkStore:
    """
    In-memory keyed chunk storage.

    `replace` builds the new chunk tuple first and swaps it in under a lock,
    so readers see either the old set or the new one, never a mix.
    """

    def __init__(self):
        self._chunks: dict[CourseId, tuple[Chunk, ...]] = {}
        self._lock = threading.Lock()

    def replace(self, course_id: CourseId, chunks: Iterable[Chunk]) -> None:
        """Discard every chunk of the course and store the new set."""
        new_chunks = tuple(sorted(chunks, key=lambda c: c.index))
        for position, chunk in enumerate(new_chunks):
            if chunk.course_id != course_id:
                raise ValueError(
                    f"Chunk {chunk.index} belongs to course {chunk.course_id}, not {course_id}"
                )
            if chunk.index != position:
                raise ValueError(f"Chunk indices must be contiguous from 0, found {chunk.index}")

        with self._lock:
            if new_chunks:
                self._chunks[course_id] = new_chunks
            else:
                self._chunks.pop(course_id, None)

        logger.info("Stored %d chunks for course %s", len(new_chunks), course_id)

    def get_ordered(self, course_id: CourseId) -> list[Chunk]:
        """Chunks of a course sorted by index."""
        with self._lock:
            return list(self._chunks.get(course_id, ()))

    def delete(self, course_id: CourseId) -> None:
        """Explicit removal path used when a course is deleted or archived."""
        with self._lock:
            removed = self._chunks.pop(course_id, ())
        logger.info("Removed %d chunks for course %s", len(removed), course_id)

    def count(self, course_id: CourseId) -> int:
        with self._lock:
            return len(self._chunks.get(course_id, ()))

    def course_ids(self) -> list[CourseId]:
        with self._lock:
            return list(self._chunks)

    # ChunkPersistence interface
    replace_chunks = replace
    get_chunks = get_ordered

import logging
from typing import Protocol

from chunk_store import ChunkStore
from chunker import Chunker
from models import Chunk, Course, CourseId

logger = logging.getLogger(__name__)


class CourseContentSource(Protocol):
    """Supplies course text; PDF-backed courses come back already extracted"""

    def get_text(self, course: Course) -> str | None: ...


class CourseIndexer:
    """Chunks course content and replaces the course's stored chunks"""

    def __init__(
        self,
        chunker: Chunker,
        store: ChunkStore,
        content_source: CourseContentSource | None = None,
    ):
        self.chunker = chunker
        self.store = store
        self.content_source = content_source

    def _content(self, course: Course) -> str | None:
        if self.content_source is not None:
            text = self.content_source.get_text(course)
            if text and text.strip():
                return text
            logger.warning(
                "Content source returned no text for course %s, using stored content", course.id
            )
        return course.content

    def index(self, course: Course) -> list[Chunk]:
        """Full reindex: every previous chunk of the course is discarded."""
        logger.info("Starting indexing for course %s", course.id)

        chunks = self.chunker.chunk(self._content(course), course_id=course.id)
        if not chunks:
            logger.warning("No content available to index for course %s", course.id)

        self.store.replace(course.id, chunks)
        logger.info("Indexed %d chunks for course %s", len(chunks), course.id)
        return chunks

    def remove(self, course_id: CourseId) -> None:
        self.store.delete(course_id)

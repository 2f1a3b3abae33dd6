"""
Structure-aware document chunking.

Takes one document's raw text and splits it into token-bounded chunks
that follow the document's own structure:

    1. Detect header-like lines (markdown headings, ALL CAPS lines,
       numbered sections, "Title Case:" lines, Chapter/Section keywords).
    2. Cut the text into sections, one per header (plus a preamble
       section for text before the first header).
    3. A section that fits under max_chunk_tokens becomes one chunk.
       A longer section is split at sentence boundaries; each new chunk
       starts with the last overlap_sentences sentences of the previous
       one so context carries across the cut.
    4. Tag each chunk with its section header and, when page markers are
       given, the page it starts on.

Sentences are never split, so a chunk only exceeds max_chunk_tokens when
a single sentence alone already does.

Usage:
    from hybrid_rag.indexing.chunking import StructureAwareChunker
    from hybrid_rag.config import ChunkingConfig

    chunker = StructureAwareChunker(ChunkingConfig())
    chunks = chunker.chunk("42", text, page_markers={1: 0, 2: 3100})
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Mapping, Optional

from hybrid_rag.base.indexer import BaseChunker
from hybrid_rag.config import ChunkingConfig
from hybrid_rag.indexing.tokens import HeuristicTokenCounter, TokenCounter
from hybrid_rag.models.document import Chunk, ChunkMetadata

logger = logging.getLogger(__name__)


# Ordered: the position in this list is the header "level" (1-based).
# Lines are matched with [ \t] rather than \s so a match never runs
# across a line break.
HEADER_PATTERNS: list[re.Pattern] = [
    re.compile(r"^#{1,6}[ \t]+(.+)$", re.MULTILINE),
    re.compile(r"^[A-Z][A-Z \t]{3,80}$", re.MULTILINE),
    re.compile(r"^\d+\.[ \t]+[A-Z].+$", re.MULTILINE),
    re.compile(r"^[A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*:$", re.MULTILINE),
    re.compile(r"^(?:Chapter|Section|Part|Article)[ \t]+\d+", re.MULTILINE | re.IGNORECASE),
]

SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+|[^.!?]+$")


@dataclass(frozen=True)
class HeaderMatch:
    text: str
    offset: int
    level: int


@dataclass
class Section:
    start: int
    end: int
    header: Optional[str] = None


@dataclass(frozen=True)
class Sentence:
    text: str
    start: int
    end: int
    tokens: int


@dataclass
class _Draft:
    """A chunk before global indices are known."""

    content: str
    tokens: int
    start: int
    end: int
    header: Optional[str]


def detect_headers(text: str) -> list[HeaderMatch]:
    """
    Find header-like lines, sorted by offset.

    A line matched by several patterns is kept once, at the lowest
    level. Markdown headings are recorded without their leading #s.
    """
    by_offset: dict[int, HeaderMatch] = {}

    for level, pattern in enumerate(HEADER_PATTERNS, start=1):
        for match in pattern.finditer(text):
            if match.start() in by_offset:
                continue
            header_text = match.group(1) if level == 1 else match.group(0)
            header_text = header_text.strip()
            if not header_text:
                continue
            by_offset[match.start()] = HeaderMatch(header_text, match.start(), level)

    return [by_offset[offset] for offset in sorted(by_offset)]


def split_into_sections(text: str, headers: list[HeaderMatch]) -> list[Section]:
    """
    Cut text into sections, each running from one header to the next.

    Text before the first header becomes a header-less section when it
    holds anything but whitespace.
    """
    if not headers:
        return [Section(start=0, end=len(text))]

    sections: list[Section] = []
    if text[: headers[0].offset].strip():
        sections.append(Section(start=0, end=headers[0].offset))

    for current, following in zip(headers, headers[1:] + [None]):
        end = following.offset if following else len(text)
        sections.append(Section(start=current.offset, end=end, header=current.text))

    return sections


def find_page_number(offset: int, page_markers: Optional[Mapping[int, int]]) -> Optional[int]:
    """
    Page containing a character offset.

    Returns the highest page whose marker starts at or before offset,
    the first page when offset precedes every marker, and None when no
    markers were given.
    """
    if not page_markers:
        return None

    started = [page for page, page_start in page_markers.items() if page_start <= offset]
    if not started:
        return min(page_markers)
    return max(started)


class StructureAwareChunker(BaseChunker):
    """
    Splits a document along its headers, then by sentences within a
    section when the section is over the token limit.

    The token counter defaults to the 4-characters-per-token heuristic;
    pass an LLMTokenCounter for exact counts.
    """

    def __init__(self, config: ChunkingConfig = None, token_counter: Optional[TokenCounter] = None):
        super().__init__(config or ChunkingConfig())
        self._counter = token_counter or HeuristicTokenCounter(self.config.chars_per_token)

    def chunk(
        self,
        document_id: str,
        text: str,
        page_markers: Optional[Mapping[int, int]] = None,
    ) -> list[Chunk]:
        """
        Split one document into chunks.

        Empty or whitespace-only text yields an empty list.
        """
        document_id = str(document_id)
        if not text or not text.strip():
            return []

        start_time = time.perf_counter()

        headers = detect_headers(text)
        sections = split_into_sections(text, headers)

        drafts: list[_Draft] = []
        for section in sections:
            drafts.extend(self._chunk_section(text, section))

        total = len(drafts)
        chunks = [
            Chunk(
                id=f"{document_id}_chunk_{index}",
                content=draft.content,
                token_count=draft.tokens,
                metadata=ChunkMetadata(
                    document_id=document_id,
                    chunk_index=index,
                    total_chunks=total,
                    start_offset=draft.start,
                    end_offset=draft.end,
                    page_number=find_page_number(draft.start, page_markers),
                    section_header=draft.header,
                ),
            )
            for index, draft in enumerate(drafts)
        ]

        if chunks:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            avg_tokens = sum(c.token_count for c in chunks) / len(chunks)
            logger.info(
                "Chunked document %s into %d chunks (%d sections) in %.0fms, avg %.0f tokens",
                document_id, len(chunks), len(sections), elapsed_ms, avg_tokens,
            )
        return chunks

    # ------------------------------------------------------------------
    # Per-section chunking
    # ------------------------------------------------------------------

    def _chunk_section(self, text: str, section: Section) -> list[_Draft]:
        raw = text[section.start:section.end]
        stripped = raw.strip()
        if not stripped:
            return []

        start = section.start + (len(raw) - len(raw.lstrip()))
        tokens = self._counter.count(stripped)

        if tokens <= self.config.max_chunk_tokens:
            return [_Draft(stripped, tokens, start, start + len(stripped), section.header)]

        return self._split_by_sentences(self._sentences(text, section), section.header)

    def _sentences(self, text: str, section: Section) -> list[Sentence]:
        """Sentences of a section with absolute offsets and token counts."""
        sentences = []
        raw = text[section.start:section.end]
        for match in SENTENCE_PATTERN.finditer(raw):
            piece = match.group(0)
            sentence = piece.strip()
            if not sentence:
                continue
            start = section.start + match.start() + (len(piece) - len(piece.lstrip()))
            sentences.append(Sentence(sentence, start, start + len(sentence), self._counter.count(sentence)))
        return sentences

    def _split_by_sentences(self, sentences: list[Sentence], header: Optional[str]) -> list[_Draft]:
        max_tokens = self.config.max_chunk_tokens
        separator_tokens = self._counter.count(" ")

        def cost(group: list[Sentence]) -> int:
            # Sum of parts plus one separator between each: never less
            # than the count of the joined text for a subadditive counter.
            if not group:
                return 0
            return sum(s.tokens for s in group) + separator_tokens * (len(group) - 1)

        drafts: list[_Draft] = []
        current: list[Sentence] = []

        for sentence in sentences:
            if current and cost(current) + separator_tokens + sentence.tokens > max_tokens:
                drafts.append(self._draft(current, header))

                overlap = current[-self.config.overlap_sentences:] if self.config.overlap_sentences else []
                while overlap and cost(overlap) + separator_tokens + sentence.tokens > max_tokens:
                    overlap = overlap[1:]
                current = overlap + [sentence]
            else:
                current.append(sentence)

        if current:
            drafts.append(self._draft(current, header))
        return drafts

    def _draft(self, sentences: list[Sentence], header: Optional[str]) -> _Draft:
        content = " ".join(s.text for s in sentences)
        return _Draft(
            content=content,
            tokens=self._counter.count(content),
            start=sentences[0].start,
            end=sentences[-1].end,
            header=header,
        )

"""engine.py - Per-file attribution pipeline and the multi-file driver.

Data flow for one file::

    sites (offset order) -> CommentFinder -> parse_comments -> build_record -> sink

Each :class:`FileExtractor` owns its file's registry, so files can be
processed on worker threads that share nothing but the :class:`RecordSink`.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from annotext.errors import FileAbortedError
from annotext.finder import CommentFinder
from annotext.location import Comment, SourceBuffer
from annotext.markers import MarkerTable
from annotext.record import AnnotationRecord, CandidateSite, build_record
from annotext.registry import CommentRegistry
from annotext.tagparser import TagFields, parse_comments

logger = logging.getLogger(__name__)


@dataclass
class FileInput:
    """Everything the engine needs for one file."""

    file: str
    source: bytes
    comments: list[Comment] = field(default_factory=list)
    sites: list[CandidateSite] = field(default_factory=list)


class RecordSink:
    """Thread-safe collector of records and per-file failures."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self._records: list[AnnotationRecord] = []
        self.failures: dict[str, str] = {}

    def add(self, record: AnnotationRecord) -> None:
        with self.lock:
            self._records.append(record)

    def fail(self, file: str, reason: str) -> None:
        with self.lock:
            self.failures[file] = reason

    def __len__(self) -> int:
        with self.lock:
            return len(self._records)

    def sorted_records(self) -> list[AnnotationRecord]:
        """All records ordered by ``(file, line, column)``."""
        with self.lock:
            return sorted(self._records, key=AnnotationRecord.sort_key)


class FileExtractor:
    """Attributes comments to the candidate sites of a single file."""

    def __init__(
        self,
        file: str,
        source: bytes,
        comments: Iterable[Comment],
        markers: MarkerTable | None = None,
        *,
        require_context: bool = True,
        trailing: bool = True,
    ) -> None:
        self.file = file
        self.buffer = SourceBuffer(file, source)
        self.markers = markers if markers is not None else MarkerTable()
        self.require_context = require_context

        comments = list(comments)
        for comment in comments:
            if comment.start < 0 or comment.end > len(self.buffer) or comment.end < comment.start:
                raise FileAbortedError(
                    file, f"comment at [{comment.start}, {comment.end}) lies outside the source"
                )
        self.registry = CommentRegistry(comments)
        self.finder = CommentFinder(self.registry, self.buffer, self.markers, trailing=trailing)

    @classmethod
    def from_input(cls, item: FileInput, markers: MarkerTable | None = None, **kwargs) -> FileExtractor:
        return cls(item.file, item.source, item.comments, markers, **kwargs)

    def attribute(self, site: CandidateSite) -> TagFields:
        """Find and parse the comment block documenting *site*."""
        found = self.finder.find(site.location)
        return parse_comments(c.text for c in found)

    def extract(self, sites: Iterable[CandidateSite]) -> Iterator[AnnotationRecord]:
        """Yield one record per attributable site, in offset order.

        Raises:
            FileAbortedError: a site lies outside the source buffer.  Records
                yielded before the bad site stay valid.
        """
        for site in sorted(sites, key=lambda s: s.location.offset):
            if not 0 <= site.location.offset <= len(self.buffer):
                raise FileAbortedError(
                    self.file, f"site {site.name_hint!r} at offset {site.location.offset} "
                    "lies outside the source"
                )
            tags = self.attribute(site)
            record = build_record(site, tags, self.markers, self.require_context)
            if record is not None:
                yield record

    def reset(self) -> None:
        """Forget all attributions so the same sites can be extracted again."""
        self.registry.reset()


def _run_file(
    item: FileInput,
    markers: MarkerTable,
    sink: RecordSink,
    require_context: bool,
) -> int:
    count = 0
    try:
        extractor = FileExtractor.from_input(item, markers, require_context=require_context)
        for record in extractor.extract(item.sites):
            sink.add(record)
            count += 1
    except FileAbortedError as exc:
        logger.warning("%s", exc)
        sink.fail(item.file, exc.reason)
    return count


def extract_files(
    inputs: Iterable[FileInput],
    markers: MarkerTable | None = None,
    *,
    workers: int = 4,
    require_context: bool = True,
    sink: RecordSink | None = None,
) -> RecordSink:
    """Run every file through its own extractor on a thread pool."""
    markers = markers if markers is not None else MarkerTable()
    sink = sink if sink is not None else RecordSink()
    items = list(inputs)

    if workers <= 1 or len(items) <= 1:
        for item in items:
            _run_file(item, markers, sink, require_context)
        return sink

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(_run_file, item, markers, sink, require_context): item.file
            for item in items
        }
        for fut in as_completed(futures):
            logger.debug("%s: %d records", futures[fut], fut.result())
    return sink


def load_cpp_file(path: Path, markers: MarkerTable | None = None) -> FileInput:
    """Read a C++ file and collect its comments and marker call sites.

    Raises:
        FileAbortedError: the file cannot be read.
    """
    from annotext.cpp_frontend import collect_cpp

    file = str(path)
    try:
        source = path.read_bytes()
    except OSError as exc:
        raise FileAbortedError(file, f"cannot read: {exc.strerror or exc}") from exc
    comments, sites = collect_cpp(source, file, markers)
    return FileInput(file=file, source=source, comments=comments, sites=sites)

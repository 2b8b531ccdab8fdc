"""Global function index built from many headers in parallel.

Each source is read and scanned independently in a worker thread; the pass
joins on every worker, sorts the merged results and returns one immutable
GlobalIndex. FileIndex holds the current snapshot and swaps it as a whole,
so readers never see a half-built index.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Iterable, Optional

import requests

from asa_hook_creator.models import CppField, CppFunction, FileEntry, GlobalIndex
from asa_hook_creator.patterns import defaults
from asa_hook_creator.scanner import scan
from asa_hook_creator.sources import (
    NamedSource,
    list_header_files,
    read_source,
    remote_sources,
    text_source,
)

if TYPE_CHECKING:
    from asa_hook_creator.config import Config


logger = logging.getLogger(__name__)


class IndexBuildError(Exception):
    """Raised when a pass cannot enumerate its sources at all."""


# ---------------------------------------------------------------------------
# One source
# ---------------------------------------------------------------------------

def _empty_entry(source: NamedSource) -> FileEntry:
    return FileEntry(
        file_name=source.file_name,
        full_path=source.full_path,
        relative_path=source.relative_path,
        directory=source.directory,
    )


def scan_source(source: NamedSource, timeout: float = 30.0) -> tuple[FileEntry, list[CppFunction], bool]:
    """Read and scan one source.

    Returns ``(entry, functions, was_read)``. A source that cannot be read
    gives a zero-count entry and ``was_read=False``.
    """
    try:
        content = read_source(source, timeout=timeout)
    except (OSError, UnicodeError, requests.RequestException) as exc:
        logger.warning("Could not read %s: %s", source.full_path, exc)
        return _empty_entry(source), [], False

    unit = scan(content)
    functions = [func.with_source(source.relative_path) for func in unit.functions]

    entry = FileEntry(
        file_name=source.file_name,
        full_path=source.full_path,
        relative_path=source.relative_path,
        directory=source.directory,
        class_name=unit.class_name,
        function_count=len(unit.functions),
        field_count=len(unit.fields),
    )
    return entry, functions, True


def _function_sort_key(func: CppFunction) -> tuple:
    return (func.class_name, func.name, func.source_file, func.full_text)


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------

def run_pass(sources: list[NamedSource], max_workers: int = 1,
             timeout: float = 30.0, origin: str = "") -> GlobalIndex:
    """Scan ``sources`` on a worker pool and merge the results.

    Returns only after every worker finished; one failing source never
    cancels the others.
    """
    entries: list[FileEntry] = []
    functions: list[CppFunction] = []
    scanned = 0

    if sources:
        workers = max(1, min(max_workers, len(sources)))
        logger.debug("Scanning %d sources with %d workers", len(sources), workers)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_source = {
                executor.submit(scan_source, source, timeout): source
                for source in sources
            }

            for future in as_completed(future_to_source):
                source = future_to_source[future]
                try:
                    entry, found, was_read = future.result()
                except Exception:
                    logger.exception("Failed to scan %s", source.full_path)
                    entry, found, was_read = _empty_entry(source), [], False

                entries.append(entry)
                functions.extend(found)
                if was_read:
                    scanned += 1

    entries.sort(key=lambda e: e.relative_path)
    functions.sort(key=_function_sort_key)

    return GlobalIndex(
        entries=tuple(entries),
        functions=tuple(functions),
        attempted=len(sources),
        scanned=scanned,
        origin=origin,
    )


def index_directory(root: str, cfg: Config) -> GlobalIndex:
    """Index every header under ``root``. Raises IndexBuildError if root is missing."""
    if not root or not os.path.isdir(root):
        raise IndexBuildError(f"Source root not found: {root}")

    sources = list_header_files(root, cfg.header_extensions)
    return run_pass(sources, max_workers=cfg.worker_count,
                    timeout=cfg.request_timeout, origin=root)


def index_remote_set(cfg: Config, urls: Optional[list[str]] = None) -> GlobalIndex:
    """Index a fixed set of remote headers (the configured URLs by default)."""
    urls = cfg.remote_urls if urls is None else urls
    if not urls:
        raise IndexBuildError("No remote header URLs configured")

    sources = remote_sources(urls, cfg.remote_directory_label)
    return run_pass(sources, max_workers=cfg.worker_count,
                    timeout=cfg.request_timeout, origin="remote")


def index_text(text: str, name: str = "<pasted>") -> GlobalIndex:
    return run_pass([text_source(text, name)], origin=name)


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def filter_functions(functions: Iterable[CppFunction], query: str,
                     limit: int = defaults.SEARCH_LIMIT) -> list[CppFunction]:
    """Every term of ``query`` must occur in name, class, return type or source.

    Results stop at ``limit``.
    """
    terms = query.strip().lower().split()
    results = []

    for func in functions:
        if len(results) >= limit:
            break
        if terms:
            searchable = f"{func.name} {func.class_name} {func.return_type} {func.source_file}".lower()
            if not all(term in searchable for term in terms):
                continue
        results.append(func)

    return results


def filter_entries(entries: Iterable[FileEntry], query: str) -> list[FileEntry]:
    search = query.strip().lower()
    if not search:
        return list(entries)
    return [e for e in entries
            if search in e.file_name.lower()
            or search in e.relative_path.lower()
            or search in e.class_name.lower()]


def filter_unit_functions(functions: Iterable[CppFunction], query: str) -> list[CppFunction]:
    """Per-file function filter on name and return type. Not capped."""
    search = query.strip().lower()
    if not search:
        return list(functions)
    return [f for f in functions
            if search in f.name.lower() or search in f.return_type.lower()]


def filter_unit_fields(fields: Iterable[CppField], query: str) -> list[CppField]:
    search = query.strip().lower()
    if not search:
        return list(fields)
    return [f for f in fields
            if search in f.name.lower() or search in f.type.lower()]


# ---------------------------------------------------------------------------
# Current index holder
# ---------------------------------------------------------------------------

class FileIndex:
    """Holds the current GlobalIndex and replaces it atomically."""

    def __init__(self, search_limit: int = defaults.SEARCH_LIMIT):
        self.search_limit = search_limit
        self._lock = threading.Lock()
        self._current = GlobalIndex()

    @property
    def current(self) -> GlobalIndex:
        with self._lock:
            return self._current

    def publish(self, index: GlobalIndex) -> GlobalIndex:
        """Make ``index`` current. Returns the snapshot it replaced."""
        with self._lock:
            previous, self._current = self._current, index
        return previous

    def clear(self) -> None:
        self.publish(GlobalIndex())

    def filter_functions(self, query: str) -> list[CppFunction]:
        return filter_functions(self.current.functions, query, self.search_limit)

    def filter_entries(self, query: str) -> list[FileEntry]:
        return filter_entries(self.current.entries, query)

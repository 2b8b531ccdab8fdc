"""Keep the index live while headers change on disk.

DirectoryWatcher turns watchdog events into ChangeEvents. ReloadCoordinator
debounces them: every relevant event cancels the pending timer and arms a
new one, and only the last timer of a burst re-scans the folder. Reloads
run one at a time behind a single lock and publish a complete new index.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from asa_hook_creator.index import FileIndex, IndexBuildError, index_directory
from asa_hook_creator.models import GlobalIndex

if TYPE_CHECKING:
    from asa_hook_creator.config import Config


logger = logging.getLogger(__name__)

CREATED = "created"
CHANGED = "changed"
DELETED = "deleted"
RENAMED = "renamed"

IDLE = "idle"
PENDING = "pending"
RELOADING = "reloading"

_WATCHDOG_KINDS = {
    "created": CREATED,
    "modified": CHANGED,
    "deleted": DELETED,
    "moved": RENAMED,
}


@dataclass(frozen=True)
class ChangeEvent:
    """A file change; renames carry the previous path in ``old_path``."""
    kind: str
    path: str
    old_path: Optional[str] = None

    @property
    def paths(self) -> list[str]:
        return [p for p in (self.path, self.old_path) if p]


# ---------------------------------------------------------------------------
# Change feed
# ---------------------------------------------------------------------------

class _ChangeHandler(FileSystemEventHandler):

    def __init__(self, callback: Callable[[ChangeEvent], object]):
        super().__init__()
        self._callback = callback

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        kind = _WATCHDOG_KINDS.get(event.event_type)
        if kind is None:
            return

        if kind == RENAMED:
            change = ChangeEvent(RENAMED, os.fsdecode(event.dest_path), os.fsdecode(event.src_path))
        else:
            change = ChangeEvent(kind, os.fsdecode(event.src_path))
        self._callback(change)


class DirectoryWatcher:
    """One recursive watchdog observer at a time.

    ``start`` synchronously tears down any previous observer before the new
    one is scheduled.
    """

    def __init__(self, callback: Callable[[ChangeEvent], object],
                 observer_factory: Callable[[], Observer] = Observer):
        self._callback = callback
        self._observer_factory = observer_factory
        self._lock = threading.Lock()
        self._observer = None
        self.root = ""

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    def start(self, root: str) -> bool:
        """Watch ``root``. Returns False (and stays inactive) on failure."""
        with self._lock:
            self._stop_locked()

            if not os.path.isdir(root):
                logger.warning("Not watching %s: directory not found", root)
                return False

            observer = self._observer_factory()
            try:
                observer.schedule(_ChangeHandler(self._callback), root, recursive=True)
                observer.start()
            except OSError as exc:
                logger.warning("Failed to set up file watcher for %s: %s", root, exc)
                return False

            self._observer = observer
            self.root = root
            logger.debug("Watching %s", root)
            return True

    def stop(self) -> None:
        with self._lock:
            self._stop_locked()

    def _stop_locked(self) -> None:
        if self._observer is None:
            return
        observer, self._observer = self._observer, None
        observer.unschedule_all()
        observer.stop()
        observer.join()
        logger.debug("Stopped watching %s", self.root)
        self.root = ""


# ---------------------------------------------------------------------------
# Debounced reload
# ---------------------------------------------------------------------------

class ReloadCoordinator:
    """Own the live index of one folder and re-scan it on changes.

    State moves ``idle -> pending`` on a relevant event (timer armed),
    ``pending -> reloading`` when the timer elapses, then back to ``idle``.
    A reload is rejected when the previous one finished less than
    ``min_reload_interval_ms`` ago.
    """

    def __init__(
        self,
        file_index: FileIndex,
        cfg: Config,
        *,
        reload_fn: Optional[Callable[[str], GlobalIndex]] = None,
        on_reload: Optional[Callable[[GlobalIndex], object]] = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
        clock: Callable[[], float] = time.monotonic,
        watcher: Optional[DirectoryWatcher] = None,
    ):
        self.file_index = file_index
        self.cfg = cfg
        self._reload_fn = reload_fn or (lambda root: index_directory(root, cfg))
        self._on_reload = on_reload
        self._timer_factory = timer_factory
        self._clock = clock
        self.watcher = watcher if watcher is not None else DirectoryWatcher(self.notify)

        self._lock = threading.Lock()
        self._reload_lock = threading.Lock()
        self._timer = None
        self._generation = 0
        self._reloading = False
        self._closed = False
        self._last_reload_done: Optional[float] = None

        self.root = ""
        self.status = "Ready"
        self.reload_count = 0

    # -- context manager ------------------------------------------------------

    def __enter__(self) -> ReloadCoordinator:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -- state ----------------------------------------------------------------

    @property
    def state(self) -> str:
        with self._lock:
            if self._reloading:
                return RELOADING
            if self._timer is not None:
                return PENDING
            return IDLE

    @property
    def is_watching(self) -> bool:
        return self.watcher.is_watching

    def is_relevant(self, event: ChangeEvent) -> bool:
        return any(self.cfg.is_header(p) for p in event.paths)

    # -- commands -------------------------------------------------------------

    def load_folder(self, root: str) -> GlobalIndex:
        """Index ``root``, publish it and start watching it.

        Raises IndexBuildError when the folder cannot be enumerated.
        """
        self._cancel_timer()
        index = self._reload_fn(root)
        with self._reload_lock:
            self.root = root
            self.file_index.publish(index)

        if self.watcher.start(root):
            self.status = (f"Found {len(index.entries)} header files with "
                           f"{len(index.functions)} functions (watching for changes)")
        else:
            self.status = (f"Found {len(index.entries)} header files with "
                           f"{len(index.functions)} functions (file watching unavailable)")
        return index

    def toggle_watching(self) -> bool:
        """Stop watching if active, otherwise watch the current folder again."""
        if self.is_watching:
            self.stop()
            self.status = "File watching stopped"
            return False
        if not self.root:
            self.status = "No folder selected to watch"
            return False
        started = self.watcher.start(self.root)
        self.status = "File watching started" if started else "Failed to set up file watcher"
        return started

    def notify(self, event: ChangeEvent) -> bool:
        """Feed one change. Returns True when it (re)armed the debounce timer."""
        if not self.is_relevant(event):
            return False

        with self._lock:
            if self._closed:
                return False
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = self._timer_factory(self.cfg.debounce_seconds, self._on_timer,
                                        args=(self._generation, event))
            timer.daemon = True
            self._timer = timer
            timer.start()

        logger.debug("Change %s: %s (reload pending)", event.kind, event.path)
        return True

    def reload(self) -> Optional[GlobalIndex]:
        """Re-scan the current folder now and publish the result."""
        with self._reload_lock:
            return self._reload_locked()

    def stop(self) -> None:
        """Cancel any pending reload and stop watching."""
        self._cancel_timer()
        self.watcher.stop()

    def close(self) -> None:
        with self._lock:
            self._closed = True
        self.stop()

    # -- internals ------------------------------------------------------------

    def _cancel_timer(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    def _on_timer(self, generation: int, event: ChangeEvent) -> None:
        with self._lock:
            if generation != self._generation or self._closed:
                return
            self._timer = None
            self._reloading = True

        try:
            self._debounced_reload(event)
        except Exception:
            logger.exception("Reload after %s of %s failed", event.kind, event.path)
            self.status = "Reload error"
        finally:
            with self._lock:
                self._reloading = False

    def _debounced_reload(self, event: ChangeEvent) -> None:
        with self._reload_lock:
            now = self._clock()
            if (self._last_reload_done is not None
                    and now - self._last_reload_done < self.cfg.min_reload_interval_seconds):
                logger.debug("Skipping reload: previous reload finished %.3fs ago",
                             now - self._last_reload_done)
                return

            self.status = f"Detected change: {os.path.basename(event.path)} ({event.kind})"
            logger.info(self.status)
            self._reload_locked()

    def _reload_locked(self) -> Optional[GlobalIndex]:
        if not self.root or not os.path.isdir(self.root):
            self.status = f"Reload skipped: folder not found: {self.root}"
            return None

        try:
            index = self._reload_fn(self.root)
        except IndexBuildError as exc:
            self.status = f"Reload failed: {exc}"
            logger.warning(self.status)
            return None
        finally:
            self._last_reload_done = self._clock()

        self.file_index.publish(index)
        self.reload_count += 1
        self.status = f"Reloaded: {len(index.entries)} files, {len(index.functions)} functions"
        logger.info(self.status)

        if self._on_reload is not None:
            self._on_reload(index)
        return index

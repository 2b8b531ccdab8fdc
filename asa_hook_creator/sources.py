"""Named text sources: header files on disk, remote URLs, pasted text.

The index treats all three the same way. Reading is the only blocking step
and happens inside the index workers, one source per call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import requests


FILE = "file"
URL = "url"
TEXT = "text"


@dataclass(frozen=True)
class NamedSource:
    file_name: str
    full_path: str
    relative_path: str
    directory: str
    kind: str = FILE
    text: Optional[str] = None


def list_header_files(root: str, extensions: list[str]) -> list[NamedSource]:
    """Recursively collect header files under ``root``, sorted by path."""
    wanted = {ext.lower() for ext in extensions}
    sources = []

    for dirpath, _, filenames in os.walk(root):
        for filename in filenames:
            if os.path.splitext(filename)[1].lower() not in wanted:
                continue
            full_path = os.path.join(dirpath, filename)
            rel_path = os.path.relpath(full_path, root)
            sources.append(NamedSource(
                file_name=filename,
                full_path=full_path,
                relative_path=rel_path,
                directory=os.path.dirname(rel_path),
            ))

    sources.sort(key=lambda s: s.full_path)
    return sources


def remote_sources(urls: list[str], directory_label: str) -> list[NamedSource]:
    sources = []
    for url in urls:
        file_name = os.path.basename(urlparse(url).path) or url
        sources.append(NamedSource(
            file_name=file_name,
            full_path=url,
            relative_path=file_name,
            directory=directory_label,
            kind=URL,
        ))
    return sources


def text_source(text: str, name: str = "<pasted>") -> NamedSource:
    return NamedSource(
        file_name=name,
        full_path=name,
        relative_path=name,
        directory="",
        kind=TEXT,
        text=text,
    )


def fetch_url(url: str, timeout: float = 30.0) -> str:
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.text


def read_source(source: NamedSource, timeout: float = 30.0) -> str:
    """Return the text of ``source``. Raises OSError / requests errors."""
    if source.kind == TEXT:
        return source.text or ""
    if source.kind == URL:
        return fetch_url(source.full_path, timeout=timeout)
    with open(source.full_path, "r", encoding="utf-8", errors="ignore") as f:
        return f.read()

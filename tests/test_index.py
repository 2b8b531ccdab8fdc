"""Tests for the parallel function index."""

import os

import pytest
import requests

from asa_hook_creator import index as index_mod
from asa_hook_creator import sources
from asa_hook_creator.config import Config
from asa_hook_creator.index import (
    FileIndex,
    IndexBuildError,
    filter_entries,
    filter_functions,
    filter_unit_fields,
    filter_unit_functions,
    index_directory,
    index_remote_set,
    index_text,
)
from asa_hook_creator.models import CppField, CppFunction, GlobalIndex


ACTOR_H = """
struct AActor : UObject
{
	float& LifeSpanField() { return *GetNativePointerField<float*>(this, "AActor.LifeSpan"); }
	void Destroy(bool bNetForce) { NativeCall<void, bool>(this, "AActor.Destroy(bool)", bNetForce); }
	FVector* GetActorLocation(FVector* result) { return NativeCall<FVector*, FVector*>(this, "AActor.GetActorLocation(FVector*)", result); }
};
"""

BUFF_HPP = """
struct APrimalBuff : AActor
{
	void Deactivate() { NativeCall<void>(this, "APrimalBuff.Deactivate()"); }
};
"""


def _make_tree(root):
    (root / "sub").mkdir()
    (root / "Actor.h").write_text(ACTOR_H)
    (root / "sub" / "Buff.hpp").write_text(BUFF_HPP)
    (root / "Empty.h").write_text("// nothing\n")
    (root / "readme.txt").write_text(ACTOR_H)
    return root


def _functions(count, class_name="AActor"):
    return [CppFunction(class_name, "void", f"Func{i:03d}") for i in range(count)]


# ---------------------------------------------------------------------------
# Directory passes
# ---------------------------------------------------------------------------

def test_index_directory(tmp_path):
    _make_tree(tmp_path)
    result = index_directory(str(tmp_path), Config(max_workers=2))

    assert [e.relative_path for e in result.entries] == [
        "Actor.h", "Empty.h", os.path.join("sub", "Buff.hpp"),
    ]
    assert result.attempted == 3
    assert result.scanned == 3
    assert result.origin == str(tmp_path)
    assert result.status == "Indexed 3/3 sources: 3 files, 3 functions"


def test_entries_carry_counts(tmp_path):
    _make_tree(tmp_path)
    result = index_directory(str(tmp_path), Config(max_workers=2))
    actor = result.entries[0]
    assert actor.class_name == "AActor"
    assert actor.function_count == 2
    assert actor.field_count == 1
    assert actor.directory == ""

    empty = result.entries[1]
    assert empty.class_name == ""
    assert empty.function_count == 0

    buff = result.entries[2]
    assert buff.directory == "sub"
    assert buff.file_name == "Buff.hpp"


def test_functions_sorted_and_tagged(tmp_path):
    _make_tree(tmp_path)
    result = index_directory(str(tmp_path), Config(max_workers=2))
    assert [(f.class_name, f.name) for f in result.functions] == [
        ("AActor", "Destroy"),
        ("AActor", "GetActorLocation"),
        ("APrimalBuff", "Deactivate"),
    ]
    assert result.functions[0].source_file == "Actor.h"
    assert result.functions[2].source_file == os.path.join("sub", "Buff.hpp")


def test_pass_is_deterministic(tmp_path):
    _make_tree(tmp_path)
    one = index_directory(str(tmp_path), Config(max_workers=1))
    many = index_directory(str(tmp_path), Config(max_workers=4))
    again = index_directory(str(tmp_path), Config(max_workers=4))
    assert one == many == again


def test_extension_match_ignores_case(tmp_path):
    (tmp_path / "Upper.H").write_text(BUFF_HPP)
    result = index_directory(str(tmp_path), Config())
    assert [e.file_name for e in result.entries] == ["Upper.H"]


def test_empty_directory(tmp_path):
    result = index_directory(str(tmp_path), Config())
    assert result.entries == ()
    assert result.functions == ()
    assert result.attempted == 0


def test_missing_root(tmp_path):
    with pytest.raises(IndexBuildError, match="Source root not found"):
        index_directory(str(tmp_path / "missing"), Config())


def test_unreadable_source_gives_empty_entry(tmp_path, monkeypatch):
    _make_tree(tmp_path)
    real_read = index_mod.read_source

    def flaky_read(source, timeout=30.0):
        if source.file_name == "Actor.h":
            raise PermissionError("denied")
        return real_read(source, timeout=timeout)

    monkeypatch.setattr(index_mod, "read_source", flaky_read)
    result = index_directory(str(tmp_path), Config(max_workers=2))

    assert result.attempted == 3
    assert result.scanned == 2
    assert "(1 unavailable)" in result.status
    actor = result.entries[0]
    assert actor.file_name == "Actor.h"
    assert actor.function_count == 0
    assert [f.name for f in result.functions] == ["Deactivate"]


def test_unexpected_worker_error_is_contained(tmp_path, monkeypatch):
    _make_tree(tmp_path)
    real_scan = index_mod.scan

    def exploding_scan(text):
        if "APrimalBuff" in text:
            raise RuntimeError("boom")
        return real_scan(text)

    monkeypatch.setattr(index_mod, "scan", exploding_scan)
    result = index_directory(str(tmp_path), Config(max_workers=2))
    assert len(result.entries) == 3
    assert result.scanned == 2
    assert [f.class_name for f in result.functions] == ["AActor", "AActor"]


# ---------------------------------------------------------------------------
# Remote and pasted sources
# ---------------------------------------------------------------------------

class _FakeResponse:
    def __init__(self, text, status=200):
        self.text = text
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_index_remote_set(monkeypatch):
    pages = {
        "https://example.invalid/ARK/Actor.h": _FakeResponse(ACTOR_H),
        "https://example.invalid/ARK/Buff.h": _FakeResponse(BUFF_HPP),
        "https://example.invalid/ARK/Gone.h": _FakeResponse("", status=404),
    }

    def fake_get(url, timeout=None):
        if url not in pages:
            raise requests.ConnectionError("unreachable")
        return pages[url]

    monkeypatch.setattr(sources.requests, "get", fake_get)
    urls = list(pages) + ["https://example.invalid/ARK/Offline.h"]
    result = index_remote_set(Config(max_workers=4), urls=urls)

    assert result.attempted == 4
    assert result.scanned == 2
    assert result.origin == "remote"
    assert {e.directory for e in result.entries} == {"AsaApi/ARK"}
    assert [e.relative_path for e in result.entries] == ["Actor.h", "Buff.h", "Gone.h", "Offline.h"]
    assert len(result.functions) == 3
    assert result.functions[2].source_file == "Buff.h"


def test_index_remote_set_needs_urls():
    with pytest.raises(IndexBuildError):
        index_remote_set(Config(remote_urls=[]))


def test_index_text():
    result = index_text(BUFF_HPP, name="clipboard")
    assert result.scanned == 1
    assert result.entries[0].class_name == "APrimalBuff"
    assert result.functions[0].source_file == "clipboard"


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def test_filter_caps_results():
    functions = _functions(250)
    assert len(filter_functions(functions, "")) == 200
    assert len(filter_functions(functions, "func", limit=10)) == 10
    assert len(functions) == 250


def test_filter_with_non_positive_limit_returns_nothing():
    functions = _functions(5)
    assert filter_functions(functions, "", limit=0) == []
    assert filter_functions(functions, "func", limit=-1) == []
    assert FileIndex(search_limit=0).filter_functions("") == []


def test_filter_requires_every_term():
    functions = [
        CppFunction("AActor", "FVector", "GetActorLocation"),
        CppFunction("AActor", "void", "Destroy"),
        CppFunction("APrimalBuff", "float", "GetBuffTime"),
    ]
    assert [f.name for f in filter_functions(functions, "actor get")] == ["GetActorLocation"]
    assert [f.name for f in filter_functions(functions, "  GET  ")] == ["GetActorLocation", "GetBuffTime"]
    assert filter_functions(functions, "actor missing") == []


def test_filter_matches_return_type_and_source():
    func = CppFunction("AActor", "FVector", "Locate", source_file="sub/Actor.h")
    assert filter_functions([func], "fvector") == [func]
    assert filter_functions([func], "sub/") == [func]


def test_filter_entries(tmp_path):
    _make_tree(tmp_path)
    result = index_directory(str(tmp_path), Config())
    assert [e.file_name for e in filter_entries(result.entries, "primalbuff")] == ["Buff.hpp"]
    assert [e.file_name for e in filter_entries(result.entries, "SUB")] == ["Buff.hpp"]
    assert len(filter_entries(result.entries, "")) == 3


def test_unit_filters_are_uncapped():
    functions = _functions(250)
    assert len(filter_unit_functions(functions, "")) == 250
    assert len(filter_unit_functions(functions, "void")) == 250
    assert [f.name for f in filter_unit_functions(functions, "func007")] == ["Func007"]

    fields = [CppField("AActor", "float&", "LifeSpanField"), CppField("AActor", "int&", "CountField")]
    assert [f.name for f in filter_unit_fields(fields, "FLOAT")] == ["LifeSpanField"]


# ---------------------------------------------------------------------------
# FileIndex
# ---------------------------------------------------------------------------

def test_file_index_publish():
    file_index = FileIndex(search_limit=5)
    assert file_index.current == GlobalIndex()

    first = GlobalIndex(functions=tuple(_functions(3)))
    second = GlobalIndex(functions=tuple(_functions(8)))
    assert file_index.publish(first) == GlobalIndex()
    assert file_index.publish(second) is first
    assert file_index.current is second
    assert len(file_index.filter_functions("")) == 5

    file_index.clear()
    assert file_index.current.functions == ()

"""Terminal commands over the scanner, generator and index.

Each command prints its result and returns an exit code. Generated code is
printed as-is, or written to ``--output`` when one is given.
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from asa_hook_creator import generator
from asa_hook_creator.generator import HookConvention
from asa_hook_creator.index import (
    FileIndex,
    IndexBuildError,
    filter_unit_functions,
    index_directory,
    index_remote_set,
)
from asa_hook_creator.models import GlobalIndex, ParsedUnit
from asa_hook_creator.patterns.defaults import PRESETS
from asa_hook_creator.scanner import scan

if TYPE_CHECKING:
    from asa_hook_creator.config import Config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_header(path: str) -> Optional[str]:
    """Read a header file, or stdin for ``-``. Prints an error on failure."""
    if path == "-":
        return sys.stdin.read()
    try:
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            return f.read()
    except OSError as exc:
        print(f"ERROR: Cannot read {path}: {exc.strerror or exc}")
        return None


def _convention(cfg: Config) -> Optional[HookConvention]:
    try:
        return HookConvention.from_preset(cfg.hook_preset)
    except KeyError:
        print(f"ERROR: Unknown hook preset: {cfg.hook_preset}")
        print(f"Available presets: {', '.join(sorted(PRESETS))}")
        return None


def _emit(code: str, output: Optional[str]) -> int:
    if not output:
        print(code, end="" if code.endswith("\n") else "\n")
        return 0
    try:
        Path(output).write_text(code, encoding="utf-8")
    except OSError as exc:
        print(f"ERROR: Save error: {exc}")
        return 1
    print(f"Saved to: {output}")
    return 0


def _build_index(cfg: Config, root: Optional[str], remote: bool) -> Optional[GlobalIndex]:
    try:
        if remote:
            return index_remote_set(cfg)
        root = root or cfg.source_root
        if not root:
            print("ERROR: No source root configured. Pass a folder, --source-root or --remote.")
            return None
        return index_directory(root, cfg)
    except IndexBuildError as exc:
        print(f"ERROR: {exc}")
        return None


def _print_unit_summary(unit: ParsedUnit) -> None:
    print(f"// Class:      {unit.class_name or '(none)'}")
    print(f"// Functions:  {len(unit.functions)}")
    print(f"// Fields:     {len(unit.fields)}")
    print(f"// BitFields:  {len(unit.bit_fields)}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_parse(path: str, cfg: Config) -> int:
    """Show everything recognised in one header."""
    content = _read_header(path)
    if content is None:
        return 1

    unit = scan(content)
    _print_unit_summary(unit)

    if unit.is_empty:
        print("\nNo declarations found")
        return 1

    if unit.functions:
        print("\nFunctions:")
        for func in unit.functions:
            flags = " [static]" if func.is_static else ""
            print(f"  {func.display_name}{flags}")
            print(f"      -> {func.native_call_signature}")

    if unit.fields:
        print("\nFields:")
        for fld in unit.fields:
            print(f"  {fld.type:40} {fld.name}")

    if unit.bit_fields:
        print("\nBitFields:")
        for fld in unit.bit_fields:
            print(f"  {fld.type:40} {fld.name}  ({fld.identifier_path})")

    return 0


def cmd_generate(path: str, name: str, mode: str, cfg: Config, *,
                 include_original: bool = True, with_unregister: bool = False,
                 output: Optional[str] = None) -> int:
    """Generate hook code for one function (or an accessor snippet for a field)."""
    convention = _convention(cfg)
    if convention is None:
        return 1
    content = _read_header(path)
    if content is None:
        return 1

    unit = scan(content)
    func = unit.find_function(name)
    if func is not None:
        if with_unregister:
            code = generator.generate_with_unregister(func, convention)
        else:
            code = generator.generate(func, mode, include_original=include_original,
                                      convention=convention)
        return _emit(code, output)

    fld = unit.find_field(name)
    if fld is not None:
        return _emit(generator.generate_field_accessor(fld), output)

    print(f"ERROR: No function or field named '{name}' in {path}")
    if unit.functions:
        print("\nAvailable functions (sample):")
        for f in unit.functions[:20]:
            print(f"  {f.name}")
    return 1


def cmd_generate_class(path: str, cfg: Config, *, filter_pattern: Optional[str] = None,
                       output: Optional[str] = None) -> int:
    """Generate a hooks header for every (filtered) function of a class."""
    convention = _convention(cfg)
    if convention is None:
        return 1
    content = _read_header(path)
    if content is None:
        return 1

    unit = scan(content)
    functions = filter_unit_functions(unit.functions, filter_pattern or "")
    if not functions:
        print("ERROR: No functions to generate hooks for")
        return 1

    code = generator.generate_class_file(unit.class_name, functions, convention)
    ret = _emit(code, output)
    if ret == 0 and output:
        print(f"Generated hooks for {len(functions)} functions")
    return ret


def cmd_index(cfg: Config, root: Optional[str] = None, *, remote: bool = False,
              filter_pattern: Optional[str] = None) -> int:
    """Index a folder (or the remote set) and list its header files."""
    index = _build_index(cfg, root, remote)
    if index is None:
        return 1

    file_index = FileIndex(search_limit=cfg.search_limit)
    file_index.publish(index)
    entries = file_index.filter_entries(filter_pattern or "")

    print(index.status)
    print()
    for entry in entries:
        class_name = entry.class_name or "-"
        print(f"  {entry.relative_path:50} {class_name:32} "
              f"{entry.function_count:5} funcs {entry.field_count:5} fields")

    if filter_pattern and not entries:
        print(f"No header files matching '{filter_pattern}'")
        return 1
    return 0


def cmd_search(terms: list[str], cfg: Config, root: Optional[str] = None, *,
               remote: bool = False) -> int:
    """Search functions across every indexed header (all terms must match)."""
    index = _build_index(cfg, root, remote)
    if index is None:
        return 1

    file_index = FileIndex(search_limit=cfg.search_limit)
    file_index.publish(index)
    query = " ".join(terms)
    matches = file_index.filter_functions(query)

    if not matches:
        print(f"No functions matching '{query}'")
        return 1

    print(f"Found {len(matches)} functions matching '{query}':\n")
    for func in matches:
        print(f"  {func.class_name}::{func.display_name:60}  {func.source_file}")

    if len(matches) >= cfg.search_limit:
        print(f"\n  (showing the first {cfg.search_limit}; refine the search)")
    return 0


def cmd_watch(cfg: Config, root: Optional[str] = None, *, poll_interval: float = 1.0) -> int:
    """Index a folder and keep it live until interrupted."""
    from asa_hook_creator.watcher import ReloadCoordinator

    root = root or cfg.source_root
    if not root:
        print("ERROR: No source root configured. Pass a folder or --source-root.")
        return 1

    file_index = FileIndex(search_limit=cfg.search_limit)

    def _report(index: GlobalIndex) -> None:
        print(index.status, flush=True)

    with ReloadCoordinator(file_index, cfg, on_reload=_report) as coordinator:
        try:
            coordinator.load_folder(root)
        except IndexBuildError as exc:
            print(f"ERROR: {exc}")
            return 1

        print(coordinator.status, flush=True)
        if not coordinator.is_watching:
            return 1

        try:
            while coordinator.is_watching:
                time.sleep(poll_interval)
        except KeyboardInterrupt:
            print("\nFile watching stopped")

    return 0


def cmd_presets() -> int:
    """List the available hook conventions."""
    for name, preset in sorted(PRESETS.items()):
        print(f"  {name:12} {preset.get('description', name)}")
        print(f"  {'':12} hooks: {preset['hooks_accessor']}  macro: {preset['declare_macro']}")
    return 0

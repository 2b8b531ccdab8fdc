"""CLI dispatcher for asa-hook-creator.

Usage:
    asa-hooks <command> [args...]

Commands:
    parse <file|->                    Show class, functions, fields, bit-fields
    generate <file|-> <name>          Generate hook code for a function or field
    generate-class <file|->           Generate a hooks header for a whole class
    index [folder]                    Index header files (or --remote set)
    search <terms...>                 Search functions across all headers
    watch [folder]                    Index a folder and reload on changes
    presets                           List hook conventions
"""

from __future__ import annotations

import argparse
import logging

from asa_hook_creator.config import load_config
from asa_hook_creator.generator import ALL, MODES


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asa-hooks",
        description="Extract declarations from AsaApi headers and generate hook boilerplate",
    )
    parser.add_argument("--config", help="Path to config file")
    parser.add_argument("--source-root", dest="source_root", help="Override header folder")
    parser.add_argument("--preset", dest="hook_preset", help="Hook convention preset")
    parser.add_argument("--workers", dest="max_workers", type=int, help="Maximum parallel scans")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log indexing details")

    sub = parser.add_subparsers(dest="command")

    # parse
    p_parse = sub.add_parser("parse", help="Show declarations found in a header")
    p_parse.add_argument("file", help="Header file, or - for stdin")

    # generate
    p_gen = sub.add_parser("generate", help="Generate hook code for one function")
    p_gen.add_argument("file", help="Header file, or - for stdin")
    p_gen.add_argument("name", help="Function (or field) name")
    p_gen.add_argument("--mode", default=ALL, choices=MODES,
                       help="What to generate (default: all)")
    p_gen.add_argument("--no-original", dest="include_original", action="store_false",
                       help="Leave the original call out of pre/post templates")
    p_gen.add_argument("--with-unregister", action="store_true",
                       help="Append the DisableHook call to the full hook")
    p_gen.add_argument("--output", "-o", help="Write the code to this file")

    # generate-class
    p_cls = sub.add_parser("generate-class", help="Generate a hooks header for a class")
    p_cls.add_argument("file", help="Header file, or - for stdin")
    p_cls.add_argument("--filter", dest="filter", default=None,
                       help="Only functions whose name or return type matches")
    p_cls.add_argument("--output", "-o", help="Write the code to this file")

    # index / search
    p_index = sub.add_parser("index", help="Index header files")
    p_index.add_argument("folder", nargs="?", default=None, help="Folder to scan")
    p_index.add_argument("--remote", action="store_true", help="Index the remote header set")
    p_index.add_argument("--filter", dest="filter", default=None,
                         help="Only files whose name, path or class matches")

    p_search = sub.add_parser("search", help="Search functions across headers")
    p_search.add_argument("terms", nargs="+", help="Search terms (all must match)")
    p_search.add_argument("--folder", default=None, help="Folder to scan")
    p_search.add_argument("--remote", action="store_true", help="Search the remote header set")

    # watch
    p_watch = sub.add_parser("watch", help="Keep an index of a folder live")
    p_watch.add_argument("folder", nargs="?", default=None, help="Folder to watch")

    sub.add_parser("presets", help="List hook conventions")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    # Build CLI overrides dict
    cli_overrides = {}
    if args.source_root:
        cli_overrides["source_root"] = args.source_root
    if args.hook_preset:
        cli_overrides["hook_preset"] = args.hook_preset
    if args.max_workers:
        cli_overrides["max_workers"] = args.max_workers

    cfg = load_config(config_path=args.config, cli_overrides=cli_overrides or None)

    from asa_hook_creator import commands

    cmd = args.command
    dispatch = {
        "parse":          lambda: commands.cmd_parse(args.file, cfg),
        "generate":       lambda: commands.cmd_generate(
                              args.file, args.name, args.mode, cfg,
                              include_original=args.include_original,
                              with_unregister=args.with_unregister,
                              output=args.output),
        "generate-class": lambda: commands.cmd_generate_class(
                              args.file, cfg, filter_pattern=args.filter, output=args.output),
        "index":          lambda: commands.cmd_index(
                              cfg, args.folder, remote=args.remote, filter_pattern=args.filter),
        "search":         lambda: commands.cmd_search(
                              args.terms, cfg, args.folder, remote=args.remote),
        "watch":          lambda: commands.cmd_watch(cfg, args.folder),
        "presets":        lambda: commands.cmd_presets(),
    }

    handler = dispatch.get(cmd)
    if handler:
        return handler()

    parser.print_help()
    return 1

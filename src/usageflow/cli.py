#!/usr/bin/env python3
"""
usageflow CLI

Subcommands:
  - analyze:      run usage propagation over a graph description, write report (+ graph)
  - explain:      show how an entry point reaches a module
  - init:         generate usageflow.yaml
  - show-config:  print the effective configuration
"""
from __future__ import annotations

import sys
import argparse
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from .config_loader import UsageflowConfig, load_config, save_example_config
from .graph_loader import apply_side_effect_free_patterns, load_graph, merge_entries
from .node_types import EntryPoint, ModuleGraph

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_INPUT_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="usageflow", description="Module reachability and export usage analysis")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    # -v is accepted before or after the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd")

    p_an = sub.add_parser("analyze", help="Analyze a module graph description", parents=[common])
    p_an.add_argument("graph", nargs="?", default=None, help="Graph description (yaml/json/toml); default from config")
    p_an.add_argument("--config", default=None, help="Path to config file")
    p_an.add_argument("--output", default=None, help="Override output directory")
    p_an.add_argument("--format", default=None, help="Graphviz output format (svg, png, ...)")
    p_an.add_argument("--no-render", action="store_true", help="Skip Graphviz rendering")
    p_an.add_argument("--entry", action="append", default=[], metavar="NAME=MODULE", help="Add or override an entry point")

    p_ex = sub.add_parser("explain", help="Explain how a module is reached", parents=[common])
    p_ex.add_argument("module", help="Module id to explain")
    p_ex.add_argument("graph", nargs="?", default=None, help="Graph description; default from config")
    p_ex.add_argument("--config", default=None, help="Path to config file")

    p_init = sub.add_parser("init", help="Generate usageflow.yaml", parents=[common])
    p_init.add_argument("--force", action="store_true", help="Overwrite existing file")
    p_init.add_argument("--path", default="usageflow.yaml", help="Where to write the config")

    p_show = sub.add_parser("show-config", help="Print the effective configuration", parents=[common])
    p_show.add_argument("--config", default=None, help="Path to config file")

    return parser


def _parse_entry_args(values: List[str]) -> dict:
    out = {}
    for raw in values:
        name, sep, module = raw.partition("=")
        if not sep or not name or not module:
            raise ValueError(f"--entry expects NAME=MODULE, got {raw!r}")
        out[name.strip()] = module.strip()
    return out


def _prepare(config: UsageflowConfig, graph_arg: Optional[str], extra_entries: Optional[dict] = None) -> Tuple[ModuleGraph, List[EntryPoint]]:
    graph_path = Path(graph_arg or config.graph)
    graph, entries = load_graph(graph_path)
    apply_side_effect_free_patterns(graph, config.side_effect_free)
    overrides = dict(config.entries)
    overrides.update(extra_entries or {})
    entries = merge_entries(entries, overrides, graph)
    return graph, entries


def _cmd_analyze(args: argparse.Namespace) -> int:
    from .propagation import UsagePropagation
    from .report import build_usage_report, collect_edges, save_usage_report

    config = load_config(Path(args.config) if args.config else None)
    graph, entries = _prepare(config, args.graph, _parse_entry_args(args.entry))

    engine = UsagePropagation(graph)
    table = engine.run(entries)

    output_dir = Path(args.output or config.output)
    report = build_usage_report(graph, entries, table)
    out = save_usage_report(report, output_dir)

    s = report["summary"]
    print(f"✅ {s['reachable']}/{s['modules_total']} modules reachable from {s['entries']} entries")
    print(f"   pruned: {s['pruned']}  unreachable: {s['unreachable']}  unused exports: {s['unused_exports']}")
    print(f"   report: {out}")

    if config.render and not args.no_render:
        from .graphviz_render import render_usage_graph

        fmt = args.format or config.format
        dot_path, rendered = render_usage_graph(
            graph, table, collect_edges(graph, engine.resolver), str(output_dir / "usage_graph"), fmt=fmt, entries=entries
        )
        if rendered:
            print(f"   graph: {rendered}")
        else:
            print(f"⚠️  Graphviz executable not found, wrote DOT only: {dot_path}")
    return EXIT_OK


def _cmd_explain(args: argparse.Namespace) -> int:
    from .propagation import UsagePropagation
    from .report import explain_reachability

    config = load_config(Path(args.config) if args.config else None)
    graph, entries = _prepare(config, args.graph)
    if args.module not in graph:
        print(f"❌ unknown module: {args.module}")
        return EXIT_INPUT_ERROR

    engine = UsagePropagation(graph)
    engine.run(entries)
    result = explain_reachability(graph, entries, args.module, resolver=engine.resolver)
    if not result["found"]:
        print(f"{args.module} is not reachable from any entry point")
        return EXIT_NOT_FOUND

    print(f"{result['entry']}: {_entry_module(entries, result['entry'])}")
    for e in result["path_edges"]:
        lazy = " (lazy)" if e["lazy"] else ""
        imports = e["imports"] if e["imports"] is not None else "-"
        print(f"  -> {e['dst']}  imports: {imports}{lazy}")
    return EXIT_OK


def _entry_module(entries: List[EntryPoint], name: str) -> str:
    for e in entries:
        if e.name == name and e.module:
            return e.module
    raise KeyError(name)


def _cmd_init(args: argparse.Namespace) -> int:
    try:
        path = save_example_config(Path(args.path), force=args.force)
    except FileExistsError as e:
        print(f"⚠️  {e} (use --force to overwrite)")
        return EXIT_INPUT_ERROR
    print(f"✅ config written: {path}")
    return EXIT_OK


def _cmd_show_config(args: argparse.Namespace) -> int:
    config = load_config(Path(args.config) if args.config else None)
    print(f"config: {config.source or '(defaults)'}")
    print(f"  graph: {config.graph}")
    print(f"  entries: {', '.join(f'{k}={v}' for k, v in config.entries.items()) or '-'}")
    print(f"  side_effect_free: {', '.join(config.side_effect_free) or '-'}")
    print(f"  output: {config.output}  format: {config.format}  render: {config.render}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.cmd:
        parser.print_help()
        return EXIT_OK

    handlers = {
        "analyze": _cmd_analyze,
        "explain": _cmd_explain,
        "init": _cmd_init,
        "show-config": _cmd_show_config,
    }
    try:
        return handlers[args.cmd](args)
    except (FileNotFoundError, ImportError, ValueError) as e:
        print(f"❌ {e}")
        return EXIT_INPUT_ERROR


if __name__ == "__main__":
    sys.exit(main())

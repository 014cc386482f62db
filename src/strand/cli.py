"""Command-line interface for Strand."""

from __future__ import annotations

import argparse
import sys
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from strand.errors import EvalError, StrandError
from strand.parser import DEFAULT_MAX_EXPR_DEPTH
from strand.scanner import DEFAULT_MAX_DEPTH


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    output_file: Path | None
    env: dict[str, str]
    max_depth: int
    max_context_depth: int
    watch: bool
    debug: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="strand",
        description="Run a Strand script",
    )
    p.add_argument("input", help="Input .strand script")
    p.add_argument("-o", "--output", help="Write printed output to FILE (default: stdout)")
    p.add_argument(
        "-e",
        "--env",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Predefine a string constant (repeatable)",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover strand.toml)",
    )
    p.add_argument(
        "--max-depth",
        type=int,
        default=None,
        metavar="N",
        help=f"Expression nesting limit (default: {DEFAULT_MAX_EXPR_DEPTH})",
    )
    p.add_argument(
        "--max-context-depth",
        type=int,
        default=None,
        metavar="N",
        help=f"String literal context stack limit (default: {DEFAULT_MAX_DEPTH})",
    )
    p.add_argument("--watch", action="store_true", help="Watch for changes and re-run")
    p.add_argument("--debug", action="store_true", help="Dump AST to stderr")
    return p


def parse_env_arg(s: str) -> tuple[str, str]:
    """Parse a NAME=VALUE string into (name, value)."""
    if "=" not in s:
        raise argparse.ArgumentTypeError(f"invalid env format (expected NAME=VALUE): {s}")
    name, _, value = s.partition("=")
    if not name.isidentifier():
        raise argparse.ArgumentTypeError(f"invalid variable name in env: {name!r}")
    return name, value


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / "strand.toml"

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: defaults < config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)

    # Environment constants: config < CLI
    env: dict[str, str] = {}
    cfg_env = config.get("env")
    if isinstance(cfg_env, dict):
        for k, v in cfg_env.items():
            env[str(k)] = str(v)
    for raw in args.env:
        name, value = parse_env_arg(raw)
        env[name] = value

    # Nesting limits: config < CLI
    max_depth = DEFAULT_MAX_EXPR_DEPTH
    max_context_depth = DEFAULT_MAX_DEPTH
    cfg_limits = config.get("limits")
    if isinstance(cfg_limits, dict):
        cfg_depth = cfg_limits.get("max_depth")
        if isinstance(cfg_depth, int) and not isinstance(cfg_depth, bool):
            max_depth = cfg_depth
        cfg_context = cfg_limits.get("max_context_depth")
        if isinstance(cfg_context, int) and not isinstance(cfg_context, bool):
            max_context_depth = cfg_context
    if args.max_depth is not None:
        max_depth = args.max_depth
    if args.max_context_depth is not None:
        max_context_depth = args.max_context_depth

    if max_depth < 1 or max_context_depth < 1:
        raise argparse.ArgumentTypeError("nesting limits must be at least 1")

    output_file = Path(args.output) if args.output else None

    return CliOptions(
        input_file=input_file,
        output_file=output_file,
        env=env,
        max_depth=max_depth,
        max_context_depth=max_context_depth,
        watch=args.watch,
        debug=args.debug,
    )


def run_file(options: CliOptions, lines: list[str] | None = None) -> str:
    """Read, parse, and run a Strand script; return everything it printed.

    Printed lines are also appended to *lines* as they happen, so a caller
    can still show the output produced before a runtime error.
    """
    from strand.debug import dump_ast
    from strand.eval import evaluate
    from strand.parser import parse

    source = options.input_file.read_text(encoding="utf-8")
    script = parse(
        source,
        max_depth=options.max_depth,
        max_context_depth=options.max_context_depth,
    )

    if options.debug:
        dump_ast(script, file=sys.stderr)

    if lines is None:
        lines = []

    def on_debug(text: str) -> None:
        print(text, file=sys.stderr)

    evaluate(script, source, env=options.env, on_print=lines.append, on_debug=on_debug)
    return "".join(f"{line}\n" for line in lines)


def _write_output(output: str, options: CliOptions) -> None:
    if options.output_file:
        options.output_file.write_text(output, encoding="utf-8")
    else:
        sys.stdout.write(output)


def _report(exc: StrandError, options: CliOptions) -> None:
    print(exc.format(str(options.input_file)), file=sys.stderr)


def watch_loop(options: CliOptions) -> None:
    """Poll input file for changes, re-run on each modification."""
    last_mtime = 0.0
    print(f"Watching {options.input_file} for changes...", file=sys.stderr)
    try:
        while True:
            try:
                mtime = options.input_file.stat().st_mtime
            except OSError:
                time.sleep(0.5)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                try:
                    _write_output(run_file(options), options)
                    sys.stdout.flush()
                    print(f"Ran {options.input_file}", file=sys.stderr)
                except StrandError as exc:
                    _report(exc, options)
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if options.watch:
        watch_loop(options)
        return 0

    printed: list[str] = []
    try:
        output = run_file(options, printed)
    except EvalError as exc:
        _write_output("".join(f"{line}\n" for line in printed), options)
        _report(exc, options)
        return 2
    except StrandError as exc:
        _report(exc, options)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    _write_output(output, options)
    return 0

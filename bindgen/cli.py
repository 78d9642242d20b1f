"""Command-line entry point."""

from __future__ import annotations

import os
import sys

from . import GeneratedUnit, generate
from .frontend.load import LoadError, loads
from .frontend.validate import InvalidDeclaration, check_module
from .ir import Module, Options
from .middleend.assemble import plan_module
from .serialize import module_to_dict, plan_to_dict, to_json

PHASES: list[str] = [
    "load",
    "validate",
    "plan",
]

EMIT_KINDS: list[str] = [
    "source",
    "header",
    "both",
]

USAGE: str = """\
bindgen [OPTIONS] [INPUT] [-o DIR]

Generate QuickJS bindings from a JSON declaration model.

Options:
  --stop-at PHASE     Stop after phase and print it as JSON: load, validate, plan
  --emit KIND         Files to emit: source, header, both (default: both)
  --namespace NS      C++ namespace of the generated code (default: kraken)
  --strict-arity      Throw when a call passes more arguments than declared
  -o, --output-dir DIR
                      Write qjs_<id>.cc/.h into DIR instead of stdout
  --verbose           Report written files on stderr
  --help              Show this help message
"""


class CliConfig:
    """Parsed command-line settings."""

    def __init__(self) -> None:
        self.stop_at: str | None = None
        self.emit: str = "both"
        self.namespace: str = "kraken"
        self.strict_arity: bool = False
        self.input_file: str | None = None
        self.output_dir: str | None = None
        self.verbose: bool = False

    def options(self) -> Options:
        return Options(namespace=self.namespace, strict_arity=self.strict_arity)


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except OSError:
            print("error: cannot open '" + input_file + "'", file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("error: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)
    return (source, 0)


def _selected_files(unit: GeneratedUnit, emit: str) -> list[tuple[str, str]]:
    if emit == "source":
        return [(unit.source_name, unit.source)]
    if emit == "header":
        return [(unit.header_name, unit.header)]
    return unit.files()


def write_units(units: list[GeneratedUnit], config: CliConfig) -> int:
    """Write generated files to the output directory or stdout. Returns exit code."""
    files: list[tuple[str, str]] = []
    for unit in units:
        files.extend(_selected_files(unit, config.emit))
    if config.output_dir is None:
        for name, text in files:
            if len(files) > 1:
                print("// " + name)
            sys.stdout.write(text)
        return 0
    try:
        os.makedirs(config.output_dir, exist_ok=True)
    except OSError:
        print("error: cannot create '" + config.output_dir + "'", file=sys.stderr)
        return 1
    for name, text in files:
        path = os.path.join(config.output_dir, name)
        try:
            with open(path, "w") as f:
                f.write(text)
        except OSError:
            print("error: cannot write '" + path + "'", file=sys.stderr)
            return 1
        if config.verbose:
            print("bindgen: wrote " + path, file=sys.stderr)
    return 0


def _print_errors(errors: list[object]) -> None:
    """Print a list of error objects to stderr."""
    for e in errors:
        print(str(e), file=sys.stderr)


def run_pipeline(source: str, config: CliConfig) -> tuple[int, str, list[GeneratedUnit]]:
    """Run the generator. Returns (exit_code, phase_output, units)."""
    # Phase 1: Load
    try:
        modules: list[Module] = loads(source)
    except LoadError as e:
        print("error:" + e.path + ": [load] " + e.msg, file=sys.stderr)
        return (1, "", [])
    if config.stop_at == "load":
        return (0, to_json([module_to_dict(m) for m in modules]), [])
    # Phase 2: Validate
    failed = False
    for module in modules:
        errors = check_module(module).errors()
        if len(errors) > 0:
            _print_errors(list(errors))
            failed = True
    if failed:
        return (1, "", [])
    if config.stop_at == "validate":
        return (0, "", [])
    options = config.options()
    # Phase 3: Plan
    if config.stop_at == "plan":
        return (0, to_json([plan_to_dict(plan_module(m, options)) for m in modules]), [])
    # Phase 4: Emit
    units: list[GeneratedUnit] = []
    for module in modules:
        try:
            units.append(generate(module, options))
        except InvalidDeclaration as e:
            _print_errors(list(e.errors))
            return (1, "", [])
    return (0, "", units)


def _option_value(args: list[str], i: int) -> str:
    if i + 1 >= len(args):
        print("error: " + args[i] + " requires an argument", file=sys.stderr)
        sys.exit(2)
    return args[i + 1]


def parse_args(args: list[str]) -> CliConfig:
    """Parse command-line arguments. Exits with status 2 on usage errors."""
    config = CliConfig()
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--stop-at":
            config.stop_at = _option_value(args, i)
            i += 2
        elif arg == "--emit":
            config.emit = _option_value(args, i)
            i += 2
        elif arg == "--namespace":
            config.namespace = _option_value(args, i)
            i += 2
        elif arg == "-o" or arg == "--output-dir":
            config.output_dir = _option_value(args, i)
            i += 2
        elif arg == "--strict-arity":
            config.strict_arity = True
            i += 1
        elif arg == "--verbose":
            config.verbose = True
            i += 1
        elif arg.startswith("-") and arg != "-":
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            sys.exit(2)
        else:
            if config.input_file is not None:
                print("error: unexpected argument '" + arg + "'", file=sys.stderr)
                sys.exit(2)
            config.input_file = None if arg == "-" else arg
            i += 1
    if config.stop_at is not None and config.stop_at not in PHASES:
        print("error: unknown phase '" + config.stop_at + "'", file=sys.stderr)
        sys.exit(2)
    if config.emit not in EMIT_KINDS:
        print("error: unknown emit kind '" + config.emit + "'", file=sys.stderr)
        sys.exit(2)
    return config


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    config = parse_args(argv if argv is not None else sys.argv[1:])
    source, err = read_source(config.input_file)
    if err != 0:
        return err
    if len(source.strip()) == 0:
        print("error: no input provided", file=sys.stderr)
        return 2
    exit_code, output, units = run_pipeline(source, config)
    if exit_code != 0:
        return exit_code
    if len(output) > 0:
        print(output)
        return 0
    if len(units) > 0:
        return write_units(units, config)
    return 0


if __name__ == "__main__":
    sys.exit(main())

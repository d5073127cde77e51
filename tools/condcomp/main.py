from .env import build_env, format_variables, parse_define, COMPILER_VERSION
from .errors import PreprocessError
from .lexer import Lexer
from .preprocess import filter_tokens, unparse

import sys


USAGE = "usage: python3 -m condcomp <file> [--define NAME[=VALUE] ...] [-o OUT] [--list-conditionals]"


def main(argv) -> int:
    src_file = None
    out_file = None
    defines: dict = {}
    list_conditionals = False

    # Parse flags
    i = 1
    while i < len(argv):
        arg = argv[i]
        if arg in ("--define", "-D") and i + 1 < len(argv):
            try:
                name, raw = parse_define(argv[i + 1])
            except ValueError as e:
                print(f"error: {e}", file=sys.stderr)
                return 2
            defines[name] = raw
            i += 2
        elif arg == "-o" and i + 1 < len(argv):
            out_file = argv[i + 1]
            i += 2
        elif arg == "--list-conditionals":
            list_conditionals = True
            i += 1
        elif arg == "--version":
            print(COMPILER_VERSION)
            return 0
        elif arg in ("--define", "-D", "-o"):
            print(f"error: option {arg} requires an argument", file=sys.stderr)
            return 2
        elif arg.startswith("-"):
            print(f"error: unknown option {arg!r}", file=sys.stderr)
            print(USAGE, file=sys.stderr)
            return 2
        elif src_file is None:
            src_file = arg
            i += 1
        else:
            print(f"error: unexpected argument {arg!r}", file=sys.stderr)
            print(USAGE, file=sys.stderr)
            return 2

    env = build_env(defines)

    if list_conditionals:
        sys.stdout.write(format_variables(env))
        if src_file is None:
            return 0

    if src_file is None:
        print(USAGE, file=sys.stderr)
        return 2

    try:
        with open(src_file, encoding="utf-8") as f:
            src = f.read()
    except OSError as e:
        print(f"error: cannot read {src_file}: {e.strerror}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(f"error: cannot read {src_file}: not valid UTF-8 (byte {e.start})", file=sys.stderr)
        return 1

    try:
        toks = Lexer(src, file=src_file).tokenize()
        text = unparse(filter_tokens(toks, env))
    except PreprocessError as e:
        print(str(e), file=sys.stderr)
        return 1

    if out_file is None:
        sys.stdout.write(text)
        return 0
    try:
        with open(out_file, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        print(f"error: cannot write {out_file}: {e.strerror}", file=sys.stderr)
        return 1
    return 0


def run() -> None:
    sys.exit(main(sys.argv))


if __name__ == "__main__":
    run()

import os
import sys
from pathlib import Path

from minilisp.minilisp_runtime import Env
from minilisp.minilisp_printer import Printer
from minilisp.minilisp_serialize import serialize


# A basic input prompt; tests replace it.
def read_line(prompt: str) -> str:
    return input(prompt)


def format_value(value) -> str:
    """Render a result using MINILISP_OUTPUT_FORMAT (pretty, json or yaml)."""
    fmt = os.environ.get("MINILISP_OUTPUT_FORMAT", "pretty").lower()
    if fmt == "pretty":
        return Printer().pformat(value)
    return serialize(value, fmt=fmt).rstrip("\n")


def run_script_file(file_path: str):
    """Evaluate a MiniLisp file non-interactively and exit with appropriate status."""
    env = Env(load_stdlib=True)
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    result = env.run(source)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        raise SystemExit(1)
    try:
        print(format_value(result.value))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)


def main(argv=None):
    """Run a script file when provided, otherwise start the interactive REPL."""
    argv = sys.argv[1:] if argv is None else argv
    if argv and not argv[0].startswith("-"):
        run_script_file(argv[0])
        return

    print("MiniLisp REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    env = Env(load_stdlib=True)

    while True:
        try:
            line = read_line(">> ").strip()
        except EOFError:
            print("\nExiting.")
            break
        if not line:
            continue
        if line == "exit":
            break

        result = env.run(line)
        if result.status == 'error':
            print(result.format_error(), file=sys.stderr)
            continue
        try:
            print(format_value(result.value))
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)


def run():
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting.")


if __name__ == "__main__":
    run()

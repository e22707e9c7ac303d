"""Entry point: python -m foldkeep [edit FILE | list FILE | prune]

- "edit FILE":  Interactive fold editing of FILE (folds restored and saved)
- "list FILE":  Print the fold set stored for FILE
- "prune":      Delete fold sets whose file no longer exists
"""

from __future__ import annotations

import logging
import sys

from foldkeep.config import load_config
from foldkeep.errors import FoldError


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _run_edit(path: str) -> None:
    """Interactive REPL mode."""
    config = load_config()
    _setup_logging(config.log_level)

    from foldkeep.connectors.cli import run_repl
    from foldkeep.core import FoldKeeper

    run_repl(FoldKeeper(config), path)


def _run_list(path: str) -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from foldkeep.persistence import FoldPersistence

    persistence = FoldPersistence(config)
    for start, end in persistence.load_spans(path):
        print(f"{start}\t{end}")


def _run_prune() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from foldkeep.persistence import FoldPersistence

    removed = FoldPersistence(config).prune()
    print(f"Removed {removed} stale fold set(s) from {config.persist_dir}")


def _usage() -> None:
    print("Usage: python -m foldkeep [edit FILE|list FILE|prune]")
    print("  edit FILE  Interactive fold editing (default when only FILE is given)")
    print("  list FILE  Print the stored fold set of FILE")
    print("  prune      Delete fold sets of files that no longer exist")
    sys.exit(1)


def main() -> None:
    args = sys.argv[1:]
    if not args:
        _usage()

    try:
        if args[0] == "edit" and len(args) == 2:
            _run_edit(args[1])
        elif args[0] == "list" and len(args) == 2:
            _run_list(args[1])
        elif args[0] == "prune" and len(args) == 1:
            _run_prune()
        elif len(args) == 1 and args[0] not in ("edit", "list"):
            _run_edit(args[0])
        else:
            _usage()
    except FoldError as e:
        print(f"foldkeep: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def _ensure_repo_root_on_path() -> None:
    """Ensure the repository root (parent of this package) is on ``sys.path``.

    When this module is executed as a script (``python quiz_duel/__main__.py``)
    the package is not importable by name; inserting the parent directory of
    the package fixes that.
    """
    pkg_dir = Path(__file__).resolve().parent
    repo_root_str = str(pkg_dir.parent)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


try:
    # Works when executed as a module: python -m quiz_duel
    from .app import run  # type: ignore[attr-defined]
except ImportError:
    _ensure_repo_root_on_path()
    from quiz_duel.app import run  # type: ignore[attr-defined]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quiz-duel", description="Two-player same-screen quiz duel")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("play", help="Run the game (default)")
    s = sub.add_parser("serve", help="Serve the question endpoint over HTTP")
    s.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    s.add_argument("--port", type=int, default=8000, help="Port to listen on")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.cmd == "serve":
        from quiz_duel.config import Settings
        from quiz_duel.logs import setup_logging
        from quiz_duel.server import serve

        setup_logging(Settings.from_env().log_level)
        return serve(host=args.host, port=args.port)
    return run()


if __name__ == "__main__":
    raise SystemExit(main())

"""Entry point for pattonote."""

import argparse
import logging
import sys
from pathlib import Path

from .app import run_app
from .config import Config


def setup_logging(config: Config) -> None:
    """Log to a file; the TUI owns the terminal."""
    log_path = config.get_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_path,
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for pattonote."""
    parser = argparse.ArgumentParser(prog="pattonote", description="Browse and edit patto notes.")
    parser.add_argument("workspace", nargs="?", type=Path, help="directory of .pn notes")
    args = parser.parse_args(argv)

    try:
        config = Config.load()
        setup_logging(config)

        if args.workspace is not None:
            workspace = args.workspace.expanduser()
            if not workspace.is_dir():
                print(f"Error: not a directory: {workspace}", file=sys.stderr)
                return 1
            config.workspace = workspace

        run_app(config)

        return 0
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logging.getLogger(__name__).exception("pattonote failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

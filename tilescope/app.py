"""Application entry point for the tilescope level picker."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import PySide6.QtAsyncio as QtAsyncio
from PySide6.QtWidgets import QApplication

from tilescope.core.config import Settings
from tilescope.core.errors import ConfigError
from tilescope.core.sources import DirectoryLevelSource
from tilescope.ui.main_window import LevelPickerWindow


def configure_logging(verbose: bool = False) -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tilescope",
        description="Browse level script previews and print the chosen path.",
    )
    parser.add_argument("--config", type=Path, default=None, help="settings YAML file")
    parser.add_argument("--root", type=Path, default=None, help="levels root (overrides settings)")
    parser.add_argument("--directory", default=None, help="directory under the root to browse")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser.parse_args(argv)


def run(argv: Optional[List[str]] = None) -> None:
    """Load settings, open the picker window and print the selected level path."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = Settings.load(args.config)
    except ConfigError as e:
        logging.error(f"Invalid settings: {e}")
        sys.exit(2)

    root = args.root if args.root is not None else settings.levels_path
    source = DirectoryLevelSource(root)
    logging.info(f"Serving levels from {source.root}")

    app = QApplication(sys.argv[:1])
    app.setApplicationName("tilescope")
    app.setApplicationDisplayName("Select Level")

    chosen: List[Optional[str]] = []
    window = LevelPickerWindow(source, settings)

    def on_chosen(path: Optional[str]) -> None:
        chosen.append(path)
        app.quit()

    window.level_chosen.connect(on_chosen)
    window.show()

    async def start() -> None:
        window.start_loading(args.directory)

    QtAsyncio.run(start(), keep_running=True)

    if chosen and chosen[0] is not None:
        print(chosen[0])
        sys.exit(0)
    sys.exit(1)


if __name__ == "__main__":
    run()

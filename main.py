"""
Minimal i3bar/swaybar host running the IBus block.
"""
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from bar import QueueNotifier, setup_logging
from blocks import IBusBlock
from config import load_config
from core import BlockError

# Initialize logging before anything else
setup_logging()
logger = logging.getLogger(__name__)

# Environment variable names
CONFIG_PATH_ENV = "IBUS_STATUS_CONFIG"

I3BAR_HEADER = {"version": 1}


def emit(block: IBusBlock, first: bool = False) -> None:
    """Write one status line in the i3bar protocol."""
    line = json.dumps([widget.to_dict() for widget in block.view()])
    sys.stdout.write(line if first else f",{line}")
    sys.stdout.write("\n")
    sys.stdout.flush()


def run(config_path: Optional[Path] = None) -> int:
    """Build the block and render it on every change event."""
    try:
        config = load_config(config_path)
    except ValidationError as exc:
        logger.error("Invalid configuration (%d errors): %s", exc.error_count(), exc)
        return 1

    notifier = QueueNotifier()

    try:
        block = IBusBlock(config, notifier)
    except BlockError as exc:
        logger.error("IBus block unavailable (%s): %s", exc.kind.value, exc)
        return 1

    sys.stdout.write(json.dumps(I3BAR_HEADER) + "\n[\n")
    with block:
        block.update()
        emit(block, first=True)
        try:
            while True:
                event = notifier.get()
                if event is None or event.block_id != block.identifier():
                    continue
                # Coalesce bursts; only the latest engine matters
                notifier.drain()
                block.update()
                emit(block)
        except KeyboardInterrupt:
            logger.info("Shutting down")
    return 0


def main() -> None:
    """Start the bar."""
    path = os.environ.get(CONFIG_PATH_ENV)
    sys.exit(run(Path(path) if path else None))


if __name__ == "__main__":
    main()

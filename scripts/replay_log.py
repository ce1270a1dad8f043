#!/usr/bin/env python3
"""
Replay a recorded telemetry CSV through the estimator.

Prints one line per processed tick and stores the learned state for the
configured model (SAGCOMP_MODEL_NAME) in SAGCOMP_STATE_DIR.

Usage:
    python scripts/replay_log.py flight.csv
"""

import sys
from pathlib import Path
from typing import Optional

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sagcomp import log
from sagcomp.env import get_config
from sagcomp.estimator import Estimator
from sagcomp.replay import load_samples, replay
from sagcomp.storage import FileBlobStore


def main(argv: Optional[list[str]] = None) -> int:
    """Replay the log named on the command line."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        log.error("Usage: replay_log.py <telemetry.csv>")
        return 2

    cfg = get_config()
    path = Path(args[0])
    try:
        samples = load_samples(path, cfg)
    except (OSError, ValueError) as e:
        log.error(f"Cannot read {path}: {e}")
        return 1

    store = FileBlobStore(cfg.state_dir, cfg.persist_prefix)
    estimator = Estimator(cfg, store=store)
    results = replay(samples, estimator)

    for sample, out in results:
        channels = out.to_channels(cfg)
        print(
            f"{sample.now:>8} "
            + " ".join(f"{name}={value}" for name, value in channels.items())
        )

    if estimator.load_seen and estimator.persistence.flush(estimator.snapshot):
        log.info(f"Stored learned state for {estimator.model_key}")
    log.info(f"Replayed {len(samples)} samples, {len(results)} processed ticks")
    return 0


if __name__ == "__main__":
    sys.exit(main())

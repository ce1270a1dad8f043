#!/usr/bin/env python3
"""
Render the learned-state report for the configured model.

Reads the stored record from SAGCOMP_STATE_DIR and writes report pages plus
SVG charts for both themes into SAGCOMP_OUT_DIR/<model>/.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sagcomp import log
from sagcomp.codec import decode_record
from sagcomp.env import get_config
from sagcomp.report import write_report
from sagcomp.storage import FileBlobStore, StorageStatus, sanitize_model_name


def main() -> int:
    """Render report for SAGCOMP_MODEL_NAME."""
    cfg = get_config()
    key = sanitize_model_name(cfg.model_name)
    store = FileBlobStore(cfg.state_dir, cfg.persist_prefix)

    result = store.read(key)
    if result.status is StorageStatus.MISSING:
        log.warn(f"No learned state stored for {key}")
        return 1
    if not result.ok:
        log.error(f"Cannot read learned state for {key}: {result.error}")
        return 1

    decoded = decode_record(result.text or "", cfg)
    if not decoded.ok:
        log.error(f"Stored learned state for {key} is invalid: {decoded.error}")
        return 1

    for theme in ("light", "dark"):
        write_report(decoded.record, key, cfg.out_dir, theme)
    return 0


if __name__ == "__main__":
    sys.exit(main())

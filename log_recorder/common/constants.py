"""Shared constants and environment-derived defaults."""

import os
from pathlib import Path

# Where incremental and snapshot log files go (can be overridden via environment)
DEFAULT_LOG_DIR = Path(
    os.environ.get("LOG_RECORDER_DIR", str(Path.home() / ".log-recorder"))
)

# Incremental persistence is on unless explicitly disabled
DEFAULT_PERSIST_INCREMENTALLY = os.environ.get("LOG_RECORDER_PERSIST", "1") != "0"

# Ingress queue sizing
DEFAULT_QUEUE_CAPACITY = 256
MIN_QUEUE_CAPACITY = 16
MAX_QUEUE_CAPACITY = 4096

# Growable list sizing
INDEX_LIST_INITIAL_CAPACITY = 64
COLLAPSED_INITIAL_CAPACITY = 128
POOL_INITIAL_CAPACITY = 16

# File naming
INCREMENTAL_LOG_PREFIX = "TempLog_"
SNAPSHOT_LOG_PREFIX = "AllLog_"
FILE_STAMP_FORMAT = "%Y-%m-%d(%H %M %S)"

# Tick driver cadence
TICK_INTERVAL = 0.1  # 100ms

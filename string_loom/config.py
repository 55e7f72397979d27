# string_loom/config.py
import os

# -------------------------------------------------------------------
# Defaults, overridable from the environment
# -------------------------------------------------------------------

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL")  # e.g. https://string-art-api.onrender.com
JOBS_ROOT = os.getenv("STRING_LOOM_JOBS_DIR", "jobs")
LOG_LEVEL = os.getenv("STRING_LOOM_LOG_LEVEL", "INFO")

NUM_PINS = int(os.getenv("STRING_LOOM_PINS", "500"))
NUM_THREADS = int(os.getenv("STRING_LOOM_THREADS", "1000"))
SNAPSHOT_EVERY = int(os.getenv("STRING_LOOM_SNAPSHOT_EVERY", "25"))  # 0 disables the timelapse

# Worker pool size for candidate scoring; None lets concurrent.futures decide
_workers = os.getenv("STRING_LOOM_WORKERS")
SOLVER_WORKERS = int(_workers) if _workers else None

START_PIN = 0
MIN_PINS = 3

# Rendering
BACKGROUND = 255
THREAD_COLOR = 0

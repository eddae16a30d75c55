"""Configuration for the attendance scan queue."""
import os
from pathlib import Path
from dotenv import load_dotenv

from scanqueue.errors import ConfigError

load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent
LOGS_DIR = Path(os.getenv("LOGS_DIR", str(BASE_DIR / "logs")))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
BETTERSTACK_SOURCE_TOKEN = os.getenv("BETTERSTACK_SOURCE_TOKEN")
BETTERSTACK_INGEST_HOST = os.getenv("BETTERSTACK_INGEST_HOST")

# Repository backend: postgres, supabase or memory
REPOSITORY_BACKEND = os.getenv("REPOSITORY_BACKEND", "postgres").lower()
DATABASE_URL = os.getenv("DATABASE_URL")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
MEMORY_MEMBERS_FILE = os.getenv("MEMORY_MEMBERS_FILE")

MEMBERS_TABLE = os.getenv("MEMBERS_TABLE", "missionaries")
ATTENDANCE_TABLE = os.getenv("ATTENDANCE_TABLE", "attendance_records")

# Scanner timings (milliseconds)
SCAN_COOLDOWN_MS = int(os.getenv("SCAN_COOLDOWN_MS", "1000"))  # same-code redelivery window
SCAN_THROTTLE_MS = int(os.getenv("SCAN_THROTTLE_MS", "500"))  # pause between queued items
CONFIRMATION_MS = int(os.getenv("CONFIRMATION_MS", "3000"))  # direct-mode confirmation display

# Checksum policy: "warn" keeps processing on mismatch, "reject" drops the scan
CHECKSUM_POLICY = os.getenv("CHECKSUM_POLICY", "warn").lower()

BATCH_MODE = os.getenv("BATCH_MODE", "1").lower() in ("1", "true", "yes")

BACKENDS = ("postgres", "supabase", "memory")
CHECKSUM_POLICIES = ("warn", "reject")


def validate_config():
    """Validate required configuration."""
    errors = []

    if REPOSITORY_BACKEND not in BACKENDS:
        errors.append(f"REPOSITORY_BACKEND must be one of {', '.join(BACKENDS)}: {REPOSITORY_BACKEND}")
    elif REPOSITORY_BACKEND == "postgres" and not DATABASE_URL:
        errors.append("DATABASE_URL is required for the postgres backend")
    elif REPOSITORY_BACKEND == "supabase":
        if not SUPABASE_URL:
            errors.append("SUPABASE_URL is required for the supabase backend")
        if not SUPABASE_KEY:
            errors.append("SUPABASE_KEY is required for the supabase backend")
    elif REPOSITORY_BACKEND == "memory" and MEMORY_MEMBERS_FILE:
        if not Path(MEMORY_MEMBERS_FILE).is_file():
            errors.append(f"MEMORY_MEMBERS_FILE does not exist: {MEMORY_MEMBERS_FILE}")

    if CHECKSUM_POLICY not in CHECKSUM_POLICIES:
        errors.append(f"CHECKSUM_POLICY must be 'warn' or 'reject': {CHECKSUM_POLICY}")

    for name, value in (
        ("SCAN_COOLDOWN_MS", SCAN_COOLDOWN_MS),
        ("SCAN_THROTTLE_MS", SCAN_THROTTLE_MS),
        ("CONFIRMATION_MS", CONFIRMATION_MS),
    ):
        if value < 0:
            errors.append(f"{name} must not be negative: {value}")

    if errors:
        raise ConfigError("Config errors:\n  " + "\n  ".join(errors))

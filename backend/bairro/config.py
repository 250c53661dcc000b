"""
Bairro - Runtime Configuration

Read from the environment once at import. The cleanup services receive these
values through their constructors and never read the environment themselves.
"""
import os
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parent.parent

# Where uploaded photos are kept
PHOTO_DIRECTORY = Path(os.getenv("PHOTO_DIRECTORY", str(BACKEND_DIR / "uploadedImages")))

# Duplicate sweep
SWEEP_INTERVAL_MINUTES = float(os.getenv("SWEEP_INTERVAL_MINUTES", "70"))
SWEEP_MAX_WORKERS = int(os.getenv("SWEEP_MAX_WORKERS", "4"))
SWEEP_INCLUDE_DELETED = os.getenv("SWEEP_INCLUDE_DELETED", "true").lower() in ("1", "true", "yes")
SWEEP_ON_STARTUP = os.getenv("SWEEP_ON_STARTUP", "true").lower() in ("1", "true", "yes")
ORPHAN_PHOTO_GRACE_HOURS = float(os.getenv("ORPHAN_PHOTO_GRACE_HOURS", "24"))

SHUTDOWN_GRACE_SECONDS = float(os.getenv("SHUTDOWN_GRACE_SECONDS", "10"))

# Internal endpoints (manual sweep trigger)
INTERNAL_API_KEY = os.getenv("INTERNAL_API_KEY", "sweep-internal-key-change-in-production")

# Public page of an occurrence, linked from the authority confirmation page
PUBLIC_OCCURRENCE_URL = os.getenv("PUBLIC_OCCURRENCE_URL", "https://nomeubairro.app/ocorrencia/")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

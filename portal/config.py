"""Central configuration loaded from environment variables / .env file."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

ROOT = Path(__file__).resolve().parent.parent

# ── Logging ────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("PORTAL_LOG_LEVEL", "INFO").upper()

# ── Insights ───────────────────────────────────────────────────────────────
RECENT_WINDOW_DAYS: int = int(os.getenv("PORTAL_RECENT_WINDOW_DAYS", "30"))
# "reject" drops records with a bad created_at, "epoch" pins them to 1970-01-01
INVALID_DATE_POLICY: str = os.getenv("PORTAL_INVALID_DATE_POLICY", "reject").lower()

# ── Auth ───────────────────────────────────────────────────────────────────
BCRYPT_ROUNDS: int = int(os.getenv("PORTAL_BCRYPT_ROUNDS", "12"))

# ── Analysis ───────────────────────────────────────────────────────────────
PROMPTS_DIR: Path = ROOT / "portal" / "analysis" / "prompts"
SCHEMAS_DIR: Path = ROOT / "portal" / "analysis" / "schemas"

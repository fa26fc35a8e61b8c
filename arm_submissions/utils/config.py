import os
from dotenv import load_dotenv
from pathlib import Path

load_dotenv(override=False)


def _env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v not in (None, "", "null", "None") else default


def _flag(name: str, default: bool = False) -> bool:
    v = _env(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


REPO_ROOT = Path(__file__).resolve().parents[2]


SUPABASE_URL = _env("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = _env("SUPABASE_SERVICE_ROLE_KEY")
SUPABASE_TABLE = _env("SUPABASE_TABLE", "submissions")


ADMIN_API_KEY = _env("ADMIN_API_KEY")
PUBLIC_BASE_URL = _env("PUBLIC_BASE_URL")
TIMEZONE = _env("TIMEZONE", "Asia/Tashkent")


QR_SIZE = int(_env("QR_SIZE", "100") or "100")
QR_MARGIN = int(_env("QR_MARGIN", "1") or "1")
QR_DARK = _env("QR_DARK", "#0f172a")
QR_LIGHT = _env("QR_LIGHT", "#ffffff")


STRICT_TRANSITIONS = _flag("STRICT_TRANSITIONS")
VALIDATE_WRITES = _flag("VALIDATE_WRITES")
STREAM_KEEPALIVE = float(_env("STREAM_KEEPALIVE", "15") or "15")


EXPORT_DIR = Path(_env("EXPORT_DIR", str(REPO_ROOT / "exports")))


HOST = _env("HOST", "0.0.0.0")
PORT = int(_env("PORT", "8080") or "8080")
FLASK_ENV = _env("FLASK_ENV", "production")
LOG_LEVEL = (_env("LOG_LEVEL", "INFO") or "INFO").upper()


def ensure_dirs():
    EXPORT_DIR.mkdir(parents=True, exist_ok=True)

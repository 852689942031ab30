import os
import logging
from dotenv import load_dotenv

# Load .env from project root
try:
    load_dotenv(dotenv_path=os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".env")))
except Exception:
    load_dotenv()


def _env_bool(name: str, default: str = "0") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in ("1", "true", "yes", "on")


ENVIRONMENT = os.getenv("NODE_ENV") or os.getenv("ENVIRONMENT", "development")
DEBUG = _env_bool("DEBUG")

# Routing
API_PREFIX = (os.getenv("API_PREFIX", "/api/early-access") or "").strip().rstrip("/")

# Privacy
_DEFAULT_IP_SALT = "default-salt-change-this"
IP_SALT = os.getenv("IP_SALT", _DEFAULT_IP_SALT)
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

# Rate limiting (defaults: 5 signups per IP per 15 minutes)
RATE_LIMIT_WINDOW_MS = int(os.getenv("RATE_LIMIT_WINDOW_MS", str(15 * 60 * 1000)))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "5"))
RATE_LIMIT_ALGORITHM = (os.getenv("RATE_LIMIT_ALGORITHM", "fixed_window") or "").strip().lower()
REDIS_URL = (os.getenv("REDIS_URL", "") or "").strip()

# Client IP from X-Forwarded-For / X-Real-IP only when running behind a trusted proxy
TRUST_PROXY = _env_bool("TRUST_PROXY")

# HTTP
CORS_ORIGINS = [o.strip() for o in (os.getenv("CORS_ORIGIN", "http://localhost:5173") or "").split(",") if o.strip()]
MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", str(10 * 1024)))  # 10kb
MAX_PROXY_HOPS = int(os.getenv("MAX_PROXY_HOPS", "5"))

# Logging
LOG_LEVEL = (os.getenv("LOG_LEVEL", "INFO") or "INFO").upper()
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s | %(levelname)s | %(message)s")
logger = logging.getLogger("earlyaccess")

if IP_SALT == _DEFAULT_IP_SALT:
    logger.warning("[config] IP_SALT not set - using the default salt (set IP_SALT in production)")

import os

from dotenv import load_dotenv

load_dotenv()

DB_USER = os.getenv("DB_USER")
DB_PASS = os.getenv("DB_PASS")
DB_HOST = os.getenv("DB_HOST")
DB_PORT = os.getenv("DB_PORT")
DB_NAME = os.getenv("DB_NAME")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")

SECRET = os.getenv("SECRET", "change-me-please-this-is-not-a-real-secret")
# import os, base64
# print(base64.urlsafe_b64encode(os.urandom(32)).decode())

MAX_ACTIVE_LINKS = int(os.getenv("MAX_ACTIVE_LINKS", "5"))
SHORT_CODE_LENGTH = int(os.getenv("SHORT_CODE_LENGTH", "6"))
MAX_CODE_ATTEMPTS = int(os.getenv("MAX_CODE_ATTEMPTS", "10"))

# Where failed redirects land, with ?error=<reason> appended
LANDING_URL = os.getenv("LANDING_URL", "/")
CLICK_RECORD_TIMEOUT = float(os.getenv("CLICK_RECORD_TIMEOUT", "5"))
LINK_CACHE_TTL = int(os.getenv("LINK_CACHE_TTL", "3600"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

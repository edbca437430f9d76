import os
from dotenv import load_dotenv

load_dotenv(override=True)

# Remote backend is used only when DATABASE_URL is set
DATABASE_URL = os.getenv("DATABASE_URL") or None
DATABASE_PASSWORD = os.getenv("DATABASE_PASSWORD") or None


LOCAL_STORAGE_PATH = os.getenv("LOCAL_STORAGE_PATH", ".salestracker")


CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", "120"))


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

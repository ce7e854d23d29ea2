import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _float_env(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _int_env(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


DATABASE_URL = os.getenv("DATABASE_URL")
DB_POOL_MIN_SIZE = _int_env("DB_POOL_MIN_SIZE", 1)
DB_POOL_MAX_SIZE = _int_env("DB_POOL_MAX_SIZE", 20)

JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_HOURS = _int_env("ACCESS_TOKEN_HOURS", 24)

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")
IMAGE_FOLDER = os.getenv("IMAGE_FOLDER", "emergency-images")

# Submission limits
MAX_PHOTOS = _int_env("MAX_PHOTOS", 5)
MAX_PHOTO_BYTES = _int_env("MAX_PHOTO_BYTES", 5 * 1024 * 1024)
MIN_DESCRIPTION_LENGTH = _int_env("MIN_DESCRIPTION_LENGTH", 10)

# Time boxes, in seconds
UPLOAD_TIMEOUT_SECONDS = _float_env("UPLOAD_TIMEOUT_SECONDS", 10.0)
STORE_TIMEOUT_SECONDS = _float_env("STORE_TIMEOUT_SECONDS", 15.0)
SUBMIT_TIMEOUT_SECONDS = _float_env("SUBMIT_TIMEOUT_SECONDS", 60.0)
HEALTH_TIMEOUT_SECONDS = _float_env("HEALTH_TIMEOUT_SECONDS", 5.0)

SEED_DEMO_USERS = os.getenv("SEED_DEMO_USERS", "false").lower() in ("1", "true", "yes")

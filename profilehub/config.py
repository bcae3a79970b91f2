"""Environment-driven configuration for profilehub."""

import os
from dotenv import load_dotenv

load_dotenv()

APP_VERSION = "0.1.0"

DEBUG = os.getenv("DEBUG", "False").lower() == "true"

# HTTP server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Temporary photo staging (also served read-only under /uploads)
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
MAX_PHOTO_BYTES = int(os.getenv("MAX_PHOTO_BYTES", str(5 * 1024 * 1024)))
ALLOWED_PHOTO_TYPES = ("image/jpeg", "image/png", "image/gif")

# Signed photo URLs handed out in every read response
PHOTO_URL_EXPIRY_SECONDS = int(os.getenv("PHOTO_URL_EXPIRY_SECONDS", "3600"))

# Probe the SMTP relay once when the app starts
SMTP_VERIFY_ON_STARTUP = os.getenv("SMTP_VERIFY_ON_STARTUP", "False").lower() == "true"

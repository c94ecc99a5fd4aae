import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# ============================================================================#
# ENVIRONMENT / SERVICES
# ============================================================================#
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL")  # e.g. https://openrouter.ai/api/v1
PLANTDOC_MODEL = os.getenv("PLANTDOC_MODEL", "gpt-4o-mini")

SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-change-in-production")

# Model call timeouts
FLOW_TIMEOUT = float(os.getenv("FLOW_TIMEOUT", "60"))  # seconds
API_CONNECT_TIMEOUT = float(os.getenv("API_CONNECT_TIMEOUT", "15"))

# Upload configuration
MAX_UPLOAD_BYTES = 4 * 1024 * 1024  # 4 MiB

# Session store configuration
SESSION_TTL = 3600  # 1 hour
MAX_SESSIONS = 1000  # Maximum live analyzer sessions

# Rate limiting per client address
ANALYZE_RATE_LIMIT = os.getenv("ANALYZE_RATE_LIMIT", "10/minute")

# Camera device indices (OpenCV)
CAMERA_ENVIRONMENT_INDEX = int(os.getenv("CAMERA_ENVIRONMENT_INDEX", "1"))  # rear
CAMERA_USER_INDEX = int(os.getenv("CAMERA_USER_INDEX", "0"))  # front

RUN_BACKGROUND_TASKS = os.getenv("RUN_BACKGROUND_TASKS", "0") == "1"
PORT = int(os.getenv("PORT", "8080"))

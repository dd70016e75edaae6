# app/core/config.py
import os
import sys # Import sys untuk stderr
from dotenv import load_dotenv
from loguru import logger # Import logger Loguru
import logging
from pathlib import Path # Import Path

# --- Muat file .env JIKA ADA (root proyek) ---
project_root = Path(__file__).resolve().parent.parent.parent
dotenv_path = project_root / '.env'
if dotenv_path.is_file():
    logger.info(f"Loading environment variables from: {dotenv_path}")
    load_dotenv(dotenv_path=dotenv_path, override=True)
else:
    logger.warning(f".env file not found at {dotenv_path}. Relying on system environment variables.")

# --- Intercept Handler (standard logging -> Loguru) ---
class InterceptHandler(logging.Handler):
    """Handler untuk mencegat log standar Python dan mengarahkannya ke Loguru."""
    def emit(self, record: logging.LogRecord) -> None:
        try: level = logger.level(record.levelname).name
        except ValueError: level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())

def setup_logging():
    """Konfigurasi Loguru untuk aplikasi."""
    log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    log_file_path = Path(os.getenv("LOG_FILE_PATH", "logs/orchestrator_{time:YYYY-MM-DD}.log"))
    log_rotation = os.getenv("LOG_ROTATION", "1 day")
    log_retention = os.getenv("LOG_RETENTION", "7 days")
    log_serialize = os.getenv("LOG_SERIALIZE", "False").lower() == 'true'

    logger.remove() # Hapus handler default

    # Handler Console
    logger.add(sys.stderr, level=log_level_name, format=log_format, colorize=True)

    # Handler File
    try:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file_path,
            level=log_level_name,
            format=log_format,
            rotation=log_rotation,
            retention=log_retention,
            serialize=log_serialize,
            enqueue=True,
            backtrace=True,
            diagnose=False,
            encoding="utf-8"
        )
        logger.info(f"File logging enabled at: {log_file_path}")
    except OSError as e:
        logger.error(f"Failed to setup file logging at {log_file_path}: {e}")

    # --- Intercept Log Standar ---
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith(("uvicorn", "fastapi", "starlette", "httpx")):
            existing_logger = logging.getLogger(name)
            existing_logger.handlers = [InterceptHandler()]
            existing_logger.propagate = False # Hindari duplikasi

    logger.info(f"Loguru logging setup complete. Level: {log_level_name}")


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        logger.warning(f"Invalid {name}. Using default: {default}.")
        return default

def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        logger.warning(f"Invalid {name}. Using default: {default}.")
        return default


# --- JWT Configuration ---
SECRET_KEY: str = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    logger.critical("FATAL: SECRET_KEY environment variable is not set.")
    raise ValueError("SECRET_KEY environment variable is not set.")

ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = _int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 30)
ADMIN_ROLE: str = os.getenv("ADMIN_ROLE", "admin")

# --- Collaborator Services ---
BORROWING_SERVICE_URL: str = os.getenv("BORROWING_SERVICE_URL", "http://localhost:50051")
INVENTORY_SERVICE_URL: str = os.getenv("INVENTORY_SERVICE_URL", "http://localhost:50052")
NOTIFICATION_SERVICE_URL: str = os.getenv("NOTIFICATION_SERVICE_URL", "http://localhost:50053")

REMOTE_TIMEOUT_SECONDS: float = _float_env("REMOTE_TIMEOUT_SECONDS", 5.0)
REMOTE_MAX_ATTEMPTS: int = max(1, _int_env("REMOTE_MAX_ATTEMPTS", 3))
REMOTE_RETRY_BACKOFF_SECONDS: float = _float_env("REMOTE_RETRY_BACKOFF_SECONDS", 0.2)

# "http" (inventory-service over HTTP) atau "mongo" (koleksi items langsung)
INVENTORY_BACKEND: str = os.getenv("INVENTORY_BACKEND", "http").lower()
if INVENTORY_BACKEND not in ("http", "mongo"):
    logger.warning(f"Unknown INVENTORY_BACKEND '{INVENTORY_BACKEND}'. Using default: http.")
    INVENTORY_BACKEND = "http"

# --- Database Configuration (hanya untuk INVENTORY_BACKEND=mongo) ---
MONGODB_URL: str = os.getenv("MONGODB_URL", "")
if INVENTORY_BACKEND == "mongo" and not MONGODB_URL:
    logger.critical("FATAL: MONGODB_URL must be set when INVENTORY_BACKEND=mongo.")
    raise ValueError("MONGODB_URL environment variable is not set.")

_default_db_name = "inventory_app_db"
if MONGODB_URL:
    path_part = MONGODB_URL.rsplit('/', 1)[-1].split('?')[0]
    if path_part and '://' not in path_part and MONGODB_URL.count('/') > 2: _default_db_name = path_part
DATABASE_NAME: str = os.getenv("DATABASE_NAME", _default_db_name)

# --- Default admin notes per transition ---
DEFAULT_APPROVE_NOTES: str = os.getenv("DEFAULT_APPROVE_NOTES", "Approved")
DEFAULT_REJECT_NOTES: str = os.getenv("DEFAULT_REJECT_NOTES", "Rejected")
DEFAULT_RETURN_NOTES: str = os.getenv("DEFAULT_RETURN_NOTES", "Returned by admin")


# --- Log Konfigurasi yang Dimuat ---
logger.info(f"JWT Algorithm: {ALGORITHM}")
logger.info(f"Inventory backend: {INVENTORY_BACKEND}")
logger.info(f"Remote calls: timeout={REMOTE_TIMEOUT_SECONDS}s attempts={REMOTE_MAX_ATTEMPTS}")

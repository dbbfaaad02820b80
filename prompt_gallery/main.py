import os
import logging

from fastapi import FastAPI, HTTPException, Depends
from fastapi.security.api_key import APIKeyHeader

from prompt_gallery.api.dependencies import get_settings
from prompt_gallery.api.routers import contact_router, functions_router, image_router
from prompt_gallery.config import validate_supabase_config

LOG_DIR = os.getenv("LOG_DIR", "logs")


def setup_logging(log_dir: str = LOG_DIR):
    # Создаем папку logs автоматически, чтобы не было ошибки FileNotFoundError
    os.makedirs(log_dir, exist_ok=True)

    log_formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")

    file_handler = logging.FileHandler(os.path.join(log_dir, "providers.log"), mode="a", encoding="utf-8")
    file_handler.setFormatter(log_formatter)
    file_handler.setLevel(logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(logging.INFO)

    logging.basicConfig(
        level=logging.INFO,
        handlers=[file_handler, console_handler]
    )


setup_logging()
logger = logging.getLogger(__name__)

settings = get_settings()
if not settings.api_key:
    raise RuntimeError("API_KEY is not set in environment")

supabase_ok, supabase_error = validate_supabase_config(settings)
if not supabase_ok:
    logger.warning(f"⚠️ {supabase_error}. Remote generation function will be unavailable.")

# ---- Авторизация API Key ----
api_key_header = APIKeyHeader(name="x-token", auto_error=False)


async def get_api_key(api_key: str = Depends(api_key_header)) -> str:
    if api_key != get_settings().api_key:
        raise HTTPException(status_code=401, detail="Invalid API Key")
    return api_key

app = FastAPI(
    title="Prompt Gallery API",
    description="Image generation, prompt assistant and contact services for the prompt gallery",
    version="1.0.0"
)

# Роутер изображений
app.include_router(
    image_router.router,
    prefix="/api/image",
    dependencies=[Depends(get_api_key)],
    tags=["Image Generation"]
)

app.include_router(
    contact_router.router,
    prefix="/api",
    dependencies=[Depends(get_api_key)],
    tags=["Contact"]
)

# Серверная часть функций: промпты, метаданные, проверка ключа, DALL-E
app.include_router(
    functions_router.router,
    prefix="/api/functions",
    dependencies=[Depends(get_api_key)],
    tags=["Prompt Assistant"]
)

logger.info("Application started! Logs directory is ready.")

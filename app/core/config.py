from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from pathlib import Path
import os


load_dotenv()


class Settings(BaseSettings):
    app_name: str = "Material Inventory API"
    debug: bool = False
    database_url: str = "sqlite:///./materials.db"
    host: str = "127.0.0.1"
    port: int = 5000
    secret_key: str = ""
    session_cookie_name: str = "session"
    session_expire_minutes: int = 60 * 24
    session_cookie_secure: bool = False
    bcrypt_rounds: int = 12
    allowed_hosts: str = "http://localhost:3000"
    upload_dir: Path = Path(__file__).parent.parent.parent / "uploads"
    max_images_per_material: int = 5
    max_image_size_mb: int = 5
    log_level: str = "INFO"
    log_file: str = "logs/application.log"


settings = Settings()

if not settings.secret_key:
    raise RuntimeError("Secret key not configured.")


os.makedirs(settings.upload_dir, exist_ok=True)

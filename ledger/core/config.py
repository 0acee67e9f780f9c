from pydantic_settings import BaseSettings
from dotenv import load_dotenv


load_dotenv()


class Settings(BaseSettings):
    app_name: str = "Supplier Ledger API"
    debug: bool = False
    database_url: str = ""
    host: str = "127.0.0.1"
    port: int = 8000
    secret_key: str = ""
    access_token_expire_minutes: int = 60
    refresh_token_expire_minutes: int = 60 * 24 * 14
    allowed_hosts: str = ""

    # Listing
    default_per_page: int = 15
    max_per_page: int = 100

    # Role handed to users who register themselves
    default_role: str = "collector"

    log_file: str = "logs/application.log"


settings = Settings()

if not settings.secret_key:
    raise RuntimeError("Secret key not configured.")

if not settings.database_url:
    raise RuntimeError("Database URL not configured.")

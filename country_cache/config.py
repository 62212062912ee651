import os

from dotenv import load_dotenv

load_dotenv()


def _database_url():
    url = os.getenv("DATABASE_URL", "sqlite:///./countries.db")
    # Handle Railway PostgreSQL URL format
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


class Config:
    database_url = _database_url()
    countries_api_url = os.getenv(
        "COUNTRIES_API_URL",
        "https://restcountries.com/v2/all?fields=name,capital,region,population,flag,currencies",
    )
    exchange_rate_api_url = os.getenv(
        "EXCHANGE_RATE_API_URL", "https://open.er-api.com/v6/latest/USD"
    )
    cache_dir = os.getenv("CACHE_DIR", "cache")
    summary_image_name = os.getenv("SUMMARY_IMAGE_NAME", "summary.png")
    http_timeout = float(os.getenv("HTTP_TIMEOUT", "60"))
    log_level = os.getenv("LOG_LEVEL", "INFO")
    port = int(os.getenv("PORT", "8000"))

    @classmethod
    def summary_image_path(cls):
        return os.path.join(cls.cache_dir, cls.summary_image_name)

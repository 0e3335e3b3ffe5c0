from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "College Admin"

    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 10

    DEFAULTER_THRESHOLD: float = 75
    UPLOAD_DIR: str = "uploads"

    CORS_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DB_USER: str
    DB_PASSWORD: str
    DB_HOST: str = "localhost"
    DB_PORT: str = "3306"
    DB_NAME: str
    DATABASE_URL: str | None = None

    GOOGLE_CLIENT_ID: str
    GOOGLE_CLIENT_SECRET: str
    GMAIL_REDIRECT_URI: str
    MAIL_FROM: str = ""
    SUPPORT_EMAIL: str = ""
    SITE_NAME: str = "OLMMCC"

    SESSION_TTL_MINUTES: int = 30
    SESSION_CAPACITY: int = 100

    IMAGES_DIR: str = "images"
    IMAGES_URL_PATH: str = "/images"

    LOG_LEVEL: str = "INFO"

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    class Config:
        env_file = ".env"

settings = Settings()

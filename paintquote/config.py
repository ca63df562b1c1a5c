from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./quotes.db"
    COMPANY_NAME: str = "Painting Quote Pro"
    COMPANY_EMAIL: str = "quotes@example.com"

    # Company rate defaults, used until a contractor sets their own
    WALLS_RATE_DEFAULT: float = 3.00
    CEILINGS_RATE_DEFAULT: float = 2.00
    TRIM_RATE_DEFAULT: float = 5.00
    MARKUP_DEFAULT: float = 45.0
    TAX_RATE_DEFAULT: float = 0.0

    # Auth
    JWT_SECRET: str = ""  # Required in production; auth fails with 500 while unset
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRE_MINUTES: int = 15
    JWT_REFRESH_EXPIRE_DAYS: int = 30

    # AI field extraction. Optional: without a key only the rule parser runs
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_MODEL: str = "anthropic/claude-3.5-sonnet"

    # Conversation sessions idle longer than this are marked abandoned
    SESSION_TTL_MINUTES: int = 240

    class Config:
        env_file = ".env"


settings = Settings()

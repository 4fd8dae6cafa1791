from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./order_builder.db"
    LOG_LEVEL: str = "INFO"
    SEED_DEMO_CATALOG: bool = False
    CART_SESSION_TTL_MINUTES: int = 120  # idle carts are dropped after this long

    # Auth
    JWT_SECRET: str = ""  # REQUIRED in production: fail loudly if missing at auth time
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRE_MINUTES: int = 60

    # Permission claims checked for mode derivation ("resource:action")
    ORDER_PERMISSION: str = "invoices:create"
    ESTIMATE_PERMISSION: str = "estimates:create"

    class Config:
        env_file = ".env"


settings = Settings()

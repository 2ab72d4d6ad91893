from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./arena.db"
    log_level: str = "INFO"

    # Damage multiplier is drawn uniformly from [min, min + spread)
    damage_min_multiplier: float = 0.8
    damage_multiplier_spread: float = 0.4

    daily_claim_cooldown_hours: int = 24
    starter_card_id: str = "pikachu"


settings = Settings()

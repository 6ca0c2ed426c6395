from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """アプリケーション設定"""

    # データベース
    DATABASE_URL: str = "mysql+pymysql://gymuser:gympassword@db:3306/gym_admin?charset=utf8mb4"

    # Redis (管理者セッション)
    REDIS_URL: str = "redis://redis:6379/0"

    # サービス設定
    SITE_NAME: str = "Gym Admin Console"
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # セッション
    SESSION_TIMEOUT_MINUTES: int = 60

    # 会費・購読
    DEFAULT_CURRENCY: str = "GHS"
    MAX_EXTENSION_DAYS: int = 365  # 延長日数の上限 (入力ミス防止)

    # スケジューラ
    SCHEDULER_TIMEZONE: str = "Africa/Accra"
    EXPIRY_SWEEP_INTERVAL_MINUTES: int = 10

    # レート制限
    RATE_LIMIT_ENABLED: bool = True

    # 環境
    ENV: str = "development"
    DEBUG: bool = True

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()

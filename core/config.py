"""
配置文件 - 项目配置管理
"""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./homecook.db"
    echo: bool = False


class RedisSettings(BaseModel):
    url: Optional[str] = None
    namespace: str = "homecook"
    default_ttl: int = 300


class WalletSettings(BaseModel):
    # 钱包懒初始化时的默认余额
    default_initial_balance: Decimal = Decimal("0.00")
    currency: str = "USD"


class LockSettings(BaseModel):
    timeout: int = 10
    blocking_timeout: int = 5


class OutboxSettings(BaseModel):
    max_attempts: int = 5
    base_backoff_seconds: float = 2.0
    batch_size: int = 100
    relay_interval_seconds: int = 10
    # 单次投递内的即时重试次数（tenacity）
    delivery_retries: int = 2


class NotificationSettings(BaseModel):
    push_enabled: bool = True
    order_updates: bool = True
    backend: str = "logging"  # logging, celery


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="HomeCook Marketplace")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=True)
    ENVIRONMENT: str = Field(default="development")

    # 分组配置：嵌套模型，环境变量形如 DATABASE__URL / OUTBOX__MAX_ATTEMPTS
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    wallet: WalletSettings = Field(default_factory=WalletSettings)
    locks: LockSettings = Field(default_factory=LockSettings)
    outbox: OutboxSettings = Field(default_factory=OutboxSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)

    # CORS配置
    CORS_ORIGINS: list = Field(default=["http://localhost:8081", "http://localhost:19006"])

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except ValueError:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


settings = Settings()

"""
应用配置
从环境变量读取配置
"""
import logging
from decimal import Decimal
from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "PMS Reservation Engine"
    DEBUG: bool = False

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./pms.db"

    # 日志级别
    LOG_LEVEL: str = "INFO"

    # 酒店未设置税率时使用的默认税率（百分比）
    DEFAULT_TAX_RATE: Decimal = Field(default=Decimal("0"), ge=0)

    # 确认号碰撞时的最大生成次数
    CONFIRMATION_NO_MAX_ATTEMPTS: int = Field(default=5, ge=1)

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


# 进程级默认设置；服务可通过构造参数注入其他实例
settings = Settings()

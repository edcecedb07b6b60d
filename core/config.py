"""
配置文件 - 项目配置管理
"""
from typing import Annotated

from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator


class VendingSettings(BaseModel):
    # 模拟出货耗时（毫秒），出货期间拒绝新的出货请求
    delay_ms: int = Field(default=5000, ge=0)


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="VMC Mock Server")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=True)
    ENVIRONMENT: str = Field(default="development")

    # 监听地址
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3002)

    # 分组配置：售货机模拟参数（VENDING__DELAY_MS）
    vending: VendingSettings = Field(default_factory=VendingSettings)

    # CORS配置（默认允许所有来源，供上游点单应用联调）
    # NoDecode: 逗号分隔的环境变量交给下面的校验器解析，而非按 JSON 解码
    CORS_ORIGINS: Annotated[list[str], NoDecode] = Field(default=["*"])

    # 日志/请求体记录配置
    LOG_REQUEST_BODY_ENABLE_BY_DEFAULT: bool = Field(default=True)
    LOG_REQUEST_BODY_MAX_BYTES: int = Field(default=2048)

    # Realtime/WebSocket 配置
    REALTIME_WS_SEND_QUEUE_MAX: int = Field(default=100)
    REALTIME_WS_SEND_OVERFLOW_POLICY: str = Field(
        default="drop_oldest",
        description="队列溢出策略: drop_oldest | drop_new | disconnect"
    )

    # pydantic-settings v2 configuration
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

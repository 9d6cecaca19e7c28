"""
系统配置管理
统一管理所有配置项，支持环境变量覆盖
"""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from urllib.parse import quote_plus

# 获取backend目录的绝对路径
BACKEND_DIR = Path(__file__).parent.parent.resolve()
ENV_FILE = BACKEND_DIR / ".env"


class Settings(BaseSettings):
    """系统配置"""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # 应用信息
    app_name: str = "D18 Notebook"
    app_version: str = "1.0.0"
    debug: bool = False

    # 数据库配置
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "notebook"
    # 完整连接串（设置后优先于上面的分项配置，测试时用 sqlite+aiosqlite）
    database_url: Optional[str] = None

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        encoded_user = quote_plus(self.db_user)
        encoded_pwd = quote_plus(self.db_password)
        return f"mysql+aiomysql://{encoded_user}:{encoded_pwd}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def db_url_sync(self) -> str:
        if self.database_url:
            return self.database_url.replace("+aiomysql", "+pymysql").replace("+aiosqlite", "")
        encoded_user = quote_plus(self.db_user)
        encoded_pwd = quote_plus(self.db_password)
        return f"mysql+pymysql://{encoded_user}:{encoded_pwd}@{self.db_host}:{self.db_port}/{self.db_name}"

    # Redis缓存配置（只存放会话令牌）
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None

    # 笔记配置
    note_default_author: str = "d18"
    note_digest_length: int = 100  # 列表页摘要长度（字符）

    # 分页配置
    pagination_page_size: int = 10
    pagination_win_size: int = 5  # 页码窗口大小

    # 会话令牌配置
    token_name: str = "token"  # Cookie 名称
    token_key: str = "notebook:token"  # Redis 键
    token_expire: int = 3600 * 24 * 3  # 3天

    # 登录口令（bcrypt 哈希值，可用 scripts/hash_password.py 生成）
    auth_hashed_password: str = ""

    # 日志配置
    log_level: str = "info"
    log_file: Optional[str] = None  # 为空时输出到标准输出

    # 无用标签定期清理间隔（秒），0 表示只在写操作后清理
    tag_sweep_interval: int = 0


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """获取配置单例"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()

        if not _settings_instance.auth_hashed_password:
            import logging
            logging.getLogger("core.config").warning(
                "未配置 AUTH_HASHED_PASSWORD，所有登录请求都将失败"
            )
    return _settings_instance


def reload_settings() -> Settings:
    """重新加载配置"""
    global _settings_instance
    _settings_instance = Settings()
    return _settings_instance

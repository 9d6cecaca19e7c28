"""
口令与令牌工具
提供 bcrypt 口令处理、会话令牌生成和比较
"""

import secrets
import bcrypt


def hash_password(password: str) -> str:
    """
    加密口令
    bcrypt 限制口令长度不超过 72 字节
    """
    # 确保口令是字符串
    if not isinstance(password, str):
        password = str(password)

    # bcrypt 限制：口令不能超过 72 字节
    password_bytes = password.encode('utf-8')[:72]

    # 直接使用 bcrypt 库（避免 passlib 兼容性问题）
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证口令（bcrypt.checkpw 内部为常量时间比较）"""
    if not hashed_password:
        return False

    # 确保口令是字符串
    if not isinstance(plain_password, str):
        plain_password = str(plain_password)

    # bcrypt 限制：口令不能超过 72 字节
    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8')

    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        # 配置中的哈希值格式非法
        return False


def generate_token(nbytes: int = 32) -> str:
    """生成 URL 安全的随机会话令牌"""
    return secrets.token_urlsafe(nbytes)


def tokens_match(expected: str, actual: str) -> bool:
    """常量时间比较两个令牌"""
    return secrets.compare_digest(expected.encode("utf-8"), actual.encode("utf-8"))

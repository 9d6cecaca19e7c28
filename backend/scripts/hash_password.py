# -*- coding: utf-8 -*-
"""
登录口令哈希生成工具
生成 bcrypt 哈希，填入 .env 的 AUTH_HASHED_PASSWORD 配置项

运行: python scripts/hash_password.py
"""

import getpass
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.security import hash_password, verify_password


if __name__ == "__main__":
    print("=" * 60)
    print("登录口令哈希生成工具")
    print("=" * 60)

    password = getpass.getpass("请输入登录口令: ")
    confirm = getpass.getpass("请再次输入: ")
    if not password or password != confirm:
        print("两次输入不一致或口令为空")
        sys.exit(1)

    hashed = hash_password(password)
    assert verify_password(password, hashed)

    print()
    print("AUTH_HASHED_PASSWORD（复制到 .env 文件）:")
    print(hashed)
    print("=" * 60)

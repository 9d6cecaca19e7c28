"""
笔记本数据模型
note / tag / note_tag 三张表，标签名在关联表中冗余保存
"""

from datetime import datetime
from sqlalchemy import String, Integer, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class Note(Base):
    """笔记"""
    __tablename__ = "note"
    __table_args__ = {"extend_existing": True, "comment": "笔记表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200))
    author: Mapped[str] = mapped_column(String(50))
    content: Mapped[str] = mapped_column(Text)  # 原始 HTML
    plain_text: Mapped[str] = mapped_column(Text, default="")  # 写入时从 content 提取
    words: Mapped[int] = mapped_column(Integer, default=0)  # plain_text 的字符数
    private: Mapped[bool] = mapped_column(Boolean, default=False)

    # 时间戳（由服务端写入）
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(
        "update_at", DateTime, default=datetime.now, onupdate=datetime.now, index=True
    )


class Tag(Base):
    """标签（名称唯一，写入笔记时按需创建，无关联时被清理）"""
    __tablename__ = "tag"
    __table_args__ = {"extend_existing": True, "comment": "标签表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # 名称比较不区分大小写：MySQL 使用 utf8mb4_general_ci，SQLite 使用 NOCASE
    name: Mapped[str] = mapped_column(
        String(50, collation="utf8mb4_general_ci").with_variant(String(50, collation="NOCASE"), "sqlite"),
        unique=True
    )


class NoteTag(Base):
    """笔记与标签关联"""
    __tablename__ = "note_tag"
    __table_args__ = {"extend_existing": True, "comment": "笔记与标签关联表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("note.id", ondelete="CASCADE"),
        index=True
    )
    tag_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tag.id"),
        index=True
    )
    # 标签名快照，展示时无需回查 tag 表；标签名一经创建不可修改
    tag_name: Mapped[str] = mapped_column(String(50))

"""
笔记本数据验证模式
请求体字段名与前端保持一致（note_id / page_no / tag ...）
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from core.pagination import PageWindow
from utils.text import cut_digest


# ============ 标签 ============

class TagInfo(BaseModel):
    """标签信息"""
    id: int
    name: str
    tagged: int = 0  # 关联的笔记数，只在标签列表中填充

    model_config = ConfigDict(from_attributes=True)


# ============ 笔记 ============

class NoteInfo(BaseModel):
    """笔记（含全部标签）"""
    id: int
    title: str
    author: str
    content: str
    plain_text: str
    private: bool
    word_count: int = Field(serialization_alias="words")
    tags: List[TagInfo] = []
    created_at: datetime
    updated_at: datetime = Field(serialization_alias="update_at")

    model_config = ConfigDict(from_attributes=True)

    def redact(self):
        """隐藏私密笔记的正文"""
        self.content = ""
        self.plain_text = ""

    def cut(self, digest_length: int):
        """列表页只保留摘要，不返回 HTML 正文"""
        self.plain_text = cut_digest(self.plain_text, digest_length)
        self.content = ""


# ============ 请求 ============

class NotePublishRequest(BaseModel):
    """发布笔记"""
    title: str = ""
    content: str = ""
    tags: List[str] = []
    private: bool = False


class NoteUpdateRequest(BaseModel):
    """更新笔记"""
    note_id: int = Field(..., ge=0)
    title: str = ""
    content: str = ""
    tags: List[str] = []
    private: bool = False


class NotesRequest(BaseModel):
    """笔记列表"""
    page_no: int = Field(default=1, ge=0)
    tag: int = Field(default=0, ge=0)  # 0 表示不按标签筛选


class NoteRequest(BaseModel):
    """单篇笔记"""
    note_id: int = Field(..., ge=0)


class NoteDeleteRequest(BaseModel):
    """删除笔记"""
    note_id: int = Field(..., ge=0)


class AuthRequest(BaseModel):
    """登录"""
    password: str = ""


# ============ 响应 ============

class NotesResponse(BaseModel):
    """笔记列表响应"""
    notes: List[NoteInfo]
    page: PageWindow


class NoteResponse(BaseModel):
    """单篇笔记响应"""
    note: Optional[NoteInfo]


class NoteIdResponse(BaseModel):
    """写操作响应"""
    note_id: int


class TagsResponse(BaseModel):
    """标签列表响应"""
    tags: List[TagInfo]


class AuthResponse(BaseModel):
    """登录响应"""
    token: str


class IsAuthResponse(BaseModel):
    """登录状态响应"""
    is_auth: bool

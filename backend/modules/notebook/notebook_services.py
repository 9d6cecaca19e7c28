"""
笔记本业务逻辑
负责写操作的事务编排、私密笔记的可见性处理和单会话登录
"""

import logging
from typing import Iterable, List, Optional, Tuple

from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.config import Settings, get_settings
from core.database import transaction
from core.errors import (
    ErrorCode, AppException, AuthException, NotFoundException,
    StorageException, ValidationException, ExtractionException
)
from core.pagination import PageWindow, compute_window
from core.security import verify_password, generate_token, tokens_match
from core.session import TokenStore
from utils.background_tasks import BackgroundTaskRunner
from utils.text import extract_plain_text

from .notebook_repository import NoteRepository, TagRepository
from .notebook_schemas import NoteInfo, TagInfo

logger = logging.getLogger(__name__)

# 与表结构的列长度保持一致
MAX_TITLE_LENGTH = 200
MAX_TAG_LENGTH = 50


def normalize_tag_names(names: Optional[Iterable[str]]) -> List[str]:
    """
    去除首尾空白、丢弃空标签并去重（保留原顺序）

    标签名不区分大小写（与 tag.name 列的排序规则一致），重复时保留第一次出现的写法
    """
    result: List[str] = []
    seen = set()
    for name in names or []:
        name = name.strip()
        if name and name.casefold() not in seen:
            seen.add(name.casefold())
            result.append(name)
    return result


def apply_visibility(note: NoteInfo, authenticated: bool, digest_length: Optional[int] = None) -> NoteInfo:
    """
    可见性处理

    私密笔记对未登录访问者隐藏正文；否则在列表中只保留摘要。
    两种处理互斥，digest_length 为 None 表示单篇获取（不截断）
    """
    if note.private and not authenticated:
        note.redact()
    elif digest_length is not None:
        note.cut(digest_length)
    return note


class ContentService:
    """
    笔记本服务

    依赖全部通过构造函数传入：数据库会话工厂、令牌存储、后台任务执行器。

    Usage:
        service = ContentService(async_session, TokenStore(client, key, ttl), BackgroundTaskRunner())
        note_id = await service.publish("标题", "<p>正文</p>", False, ["python"])
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        token_store: TokenStore,
        tasks: BackgroundTaskRunner,
        settings: Optional[Settings] = None
    ):
        self.session_factory = session_factory
        self.token_store = token_store
        self.tasks = tasks
        self.settings = settings or get_settings()

    # ============ 写操作 ============

    def _validate(self, title: str, content: str, tag_names: Optional[Iterable[str]]) -> List[str]:
        """校验标题、正文和标签，返回规范化后的标签名"""
        if not title or not title.strip():
            raise ValidationException("标题不能为空")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationException(f"标题不能超过 {MAX_TITLE_LENGTH} 个字符")
        if not content:
            raise ValidationException("正文不能为空")

        names = normalize_tag_names(tag_names)
        if not names:
            raise ValidationException("至少需要一个标签")
        for name in names:
            if len(name) > MAX_TAG_LENGTH:
                raise ValidationException(f"标签 {name} 超过 {MAX_TAG_LENGTH} 个字符")
        return names

    def _extract(self, content: str) -> Tuple[str, int]:
        """提取纯文本及字数，失败时降级为空摘要"""
        try:
            plain_text = extract_plain_text(content)
        except ExtractionException as e:
            logger.warning(f"提取纯文本失败，摘要置空: {e}")
            plain_text = ""
        return plain_text, len(plain_text)

    async def _attach_tags(self, db: AsyncSession, note_id: int, names: List[str], error_code: int):
        """创建缺失的标签并写入关联"""
        tag_repo = TagRepository(db)
        await tag_repo.upsert_by_name(names)
        tags = await tag_repo.lock_and_fetch_by_name(names)

        # 按排序规则比较，读回的标签名可能与请求的写法不同，直接关联读回的行
        by_id = {tag.id: tag for tag in tags}
        if not by_id:
            logger.error(f"标签写入后未能读取: {names}")
            raise StorageException(code=error_code)

        await NoteRepository(db).insert_associations(note_id, list(by_id.values()))

    async def publish(
        self,
        title: str,
        content: str,
        private: bool,
        tag_names: List[str]
    ) -> int:
        """发布笔记，返回新笔记 id"""
        names = self._validate(title, content, tag_names)
        plain_text, words = self._extract(content)

        async with transaction(self.session_factory, ErrorCode.PUBLISH_NOTE_FAILED) as db:
            note_id = await NoteRepository(db).insert(
                title=title,
                author=self.settings.note_default_author,
                content=content,
                plain_text=plain_text,
                private=private,
                words=words
            )
            await self._attach_tags(db, note_id, names, ErrorCode.PUBLISH_NOTE_FAILED)

        logger.info(f"发布笔记: {note_id} {title}")
        return note_id

    async def update(
        self,
        note_id: int,
        title: str,
        content: str,
        private: bool,
        tag_names: List[str]
    ) -> None:
        """更新笔记并替换全部标签，笔记不存在时抛出 NotFoundException"""
        names = self._validate(title, content, tag_names)
        plain_text, words = self._extract(content)

        async with transaction(self.session_factory, ErrorCode.UPDATE_NOTE_FAILED) as db:
            note_repo = NoteRepository(db)
            rows = await note_repo.update(
                note_id,
                title=title,
                content=content,
                plain_text=plain_text,
                words=words,
                private=private
            )
            if not rows:
                raise NotFoundException("笔记", note_id, code=ErrorCode.UPDATE_NOTE_FAILED)

            await note_repo.delete_associations(note_id)
            await self._attach_tags(db, note_id, names, ErrorCode.UPDATE_NOTE_FAILED)

        logger.info(f"更新笔记: {note_id} {title}")
        self._schedule_sweep()

    async def delete(self, note_id: int) -> None:
        """删除笔记及其关联，笔记不存在时抛出 NotFoundException"""
        async with transaction(self.session_factory, ErrorCode.DELETE_NOTE_FAILED) as db:
            note_repo = NoteRepository(db)
            await note_repo.delete_associations(note_id)
            rows = await note_repo.delete(note_id)
            if not rows:
                raise NotFoundException("笔记", note_id, code=ErrorCode.DELETE_NOTE_FAILED)

        logger.info(f"删除笔记: {note_id}")
        self._schedule_sweep()

    # ============ 标签清理 ============

    def _schedule_sweep(self):
        """提交无用标签清理（不等待结果）"""
        self.tasks.submit(self.sweep_orphan_tags, name="clean_unused_tags")

    async def sweep_orphan_tags(self) -> int:
        """删除没有关联笔记的标签，返回删除数量"""
        async with transaction(self.session_factory) as db:
            deleted = await TagRepository(db).delete_orphans()
        if deleted:
            logger.info(f"已清理无用标签 {deleted} 个")
        return deleted

    # ============ 读操作 ============

    async def list_notes(
        self,
        page_no: int,
        tag_id: int = 0,
        token: Optional[str] = None
    ) -> Tuple[List[NoteInfo], PageWindow]:
        """获取一页笔记及页码窗口，列表中不返回正文"""
        authenticated = await self.is_authenticated(token)
        page_size = self.settings.pagination_page_size

        async with transaction(self.session_factory, ErrorCode.GET_NOTES_FAILED) as db:
            note_repo = NoteRepository(db)
            count = await note_repo.count_by_tag(tag_id)
            page = compute_window(page_no, page_size, count, self.settings.pagination_win_size)
            if page.is_empty:
                return [], page
            notes = await note_repo.page(page.cur, page_size, tag_id)

        digest_length = self.settings.note_digest_length
        return [apply_visibility(note, authenticated, digest_length) for note in notes], page

    async def get_note(self, note_id: int, token: Optional[str] = None) -> NoteInfo:
        """获取单篇笔记"""
        async with transaction(self.session_factory, ErrorCode.GET_NOTE_FAILED) as db:
            note = await NoteRepository(db).by_id(note_id)
        if note is None:
            raise NotFoundException("笔记", note_id, code=ErrorCode.GET_NOTE_FAILED)

        if note.private:
            authenticated = await self.is_authenticated(token)
            apply_visibility(note, authenticated)
        return note

    async def list_tags(self) -> List[TagInfo]:
        """获取全部标签及关联笔记数"""
        async with transaction(self.session_factory, ErrorCode.GET_TAGS_FAILED) as db:
            return await TagRepository(db).with_note_counts()

    # ============ 会话 ============

    async def authenticate(self, password: str) -> str:
        """校验口令，成功后生成新令牌（旧令牌随即失效）"""
        if not verify_password(password, self.settings.auth_hashed_password):
            logger.warning("登录失败：口令错误")
            raise AuthException(ErrorCode.AUTH_FAILED)

        token = generate_token()
        try:
            await self.token_store.save(token)
        except RedisError as e:
            logger.error(f"保存会话令牌失败: {e}")
            raise AuthException(ErrorCode.AUTH_FAILED, "会话保存失败") from e

        logger.info("登录成功")
        return token

    async def is_authenticated(self, token: Optional[str]) -> bool:
        """检查令牌是否为当前有效令牌，缓存不可用时按未登录处理"""
        if not token:
            return False
        try:
            current = await self.token_store.load()
        except RedisError as e:
            logger.warning(f"读取会话令牌失败，按未登录处理: {e}")
            return False
        if not current:
            return False
        return tokens_match(current, token)

    async def logout(self) -> None:
        """注销当前会话，重复注销不报错"""
        try:
            await self.token_store.clear()
        except RedisError as e:
            logger.error(f"删除会话令牌失败: {e}")
            raise AppException(ErrorCode.LOGOUT_FAILED) from e
        logger.info("已注销")

"""
笔记本数据访问层
所有方法只在调用方传入的会话上执行，由调用方控制事务边界
"""

from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select, insert, update, delete, func, and_, distinct
from sqlalchemy.ext.asyncio import AsyncSession

from core.pagination import PaginationParams

from .notebook_models import Note, Tag, NoteTag
from .notebook_schemas import NoteInfo, TagInfo


# 笔记与标签联表查询的列（每个 笔记-标签 组合一行）
_NOTE_TAG_COLUMNS = (
    Note.id.label("id"),
    Note.title.label("title"),
    Note.author.label("author"),
    Note.content.label("content"),
    Note.plain_text.label("plain_text"),
    Note.words.label("words"),
    Note.private.label("private"),
    Note.created_at.label("created_at"),
    Note.updated_at.label("updated_at"),
    NoteTag.tag_id.label("tag_id"),
    NoteTag.tag_name.label("tag_name"),
)


def fold_note_rows(rows: Iterable) -> List[NoteInfo]:
    """
    将联表查询结果折叠为笔记对象

    联表结果中同一篇笔记会出现多行（每个标签一行），按笔记 id 合并；
    没有标签的笔记只有一行且 tag_id 为 NULL。
    返回顺序不保证与查询顺序一致，需要排序的调用方应自行排序。
    """
    folded: Dict[int, NoteInfo] = {}
    for row in rows:
        note = folded.get(row.id)
        if note is None:
            note = NoteInfo(
                id=row.id,
                title=row.title,
                author=row.author,
                content=row.content,
                plain_text=row.plain_text or "",
                private=bool(row.private),
                word_count=row.words or 0,
                tags=[],
                created_at=row.created_at,
                updated_at=row.updated_at
            )
            folded[row.id] = note
        if row.tag_id is not None:
            note.tags.append(TagInfo(id=row.tag_id, name=row.tag_name))
    return list(folded.values())


def sort_by_recency(notes: List[NoteInfo]) -> List[NoteInfo]:
    """按更新时间倒序排列（时间相同按 id 倒序）"""
    return sorted(notes, key=lambda n: (n.updated_at, n.id), reverse=True)


class NoteRepository:
    """笔记数据访问"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(
        self,
        title: str,
        author: str,
        content: str,
        plain_text: str,
        private: bool,
        words: int
    ) -> int:
        """新增笔记，返回笔记 id"""
        note = Note(
            title=title,
            author=author,
            content=content,
            plain_text=plain_text,
            private=private,
            words=words
        )
        self.db.add(note)
        await self.db.flush()
        return note.id

    async def by_id(self, note_id: int) -> Optional[NoteInfo]:
        """获取单篇笔记（含全部标签），不存在返回 None"""
        stmt = (
            select(*_NOTE_TAG_COLUMNS)
            .select_from(Note)
            .outerjoin(NoteTag, Note.id == NoteTag.note_id)
            .where(Note.id == note_id)
        )
        result = await self.db.execute(stmt)
        notes = fold_note_rows(result.all())
        return notes[0] if notes else None

    async def page(
        self,
        page_no: int,
        page_size: int,
        tag_id: int = 0,
        sort_by_recency_: bool = True
    ) -> List[NoteInfo]:
        """
        分页获取笔记

        先在子查询中确定当前页的笔记 id（tag_id > 0 时只取带该标签的笔记），
        再外连接关联表取回这些笔记的全部标签，最后折叠为笔记对象。

        Args:
            page_no: 页码（从1开始）
            page_size: 每页数量
            tag_id: 标签筛选，0 表示全部
            sort_by_recency_: 是否按更新时间倒序
        """
        params = PaginationParams(page=page_no, page_size=page_size)

        page_ids = select(Note.id.label("id")).select_from(Note)
        if tag_id:
            page_ids = page_ids.join(
                NoteTag,
                and_(Note.id == NoteTag.note_id, NoteTag.tag_id == tag_id)
            )
        if sort_by_recency_:
            page_ids = page_ids.order_by(Note.updated_at.desc(), Note.id.desc())
        page_ids = page_ids.offset(params.offset).limit(params.limit).subquery("page_ids")

        stmt = (
            select(*_NOTE_TAG_COLUMNS)
            .select_from(Note)
            .join(page_ids, Note.id == page_ids.c.id)
            .outerjoin(NoteTag, Note.id == NoteTag.note_id)
        )
        result = await self.db.execute(stmt)
        notes = fold_note_rows(result.all())

        # 折叠后的顺序不可靠，重新排序
        if sort_by_recency_:
            notes = sort_by_recency(notes)
        return notes

    async def count_by_tag(self, tag_id: int = 0) -> int:
        """统计笔记数，tag_id 为 0 时统计全部笔记"""
        if tag_id:
            stmt = (
                select(func.count(distinct(Note.id)))
                .select_from(Note)
                .join(NoteTag, and_(Note.id == NoteTag.note_id, NoteTag.tag_id == tag_id))
            )
        else:
            stmt = select(func.count(Note.id))
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def update(
        self,
        note_id: int,
        title: str,
        content: str,
        plain_text: str,
        words: int,
        private: bool
    ) -> int:
        """更新笔记，返回受影响行数"""
        result = await self.db.execute(
            update(Note)
            .where(Note.id == note_id)
            .values(
                title=title,
                content=content,
                plain_text=plain_text,
                words=words,
                private=private
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete(self, note_id: int) -> int:
        """删除笔记，返回受影响行数（0 表示笔记不存在）"""
        result = await self.db.execute(
            delete(Note)
            .where(Note.id == note_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def insert_associations(self, note_id: int, tags: Sequence[TagInfo]) -> int:
        """写入笔记与标签的关联（同时保存标签名快照）"""
        if not tags:
            return 0
        await self.db.execute(
            insert(NoteTag.__table__).values([
                {"note_id": note_id, "tag_id": tag.id, "tag_name": tag.name}
                for tag in tags
            ])
        )
        return len(tags)

    async def delete_associations(self, note_id: int) -> int:
        """删除笔记的全部标签关联，返回受影响行数"""
        result = await self.db.execute(
            delete(NoteTag.__table__).where(NoteTag.__table__.c.note_id == note_id)
        )
        return result.rowcount


class TagRepository:
    """标签数据访问"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert_by_name(self, names: Sequence[str]) -> None:
        """
        按名称批量创建标签，已存在的名称直接忽略

        不返回新 id：调用方随后会通过 lock_and_fetch_by_name 重新读取
        """
        if not names:
            return
        stmt = (
            insert(Tag.__table__)
            .values([{"name": name} for name in names])
            .prefix_with("IGNORE", dialect="mysql")
            .prefix_with("OR IGNORE", dialect="sqlite")
        )
        await self.db.execute(stmt)

    async def lock_and_fetch_by_name(self, names: Sequence[str]) -> List[TagInfo]:
        """
        按名称读取标签并加写锁（SELECT ... FOR UPDATE）

        与 delete_orphans 竞争同一行锁，保证标签在写入关联前不会被清理
        """
        if not names:
            return []
        result = await self.db.execute(
            select(Tag.id, Tag.name)
            .where(Tag.name.in_(list(names)))
            .with_for_update()
        )
        return [TagInfo(id=row.id, name=row.name) for row in result.all()]

    async def with_note_counts(self) -> List[TagInfo]:
        """获取全部标签及其关联的笔记数"""
        result = await self.db.execute(
            select(Tag.id, Tag.name, func.count(NoteTag.id).label("tagged"))
            .select_from(Tag)
            .outerjoin(NoteTag, Tag.id == NoteTag.tag_id)
            .group_by(Tag.id, Tag.name)
            .order_by(Tag.id)
        )
        return [
            TagInfo(id=row.id, name=row.name, tagged=row.tagged)
            for row in result.all()
        ]

    async def delete_orphans(self) -> int:
        """删除所有没有关联笔记的标签，返回删除数量"""
        tag = Tag.__table__
        note_tag = NoteTag.__table__
        in_use = select(note_tag.c.id).where(note_tag.c.tag_id == tag.c.id).exists()
        result = await self.db.execute(delete(tag).where(~in_use))
        return result.rowcount

# -*- coding: utf-8 -*-
"""
笔记本数据访问层测试
覆盖：联表折叠、两种分页查询、计数、更新删除、标签创建/加锁读取/统计/清理
"""

from collections import namedtuple
from datetime import datetime, timedelta
from typing import Sequence

import pytest

from modules.notebook.notebook_models import Note, Tag, NoteTag
from modules.notebook.notebook_repository import (
    NoteRepository, TagRepository, fold_note_rows, sort_by_recency
)


async def seed_note(session_factory, title: str, tags: Sequence[str] = (), private: bool = False) -> int:
    """直接通过数据访问层写入一篇笔记"""
    async with session_factory() as db, db.begin():
        note_id = await NoteRepository(db).insert(
            title=title,
            author="tester",
            content=f"<p>{title}</p>",
            plain_text=title,
            private=private,
            words=len(title)
        )
        if tags:
            tag_repo = TagRepository(db)
            await tag_repo.upsert_by_name(list(tags))
            fetched = await tag_repo.lock_and_fetch_by_name(list(tags))
            await NoteRepository(db).insert_associations(note_id, fetched)
    return note_id


# ==================== 模型测试 ====================

class TestNotebookModels:
    """测试表结构"""

    def test_table_names(self):
        assert Note.__tablename__ == "note"
        assert Tag.__tablename__ == "tag"
        assert NoteTag.__tablename__ == "note_tag"

    def test_update_at_column(self):
        """更新时间列名与既有表结构一致"""
        assert "update_at" in Note.__table__.c
        assert Tag.__table__.c.name.unique is True


# ==================== 折叠 ====================

Row = namedtuple("Row", [
    "id", "title", "author", "content", "plain_text", "words",
    "private", "created_at", "updated_at", "tag_id", "tag_name"
])


def make_row(note_id, updated_at, tag_id=None, tag_name=None):
    return Row(note_id, f"t{note_id}", "a", "<p>c</p>", "c", 1, False,
               updated_at, updated_at, tag_id, tag_name)


class TestFolding:
    """联表结果折叠测试"""

    def test_fold_groups_tags_by_note(self):
        now = datetime(2024, 1, 1)
        rows = [
            make_row(1, now, 10, "python"),
            make_row(2, now, None, None),
            make_row(1, now, 11, "sql"),
        ]
        notes = {n.id: n for n in fold_note_rows(rows)}

        assert len(notes) == 2
        assert [t.name for t in notes[1].tags] == ["python", "sql"]
        assert notes[2].tags == []
        assert notes[1].word_count == 1

    def test_sort_by_recency(self):
        now = datetime(2024, 1, 1)
        notes = fold_note_rows([
            make_row(1, now),
            make_row(3, now - timedelta(days=1)),
            make_row(2, now),
        ])
        assert [n.id for n in sort_by_recency(notes)] == [2, 1, 3]


# ==================== 笔记 ====================

class TestNoteRepository:
    """笔记数据访问测试"""

    @pytest.mark.asyncio
    async def test_insert_and_by_id(self, session_factory):
        note_id = await seed_note(session_factory, "第一篇", ["python", "sql"], private=True)

        async with session_factory() as db:
            note = await NoteRepository(db).by_id(note_id)

        assert note.id == note_id
        assert note.title == "第一篇"
        assert note.author == "tester"
        assert note.private is True
        assert sorted(t.name for t in note.tags) == ["python", "sql"]
        assert note.created_at is not None

    @pytest.mark.asyncio
    async def test_by_id_without_tags(self, session_factory):
        note_id = await seed_note(session_factory, "无标签")
        async with session_factory() as db:
            note = await NoteRepository(db).by_id(note_id)
        assert note.tags == []

    @pytest.mark.asyncio
    async def test_by_id_missing(self, session_factory):
        async with session_factory() as db:
            assert await NoteRepository(db).by_id(999) is None

    @pytest.mark.asyncio
    async def test_page_unfiltered(self, session_factory):
        ids = [await seed_note(session_factory, f"n{i}", ["a", "b"]) for i in range(5)]

        async with session_factory() as db:
            repo = NoteRepository(db)
            first = await repo.page(1, 2)
            last = await repo.page(3, 2)
            beyond = await repo.page(4, 2)

        # 最新的在前，且每篇笔记只出现一次
        assert [n.id for n in first] == [ids[4], ids[3]]
        assert all(len(n.tags) == 2 for n in first)
        assert [n.id for n in last] == [ids[0]]
        assert beyond == []

    @pytest.mark.asyncio
    async def test_page_filtered_by_tag(self, session_factory):
        a1 = await seed_note(session_factory, "a1", ["a"])
        await seed_note(session_factory, "b1", ["b"])
        a2 = await seed_note(session_factory, "a2", ["a", "b"])

        async with session_factory() as db:
            tags = await TagRepository(db).lock_and_fetch_by_name(["a"])
            notes = await NoteRepository(db).page(1, 10, tag_id=tags[0].id)

        assert [n.id for n in notes] == [a2, a1]
        # 筛选只决定返回哪些笔记，返回的笔记仍带全部标签
        assert sorted(t.name for t in notes[0].tags) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_page_order_follows_update(self, session_factory):
        first = await seed_note(session_factory, "first", ["a"])
        second = await seed_note(session_factory, "second", ["a"])

        async with session_factory() as db, db.begin():
            await NoteRepository(db).update(first, "first!", "<p>x</p>", "x", 1, False)

        async with session_factory() as db:
            notes = await NoteRepository(db).page(1, 10)
        assert [n.id for n in notes] == [first, second]

    @pytest.mark.asyncio
    async def test_count_by_tag(self, session_factory):
        await seed_note(session_factory, "a1", ["a", "b"])
        await seed_note(session_factory, "a2", ["a"])
        await seed_note(session_factory, "none")

        async with session_factory() as db:
            tags = {t.name: t.id for t in await TagRepository(db).lock_and_fetch_by_name(["a", "b"])}
            repo = NoteRepository(db)
            assert await repo.count_by_tag(0) == 3
            assert await repo.count_by_tag(tags["a"]) == 2
            assert await repo.count_by_tag(tags["b"]) == 1
            assert await repo.count_by_tag(12345) == 0

    @pytest.mark.asyncio
    async def test_update_rows_affected(self, session_factory):
        note_id = await seed_note(session_factory, "old")

        async with session_factory() as db, db.begin():
            repo = NoteRepository(db)
            assert await repo.update(note_id, "new", "<p>new</p>", "new", 3, True) == 1
            assert await repo.update(999, "new", "<p>new</p>", "new", 3, True) == 0

        async with session_factory() as db:
            note = await NoteRepository(db).by_id(note_id)
        assert note.title == "new"
        assert note.private is True
        assert note.updated_at >= note.created_at

    @pytest.mark.asyncio
    async def test_delete_and_associations(self, session_factory):
        note_id = await seed_note(session_factory, "gone", ["a", "b"])

        async with session_factory() as db, db.begin():
            repo = NoteRepository(db)
            assert await repo.delete_associations(note_id) == 2
            assert await repo.delete(note_id) == 1
            assert await repo.delete(note_id) == 0

        async with session_factory() as db:
            assert await NoteRepository(db).by_id(note_id) is None


# ==================== 标签 ====================

class TestTagRepository:
    """标签数据访问测试"""

    @pytest.mark.asyncio
    async def test_upsert_ignores_existing(self, session_factory):
        async with session_factory() as db, db.begin():
            repo = TagRepository(db)
            await repo.upsert_by_name(["a", "b"])
            await repo.upsert_by_name(["b", "c"])

        async with session_factory() as db:
            tags = await TagRepository(db).with_note_counts()
        assert [t.name for t in tags] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_lock_and_fetch(self, session_factory):
        async with session_factory() as db, db.begin():
            repo = TagRepository(db)
            await repo.upsert_by_name(["a", "b"])
            tags = await repo.lock_and_fetch_by_name(["b", "missing"])
            assert [t.name for t in tags] == ["b"]
            assert await repo.lock_and_fetch_by_name([]) == []

    @pytest.mark.asyncio
    async def test_names_ignore_case(self, session_factory):
        async with session_factory() as db, db.begin():
            repo = TagRepository(db)
            await repo.upsert_by_name(["Python"])
            await repo.upsert_by_name(["python", "PYTHON"])
            tags = await repo.lock_and_fetch_by_name(["python"])
            assert [t.name for t in tags] == ["Python"]

        async with session_factory() as db:
            assert len(await TagRepository(db).with_note_counts()) == 1

    @pytest.mark.asyncio
    async def test_with_note_counts(self, session_factory):
        await seed_note(session_factory, "n1", ["a", "b"])
        await seed_note(session_factory, "n2", ["a"])
        async with session_factory() as db, db.begin():
            await TagRepository(db).upsert_by_name(["unused"])

        async with session_factory() as db:
            counts = {t.name: t.tagged for t in await TagRepository(db).with_note_counts()}
        assert counts == {"a": 2, "b": 1, "unused": 0}

    @pytest.mark.asyncio
    async def test_delete_orphans(self, session_factory):
        note_id = await seed_note(session_factory, "n1", ["keep", "drop"])
        async with session_factory() as db, db.begin():
            await TagRepository(db).upsert_by_name(["orphan"])
            await db.execute(
                NoteTag.__table__.delete().where(
                    NoteTag.__table__.c.note_id == note_id,
                    NoteTag.__table__.c.tag_name == "drop"
                )
            )

        async with session_factory() as db, db.begin():
            assert await TagRepository(db).delete_orphans() == 2

        async with session_factory() as db:
            tags = await TagRepository(db).with_note_counts()
        assert [t.name for t in tags] == ["keep"]

from datetime import date, datetime, timedelta

import pytest

from taskflow.core.errors import ValidationError
from taskflow.domains.journal.services.journal_service import (
    create_entry,
    delete_entry,
    get_entry,
    get_journal_stats,
    list_entries,
    quick_entry,
    reading_stats,
    resolve_related,
    search_entries,
    update_entry,
)
from taskflow.domains.projects.services.project_service import create_project
from taskflow.domains.tasks.services.task_service import create_task

pytestmark = pytest.mark.integration

TODAY = date(2026, 3, 10)


@pytest.fixture()
def fixed_ctx(ctx):
    ctx.clock = lambda: datetime.combine(TODAY, datetime.min.time()).replace(hour=9)
    return ctx


@pytest.mark.unit
def test_reading_stats():
    assert reading_stats(" ".join(["word"] * 400)) == (400, 2)
    assert reading_stats(" ".join(["word"] * 401)) == (401, 3)
    assert reading_stats("one") == (1, 1)


class TestCreate:
    def test_four_hundred_words(self, fixed_ctx, user):
        entry = create_entry(fixed_ctx, user.id, content=" ".join(["word"] * 400))
        assert entry.word_count == 400
        assert entry.reading_time_minutes == 2
        assert entry.entry_date == TODAY
        assert entry.entry_type == "general"

    def test_content_required(self, ctx, user):
        with pytest.raises(ValidationError):
            create_entry(ctx, user.id, content="   ")

    def test_rating_range(self, ctx, user):
        with pytest.raises(ValidationError):
            create_entry(ctx, user.id, content="x", mood_rating=11)
        with pytest.raises(ValidationError):
            create_entry(ctx, user.id, content="x", energy_level=0)

    def test_bad_entry_type(self, ctx, user):
        with pytest.raises(ValidationError):
            create_entry(ctx, user.id, content="x", entry_type="diary")

    def test_attachments_are_validated(self, ctx, user):
        attachment = {"id": "a1", "filename": "pic.png", "url": "/f/pic.png", "type": "image/png", "size": 12}
        entry = create_entry(ctx, user.id, content="x", attachments=[attachment])
        assert entry.attachments == [attachment]
        with pytest.raises(ValidationError):
            create_entry(ctx, user.id, content="x", attachments=[{"id": "a2"}])

    def test_quick_entry(self, fixed_ctx, user):
        entry = quick_entry(fixed_ctx, user.id, content="Felt good", mood_rating=8)
        assert entry.entry_date == TODAY
        assert entry.mood_rating == 8


class TestUpdate:
    def test_content_change_recomputes_stats(self, ctx, user):
        entry = create_entry(ctx, user.id, content="short")
        update_entry(ctx, user.id, entry.id, content=" ".join(["w"] * 250))
        assert entry.word_count == 250
        assert entry.reading_time_minutes == 2

    def test_invalid_update_changes_nothing(self, ctx, user):
        entry = create_entry(ctx, user.id, content="keep", mood_rating=5)
        with pytest.raises(ValidationError):
            update_entry(ctx, user.id, entry.id, content="changed", mood_rating=42)
        assert get_entry(ctx, user.id, entry.id).content == "keep"

    def test_other_users_entry(self, ctx, user, other_user):
        entry = create_entry(ctx, other_user.id, content="private")
        assert get_entry(ctx, user.id, entry.id) is None
        assert update_entry(ctx, user.id, entry.id, content="x") is None
        assert delete_entry(ctx, user.id, entry.id) is False
        assert delete_entry(ctx, other_user.id, entry.id) is True


class TestListing:
    @pytest.fixture()
    def entries(self, ctx, user):
        make = lambda content, **kw: create_entry(ctx, user.id, content=content, **kw)  # noqa: E731
        return [
            make("Morning run", entry_date=date(2026, 3, 1), tags=["health", "habit"], mood_rating=8),
            make("Budget review", entry_date=date(2026, 3, 5), tags=["work"], mood_rating=4, entry_type="decision"),
            make("Evening walk", entry_date=date(2026, 3, 8), tags=["health"], energy_level=6),
        ]

    def test_newest_first(self, ctx, user, entries):
        assert [e.content for e in list_entries(ctx, user.id)] == ["Evening walk", "Budget review", "Morning run"]

    def test_tags_must_all_match(self, ctx, user, entries):
        assert [e.content for e in list_entries(ctx, user.id, {"tags": "health,habit"})] == ["Morning run"]
        assert len(list_entries(ctx, user.id, {"tags": ["health"]})) == 2

    def test_date_mood_and_type(self, ctx, user, entries):
        window = {"date_from": "2026-03-02", "date_to": "2026-03-08"}
        assert len(list_entries(ctx, user.id, window)) == 2
        assert [e.content for e in list_entries(ctx, user.id, {"mood_min": 5})] == ["Morning run"]
        assert [e.content for e in list_entries(ctx, user.id, {"entry_type": "decision"})] == ["Budget review"]

    def test_empty_filters(self, ctx, user, entries):
        assert list_entries(ctx, user.id, {"search": "", "tags": "", "entry_type": ""}) == list_entries(ctx, user.id)

    def test_search(self, ctx, user, entries):
        assert [e.content for e in search_entries(ctx, user.id, "WALK")] == ["Evening walk"]
        assert search_entries(ctx, user.id, "  ") == []


class TestRelated:
    def test_dangling_references_are_skipped(self, ctx, user, other_user):
        task = create_task(ctx, user.id, title="mine")
        theirs = create_task(ctx, other_user.id, title="theirs")
        project = create_project(ctx, user.id, name="P")
        entry = create_entry(
            ctx,
            user.id,
            content="x",
            related_task_ids=[task.id, theirs.id, 999],
            related_project_ids=[project.id, 998],
        )
        related = resolve_related(ctx, user.id, entry)
        assert [t.id for t in related["tasks"]] == [task.id]
        assert [p.id for p in related["projects"]] == [project.id]
        assert [e.id for e in list_entries(ctx, user.id, {"related_to_task": task.id})] == [entry.id]


class TestStats:
    def test_stats_and_streak(self, fixed_ctx, user):
        for offset, mood in ((0, 6), (1, 8), (2, None), (5, 4)):
            create_entry(
                fixed_ctx,
                user.id,
                content="a few words here",
                entry_date=TODAY - timedelta(days=offset),
                mood_rating=mood,
                tags=["habit"],
            )
        stats = get_journal_stats(fixed_ctx, user.id)
        assert stats["total_entries"] == 4
        assert stats["total_words"] == 16
        assert stats["total_reading_time"] == 4
        assert stats["entries_this_month"] == 4
        assert stats["average_mood"] == 6.0
        assert stats["current_streak"] == 3
        assert stats["entry_types"] == {"general": 4}
        assert stats["most_used_tags"] == [{"tag": "habit", "count": 4}]

    def test_streak_counts_from_yesterday(self, fixed_ctx, user):
        create_entry(fixed_ctx, user.id, content="x", entry_date=TODAY - timedelta(days=1))
        assert get_journal_stats(fixed_ctx, user.id)["current_streak"] == 1

    def test_empty(self, ctx, user):
        stats = get_journal_stats(ctx, user.id)
        assert stats["total_entries"] == 0
        assert stats["average_mood"] == 0.0
        assert stats["current_streak"] == 0

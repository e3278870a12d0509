import pytest

from taskflow.core.errors import ConflictError, NotFoundOrForbidden, ValidationError
from taskflow.domains.projects.models.project_models import Project
from taskflow.domains.projects.services.project_service import (
    archive_project,
    create_project,
    delete_project,
    duplicate_project,
    get_project,
    get_project_stats,
    get_project_with_stats,
    list_projects,
    reorder_projects,
    task_counts,
    unarchive_project,
    update_project,
    used_colors,
)
from taskflow.domains.tasks.models.task_models import Task
from taskflow.domains.tasks.services.task_service import create_task

pytestmark = pytest.mark.integration


class TestCreateAndUpdate:
    def test_create_defaults(self, ctx, user):
        project = create_project(ctx, user.id, name="  Launch  ")
        assert project.name == "Launch"
        assert project.color == "#6b7280"
        assert project.is_archived is False
        assert project.order_index == 0
        assert create_project(ctx, user.id, name="Second").order_index == 1

    def test_duplicate_name_conflicts(self, ctx, user):
        create_project(ctx, user.id, name="Launch")
        with pytest.raises(ConflictError) as exc:
            create_project(ctx, user.id, name="Launch")
        assert exc.value.kind == "duplicate"

    def test_same_name_for_different_users(self, ctx, user, other_user):
        create_project(ctx, user.id, name="Launch")
        assert create_project(ctx, other_user.id, name="Launch").name == "Launch"

    def test_rename_to_own_name_is_allowed(self, ctx, user):
        project = create_project(ctx, user.id, name="Launch")
        assert update_project(ctx, user.id, project.id, name="Launch").name == "Launch"

    def test_rename_to_taken_name_conflicts(self, ctx, user):
        create_project(ctx, user.id, name="Launch")
        other = create_project(ctx, user.id, name="Other")
        with pytest.raises(ConflictError):
            update_project(ctx, user.id, other.id, name="Launch")

    def test_bad_color(self, ctx, user):
        with pytest.raises(ValidationError):
            create_project(ctx, user.id, name="x", color="blue")

    def test_rejected_update_leaves_no_pending_changes(self, ctx, user):
        project = create_project(ctx, user.id, name="Alpha")
        with pytest.raises(ValidationError):
            update_project(ctx, user.id, project.id, name="Beta", color="red")
        update_project(ctx, user.id, project.id, description="x")
        ctx.session.expire_all()
        stored = ctx.session.get(Project, project.id)
        assert stored.name == "Alpha"
        assert stored.description == "x"

    def test_foreign_project_is_invisible(self, ctx, user, other_user):
        theirs = create_project(ctx, other_user.id, name="Theirs")
        assert get_project(ctx, user.id, theirs.id) is None
        assert update_project(ctx, user.id, theirs.id, name="Mine") is None
        assert delete_project(ctx, user.id, theirs.id) is None


class TestArchiveAndDelete:
    def test_archive_hides_from_default_list(self, ctx, user):
        project = create_project(ctx, user.id, name="Old")
        archive_project(ctx, user.id, project.id)
        assert list_projects(ctx, user.id) == []
        assert list_projects(ctx, user.id, {"include_archived": True}) == [project]
        unarchive_project(ctx, user.id, project.id)
        assert list_projects(ctx, user.id) == [project]

    def test_empty_project_is_deleted(self, ctx, user):
        project = create_project(ctx, user.id, name="Empty")
        outcome = delete_project(ctx, user.id, project.id)
        assert outcome.deleted is True
        assert outcome.archived is False
        assert ctx.session.get(Project, project.id) is None

    def test_project_with_tasks_is_archived(self, ctx, user):
        project = create_project(ctx, user.id, name="Busy")
        task = create_task(ctx, user.id, title="x", project_id=project.id)
        outcome = delete_project(ctx, user.id, project.id)
        assert outcome.deleted is False
        assert outcome.archived is True
        assert get_project(ctx, user.id, project.id).is_archived is True
        assert ctx.session.get(Task, task.id).project_id == project.id


class TestReorderAndDuplicate:
    def test_reorder(self, ctx, user):
        a = create_project(ctx, user.id, name="A")
        b = create_project(ctx, user.id, name="B")
        c = create_project(ctx, user.id, name="C")
        reorder_projects(ctx, user.id, [c.id, a.id, b.id])
        assert [p.name for p in list_projects(ctx, user.id)] == ["C", "A", "B"]

    def test_reorder_with_foreign_id_changes_nothing(self, ctx, user, other_user):
        a = create_project(ctx, user.id, name="A")
        b = create_project(ctx, user.id, name="B")
        theirs = create_project(ctx, other_user.id, name="T")
        with pytest.raises(NotFoundOrForbidden):
            reorder_projects(ctx, user.id, [b.id, theirs.id, a.id])
        assert [p.name for p in list_projects(ctx, user.id)] == ["A", "B"]

    def test_reorder_rejects_repeated_ids(self, ctx, user):
        a = create_project(ctx, user.id, name="A")
        with pytest.raises(ValidationError):
            reorder_projects(ctx, user.id, [a.id, a.id])

    def test_duplicate(self, ctx, user):
        source = create_project(ctx, user.id, name="Plan", color="#FF0000", metadata={"k": 1})
        copy = duplicate_project(ctx, user.id, source.id)
        assert copy.name == "Plan (Copy)"
        assert copy.color == "#ff0000"
        assert copy.meta == {"k": 1}
        with pytest.raises(ConflictError):
            duplicate_project(ctx, user.id, source.id)


class TestStats:
    def test_project_stats(self, ctx, user):
        project = create_project(ctx, user.id, name="Busy")
        create_task(ctx, user.id, title="a", project_id=project.id, status="completed")
        create_task(ctx, user.id, title="b", project_id=project.id)
        archived = create_project(ctx, user.id, name="Old")
        archive_project(ctx, user.id, archived.id)

        stats = get_project_stats(ctx, user.id)
        assert stats["total_projects"] == 2
        assert stats["active_projects"] == 1
        assert stats["archived_projects"] == 1
        assert stats["total_tasks"] == 2
        assert stats["completion_rate"] == 50.0
        assert stats["most_active_project"] == "Busy"

        detail = get_project_with_stats(ctx, user.id, project.id)
        assert detail["stats"]["task_count"] == 2
        assert detail["stats"]["todo_tasks"] == 1
        assert task_counts(ctx, [project.id, archived.id]) == {
            project.id: {"task_count": 2, "completed_tasks": 1},
            archived.id: {"task_count": 0, "completed_tasks": 0},
        }

    def test_empty_stats(self, ctx, user):
        stats = get_project_stats(ctx, user.id)
        assert stats["total_projects"] == 0
        assert stats["completion_rate"] == 0.0
        assert stats["most_active_project"] is None

    def test_used_colors(self, ctx, user):
        create_project(ctx, user.id, name="A", color="#111111")
        create_project(ctx, user.id, name="B", color="#111111")
        create_project(ctx, user.id, name="C")
        assert used_colors(ctx, user.id) == ["#111111", "#6b7280"]

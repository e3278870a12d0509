import pytest

from taskflow.core.auth.auth_service import authenticate_user, is_token_revoked, revoke_token
from taskflow.core.errors import ConflictError, ValidationError
from taskflow.core.users.models import User
from taskflow.core.users.services import (
    change_password,
    get_user,
    get_user_stats,
    hard_delete_user,
    soft_delete_user,
    update_profile,
    update_settings,
)
from taskflow.domains.journal.models.journal_entry import JournalEntry
from taskflow.domains.journal.services.journal_service import create_entry
from taskflow.domains.projects.models.project_models import Project
from taskflow.domains.projects.services.project_service import archive_project, create_project
from taskflow.domains.tags.models.tag_models import Tag, TaskTag
from taskflow.domains.tasks.models.task_models import Task
from taskflow.domains.tasks.services.task_service import create_task

pytestmark = pytest.mark.integration


class TestProfile:
    def test_settings_are_merged(self, ctx, user):
        update_settings(ctx, user.id, {"theme": "dark", "week_start": "monday"})
        update_settings(ctx, user.id, {"theme": "light"})
        assert get_user(ctx, user.id).settings == {"theme": "light", "week_start": "monday"}

    def test_settings_must_be_an_object(self, ctx, user):
        with pytest.raises(ValidationError):
            update_settings(ctx, user.id, ["theme"])

    def test_email_change_is_unique_case_insensitively(self, ctx, user, other_user):
        with pytest.raises(ConflictError):
            update_profile(ctx, user.id, email="GRACE@taskflow.dev")
        assert update_profile(ctx, user.id, email="Ada@Example.org").email == "ada@example.org"

    def test_rejected_update_leaves_no_pending_changes(self, ctx, user):
        with pytest.raises(ValidationError):
            update_profile(ctx, user.id, email="new@taskflow.dev", name="   ")
        update_settings(ctx, user.id, {"theme": "dark"})
        ctx.session.expire_all()
        stored = ctx.session.get(User, user.id)
        assert stored.email == "ada@taskflow.dev"
        assert stored.settings["theme"] == "dark"

    def test_unknown_user(self, ctx):
        assert update_profile(ctx, 404, name="x") is None
        assert update_settings(ctx, 404, {}) is None


class TestPassword:
    def test_change_password(self, ctx, user):
        assert change_password(ctx, user.id, current_password="secret123", new_password="n3w-secret") is True
        assert authenticate_user(ctx, user.email, "n3w-secret") is not None
        assert authenticate_user(ctx, user.email, "secret123") is None

    def test_wrong_current_password(self, ctx, user):
        with pytest.raises(ValidationError) as exc:
            change_password(ctx, user.id, current_password="nope", new_password="n3w-secret")
        assert exc.value.kind == "invalid_credentials"


class TestDeletion:
    def test_soft_delete_blocks_login(self, ctx, user):
        assert soft_delete_user(ctx, user.id) is True
        assert get_user(ctx, user.id).settings["deleted"] is True
        assert authenticate_user(ctx, user.email, "secret123") is None

    def test_hard_delete_removes_owned_rows(self, ctx, user, other_user):
        project = create_project(ctx, user.id, name="P")
        create_task(ctx, user.id, title="t", project_id=project.id, tags=["a"])
        create_entry(ctx, user.id, content="x")
        revoke_token(ctx, "jti-1", user.id)
        kept = create_task(ctx, other_user.id, title="theirs", tags=["b"])

        assert hard_delete_user(ctx, user.id) is True
        session = ctx.session
        assert session.get(User, user.id) is None
        assert session.query(Project).count() == 0
        assert [t.id for t in session.query(Task)] == [kept.id]
        assert [t.name for t in session.query(Tag)] == ["b"]
        assert session.query(TaskTag).count() == 1
        assert session.query(JournalEntry).count() == 0
        assert is_token_revoked(ctx, "jti-1") is False
        assert hard_delete_user(ctx, user.id) is False


def test_user_stats(ctx, user):
    project = create_project(ctx, user.id, name="P")
    archive_project(ctx, user.id, create_project(ctx, user.id, name="Old").id)
    create_task(ctx, user.id, title="a", status="completed", project_id=project.id, tags=["x"])
    create_task(ctx, user.id, title="b")
    assert get_user_stats(ctx, user.id) == {
        "total_tasks": 2,
        "completed_tasks": 1,
        "active_projects": 1,
        "total_tags": 1,
    }

import json
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from taskflow.domains.integrations.services import insight_patterns as patterns
from taskflow.domains.integrations.services.email_parsing import analyze_project_context
from taskflow.domains.integrations.services.email_sources import canned_threads
from taskflow.domains.integrations.services.insight_patterns import InsightData
from taskflow.domains.integrations.services.insight_providers import (
    OpenAIInsightProvider,
    PatternInsightProvider,
    select_insight_provider,
)

pytestmark = pytest.mark.unit

NOW = datetime(2026, 3, 10, 12, 0)


def _task(status="todo", project_id=None, due_date=None, updated_days_ago=0, created_days_ago=0):
    return SimpleNamespace(
        status=status,
        project_id=project_id,
        due_date=due_date,
        updated_at=NOW - timedelta(days=updated_days_ago),
        created_at=NOW - timedelta(days=created_days_ago),
    )


def _entry(mood=None, entry_type="general", hour=21, days_ago=1):
    created = (NOW - timedelta(days=days_ago)).replace(hour=hour)
    return SimpleNamespace(mood_rating=mood, entry_type=entry_type, created_at=created)


def _project(pid, name="Launch", archived=False):
    return SimpleNamespace(id=pid, name=name, is_archived=archived)


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(content=None, error=None):
    completions = FakeCompletions(content, error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


class TestPatterns:
    def test_high_completion_rate(self):
        data = InsightData(tasks=[_task("completed")] * 9 + [_task()], now=NOW)
        found = patterns.completion_pattern(data)
        assert found["title"] == "High Task Completion Rate"
        assert "90%" in found["description"]

    def test_completion_rate_needs_five_tasks(self):
        data = InsightData(tasks=[_task()] * 4, now=NOW)
        assert patterns.completion_pattern(data) is None

    def test_low_mood(self):
        data = InsightData(entries=[_entry(3), _entry(4), _entry(2)], now=NOW)
        found = patterns.mood_pattern(data)
        assert found["type"] == "mood"
        assert "3.0/10" in found["description"]

    def test_stalled_project(self):
        project = _project(1)
        data = InsightData(
            tasks=[_task(project_id=1, updated_days_ago=10)],
            projects=[project, _project(2, archived=True)],
            now=NOW,
        )
        found = patterns.stalled_projects(data)
        assert found["data_points"] == [{"name": "Launch", "id": 1}]

    def test_active_project_is_not_stalled(self):
        data = InsightData(tasks=[_task(project_id=1, updated_days_ago=2)], projects=[_project(1)], now=NOW)
        assert patterns.stalled_projects(data) is None

    def test_evening_journaling(self):
        data = InsightData(entries=[_entry(hour=22, days_ago=d) for d in (1, 2, 3)], now=NOW)
        found = patterns.journaling_time_pattern(data)
        assert "evening" in found["description"]

    def test_overdue_and_learning_suggestions(self):
        data = InsightData(
            tasks=[_task(due_date=NOW - timedelta(days=1))],
            entries=[_entry(entry_type="goal_progress")],
            now=NOW,
        )
        titles = [s["title"] for s in patterns.detailed_task_suggestions(data)]
        assert titles == ["Review Overdue Tasks", "Schedule Learning Time"]

    def test_journal_prompts_capped_at_three(self):
        data = InsightData(tasks=[_task("completed")], entries=[_entry(8)], now=NOW)
        prompts = patterns.detailed_journal_prompts(data)
        assert [p["type"] for p in prompts] == ["achievement", "gratitude", "goal_progress"]

    def test_context_summary(self):
        data = InsightData(
            tasks=[_task("completed"), _task(), _task()],
            projects=[_project(1), _project(2, archived=True)],
            entries=[_entry(6), _entry(None)],
            now=NOW,
        )
        assert patterns.context_summary(data) == {
            "tasks_analyzed": 3,
            "projects_active": 1,
            "journal_entries": 2,
            "avg_mood": "6.0",
            "productivity_rate": "33.3%",
        }


class TestPatternInsightProvider:
    def test_new_user(self):
        result = PatternInsightProvider().generate(InsightData(now=NOW))
        assert result["insights"] == []
        assert result["task_suggestions"] == []
        assert result["powered_by"] == "pattern_analysis"
        assert result["service_status"] == "basic"
        assert result["note"] == patterns.BASIC_NOTE
        assert [p["type"] for p in result["journal_prompts"]] == ["achievement", "reflection"]

    def test_busy_user(self):
        data = InsightData(tasks=[_task() for _ in range(6)], entries=[_entry(3)], now=NOW)
        result = PatternInsightProvider().generate(data)
        titles = [i["title"] for i in result["insights"]]
        assert titles == ["Low Task Completion Rate", "Mood Support Needed"]
        assert [s["title"] for s in result["task_suggestions"]] == ["Focus Session", "Task Review Session"]
        assert result["journal_prompts"][0]["type"] == "gratitude"


class TestOpenAIInsightProvider:
    def _data(self):
        return InsightData(tasks=[_task("completed")] * 9 + [_task()], now=NOW)

    def test_rewrites_insight_text(self):
        client, completions = _client(
            json.dumps({"insights": [{"title": "You are on fire", "description": "Nine of ten done."}]})
        )
        result = OpenAIInsightProvider("key", client=client).generate(self._data())
        assert result["powered_by"] == "AI"
        assert result["service_status"] == "enhanced"
        assert result["insights"][0]["title"] == "You are on fire"
        assert result["insights"][0]["type"] == "productivity"
        assert result["insights"][0]["suggested_actions"]
        assert completions.calls[0]["response_format"] == {"type": "json_object"}
        assert completions.calls[0]["model"] == "gpt-4o-mini"

    def test_api_error_keeps_pattern_insights(self):
        client, _ = _client(error=OpenAIError("boom"))
        result = OpenAIInsightProvider("key", client=client).generate(self._data())
        assert result["insights"][0]["title"] == "High Task Completion Rate"

    def test_wrong_shape_keeps_pattern_insights(self):
        client, _ = _client(json.dumps({"insights": []}))
        result = OpenAIInsightProvider("key", client=client).generate(self._data())
        assert result["insights"][0]["title"] == "High Task Completion Rate"

    def test_no_insights_skips_the_model(self):
        client, completions = _client("{}")
        result = OpenAIInsightProvider("key", client=client).generate(InsightData(now=NOW))
        assert result["insights"] == []
        assert completions.calls == []

    def test_project_description(self):
        context = analyze_project_context(canned_threads(NOW))
        client, _ = _client(json.dumps({"description": "Close the Q4 work."}))
        provider = OpenAIInsightProvider("key", client=client)
        assert provider.enhance_project_description("Q4", "", context) == "Close the Q4 work."

    def test_project_description_falls_back(self):
        context = analyze_project_context(canned_threads(NOW))
        client, _ = _client("not json")
        provider = OpenAIInsightProvider("key", client=client)
        text = provider.enhance_project_description("Q4", "Base", context)
        assert text == f"Base\n\n--- Email Context ---\n{context.summary}"


def test_select_insight_provider():
    assert isinstance(select_insight_provider({}), PatternInsightProvider)
    provider = select_insight_provider({"OPENAI_API_KEY": "sk-test", "OPENAI_MODEL": "gpt-4o"})
    assert isinstance(provider, OpenAIInsightProvider)
    assert provider.model == "gpt-4o"

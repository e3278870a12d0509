"""Insight providers: pattern analysis alone, or pattern analysis rewritten by an OpenAI model."""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from openai import OpenAI, OpenAIError

from taskflow.domains.integrations.services import insight_patterns as patterns
from taskflow.domains.integrations.services.email_parsing import ProjectContext
from taskflow.domains.integrations.services.insight_patterns import InsightData

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a productivity coach. You receive JSON describing insights derived "
    "from a user's tasks and journal. Rewrite each insight so it is specific and "
    "encouraging. Keep the same number of insights, keep each insight's type, and "
    'answer with a JSON object of the form {"insights": [...]} where every item has '
    "title, description and suggested_actions."
)


def basic_project_description(description: str, context: ProjectContext) -> str:
    if description:
        return f"{description}\n\n--- Email Context ---\n{context.summary}"
    return context.summary


class InsightProvider:
    """Interface shared by both variants."""

    name = "insights"
    ready = False

    def generate(self, data: InsightData) -> Dict[str, Any]:
        raise NotImplementedError

    def enhance_project_description(self, name: str, description: str, context: ProjectContext) -> str:
        return basic_project_description(description, context)


class PatternInsightProvider(InsightProvider):
    """Lightweight analysis used when no model is configured."""

    name = "pattern_analysis"
    ready = False

    def generate(self, data: InsightData) -> Dict[str, Any]:
        return {
            "insights": patterns.basic_insights(data),
            "task_suggestions": patterns.basic_task_suggestions(data),
            "journal_prompts": patterns.basic_journal_prompts(data),
            "context_summary": patterns.context_summary(data),
            "powered_by": "pattern_analysis",
            "service_status": "basic",
            "note": patterns.BASIC_NOTE,
        }


class OpenAIInsightProvider(InsightProvider):
    """Detailed pattern analysis with the insight text rewritten by a chat model."""

    name = "openai"
    ready = True

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", timeout: int = 30, client: Any = None):
        self.model = model
        self.client = client or OpenAI(api_key=api_key, timeout=timeout)

    def _call_api(self, messages: List[Dict[str, str]], temperature: float = 0.4, max_tokens: int = 1500) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content

    def generate(self, data: InsightData) -> Dict[str, Any]:
        try:
            insights = patterns.detailed_insights(data)
            task_suggestions = patterns.detailed_task_suggestions(data)
            journal_prompts = patterns.detailed_journal_prompts(data)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Insight analysis failed, serving sample insights: %s", e)
            insights = copy.deepcopy(patterns.CANNED_INSIGHTS)
            task_suggestions = copy.deepcopy(patterns.CANNED_TASK_SUGGESTIONS)
            journal_prompts = copy.deepcopy(patterns.CANNED_JOURNAL_PROMPTS)
        if insights:
            insights = self.enhance_insights(insights, data)
        return {
            "insights": insights,
            "task_suggestions": task_suggestions,
            "journal_prompts": journal_prompts,
            "context_summary": patterns.context_summary(data),
            "powered_by": "AI",
            "service_status": "enhanced",
        }

    def enhance_insights(self, insights: List[dict], data: InsightData) -> List[dict]:
        """Rewrite insight text with the model; any failure keeps the originals."""
        summary = patterns.context_summary(data)
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": json.dumps({"summary": summary, "insights": insights})},
        ]
        try:
            rewritten = json.loads(self._call_api(messages)).get("insights")
        except (OpenAIError, json.JSONDecodeError, AttributeError) as e:
            logger.warning("Insight enhancement failed, using pattern insights: %s", e)
            return insights
        if not isinstance(rewritten, list) or len(rewritten) != len(insights):
            logger.warning("Insight enhancement returned an unexpected shape; ignoring it")
            return insights
        merged = []
        for original, update in zip(insights, rewritten):
            item = dict(original)
            if isinstance(update, dict):
                for key in ("title", "description", "suggested_actions"):
                    if update.get(key):
                        item[key] = update[key]
            merged.append(item)
        return merged

    def enhance_project_description(self, name: str, description: str, context: ProjectContext) -> str:
        messages = [
            {
                "role": "system",
                "content": "Write a concise project description from the email context provided. "
                'Answer with a JSON object {"description": "..."}.',
            },
            {
                "role": "user",
                "content": json.dumps(
                    {"name": name, "description": description, "context": context.to_dict()}
                ),
            },
        ]
        try:
            text = json.loads(self._call_api(messages, max_tokens=600)).get("description")
        except (OpenAIError, json.JSONDecodeError, AttributeError) as e:
            logger.warning("Project description enhancement failed: %s", e)
            text = None
        return text or basic_project_description(description, context)


def select_insight_provider(config: Mapping[str, Any]) -> InsightProvider:
    api_key: Optional[str] = config.get("OPENAI_API_KEY")
    if api_key:
        return OpenAIInsightProvider(
            api_key,
            model=config.get("OPENAI_MODEL") or "gpt-4o-mini",
            timeout=int(config.get("INTEGRATION_TIMEOUT_SECONDS", 30)),
        )
    return PatternInsightProvider()

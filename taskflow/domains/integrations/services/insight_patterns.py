"""Rule-based productivity analysis over a user's tasks, projects and journal.

Every function here is pure: it receives already-loaded rows plus ``now`` and
returns plain dicts ready for JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

BASIC_NOTE = "Enhanced AI features available with OpenAI API key"
STALE_AFTER = timedelta(days=7)


@dataclass
class InsightData:
    """Everything the analysis looks at for one user."""

    tasks: Sequence = field(default_factory=list)
    projects: Sequence = field(default_factory=list)
    entries: Sequence = field(default_factory=list)
    now: datetime = field(default_factory=datetime.utcnow)

    @property
    def completed(self) -> list:
        return [t for t in self.tasks if t.status == "completed"]

    @property
    def completion_rate(self) -> float:
        return len(self.completed) / len(self.tasks) if self.tasks else 0.0

    @property
    def rated_entries(self) -> list:
        return [e for e in self.entries if e.mood_rating is not None]

    @property
    def average_mood(self) -> Optional[float]:
        rated = self.rated_entries
        return sum(e.mood_rating for e in rated) / len(rated) if rated else None

    @property
    def active_projects(self) -> list:
        return [p for p in self.projects if not p.is_archived]


def insight(kind: str, title: str, description: str, confidence: float, actions: List[str], **extra) -> dict:
    data = {
        "type": kind,
        "title": title,
        "description": description,
        "confidence": confidence,
        "actionable": True,
        "suggested_actions": actions,
    }
    data.update(extra)
    return data


# -- detailed analysis (used when an AI provider is configured) --------------


def completion_pattern(data: InsightData) -> Optional[dict]:
    if len(data.tasks) < 5:
        return None
    rate = data.completion_rate
    if rate > 0.8:
        return insight(
            "productivity",
            "High Task Completion Rate",
            f"You're completing {round(rate * 100)}% of your tasks. Great job staying on track!",
            0.9,
            ["Consider taking on more challenging tasks", "Share your productivity strategies with others"],
        )
    if rate < 0.5:
        return insight(
            "warning",
            "Low Task Completion Rate",
            f"Your task completion rate is {round(rate * 100)}%. "
            "This might indicate overcommitment or unclear priorities.",
            0.8,
            [
                "Review and prioritize your task list",
                "Break large tasks into smaller, manageable pieces",
                "Consider if you're taking on too much",
            ],
        )
    return None


def mood_pattern(data: InsightData) -> Optional[dict]:
    if len(data.rated_entries) < 3:
        return None
    mood = data.average_mood
    if mood > 7 and data.completed:
        return insight(
            "mood",
            "Positive Mood Boost",
            f"Your average mood rating is {mood:.1f}/10, and you're staying productive. Keep up the great work!",
            0.7,
            [
                "Note what activities contribute to your positive mood",
                "Schedule more of these mood-boosting activities",
            ],
        )
    if mood < 5:
        return insight(
            "mood",
            "Mood Impact on Productivity",
            f"Your recent mood ratings average {mood:.1f}/10. "
            "Consider focusing on self-care and manageable goals.",
            0.8,
            [
                "Schedule some self-care activities",
                "Focus on completing smaller, achievable tasks",
                "Consider talking to someone about how you're feeling",
            ],
        )
    return None


def stalled_projects(data: InsightData) -> Optional[dict]:
    cutoff = data.now - STALE_AFTER
    stalled = []
    for project in data.active_projects:
        project_tasks = [t for t in data.tasks if t.project_id == project.id]
        if project_tasks and not any(t.updated_at and t.updated_at > cutoff for t in project_tasks):
            stalled.append(project)
    if not stalled:
        return None
    return insight(
        "warning",
        "Stalled Projects Detected",
        f"{len(stalled)} project(s) haven't had activity in the past week. They might need attention.",
        0.8,
        [
            "Review stalled projects and identify blockers",
            "Break down next steps into specific tasks",
            "Consider if project scope needs adjustment",
        ],
        data_points=[{"name": p.name, "id": p.id} for p in stalled],
    )


def journaling_time_pattern(data: InsightData) -> Optional[dict]:
    cutoff = data.now - STALE_AFTER
    recent = [e for e in data.entries if e.created_at and e.created_at > cutoff]
    if len(recent) < 3:
        return None
    avg_hour = sum(e.created_at.hour for e in recent) / len(recent)
    if avg_hour < 8:
        observed = "You tend to be most reflective in the early morning hours."
    elif avg_hour > 20:
        observed = "You often do your journaling in the evening hours."
    else:
        observed = "You journal throughout the day at various times."
    return insight(
        "pattern",
        "Journaling Time Pattern",
        f"{observed} This consistency can help build a strong reflection habit.",
        0.6,
        ["Consider setting a regular time for journaling", "Use this natural timing to your advantage"],
    )


def detailed_insights(data: InsightData) -> List[dict]:
    found = [completion_pattern(data)]
    if data.entries:
        found.append(mood_pattern(data))
    if data.projects:
        found.append(stalled_projects(data))
    found.append(journaling_time_pattern(data))
    return [item for item in found if item]


def detailed_task_suggestions(data: InsightData) -> List[dict]:
    suggestions = []
    overdue = [
        t for t in data.tasks if t.due_date and t.status != "completed" and t.due_date < data.now
    ]
    if overdue:
        suggestions.append({
            "title": "Review Overdue Tasks",
            "description": "You have overdue tasks that might need attention, rescheduling, "
            "or breaking down into smaller steps.",
            "priority": "high",
            "estimated_duration": 30,
            "suggested_tags": ["review", "planning"],
            "reasoning": f"You have {len(overdue)} overdue task(s) that need attention.",
        })
    goals = [e for e in data.entries if e.entry_type == "goal_progress"]
    learning = [e for e in data.entries if e.entry_type == "learning"]
    if data.entries and len(goals) > len(learning):
        suggestions.append({
            "title": "Schedule Learning Time",
            "description": "Based on your journal patterns, you focus a lot on goals. "
            "Consider scheduling dedicated time for learning new skills.",
            "priority": "medium",
            "estimated_duration": 60,
            "suggested_tags": ["learning", "development"],
            "reasoning": "Your journal shows strong goal focus but limited learning entries.",
        })
    cutoff = data.now - STALE_AFTER
    created_recently = [t for t in data.tasks if t.created_at and t.created_at > cutoff]
    if len(created_recently) > 10:
        suggestions.append({
            "title": "Organize Task List",
            "description": "You've been creating many tasks lately. Take time to organize, "
            "prioritize, and clean up your task list.",
            "priority": "medium",
            "estimated_duration": 20,
            "suggested_tags": ["organization", "maintenance"],
            "reasoning": f"You've created {len(created_recently)} tasks in the past week.",
        })
    return suggestions[:5]


def detailed_journal_prompts(data: InsightData) -> List[dict]:
    prompts = []
    if data.completed:
        prompts.append({
            "prompt": "What accomplishment from today are you most proud of, and what made it meaningful?",
            "type": "achievement",
            "follow_up_questions": ["What skills did you use to achieve this?", "How can you build on this success?"],
        })
    rated = sorted(data.rated_entries, key=lambda e: e.created_at or datetime.min, reverse=True)
    if rated:
        if rated[0].mood_rating < 5:
            prompts.append({
                "prompt": "What's one small thing that could make tomorrow better than today?",
                "type": "reflection",
                "context": "Based on your recent mood patterns",
            })
        else:
            prompts.append({
                "prompt": "What positive energy are you feeling right now, and how can you share it?",
                "type": "gratitude",
                "context": "You seem to be in a good mood lately",
            })
    if data.tasks:
        prompts.append({
            "prompt": "Looking at your current tasks, what's the biggest obstacle you're facing "
            "and how might you overcome it?",
            "type": "goal_progress",
            "follow_up_questions": ["What resources do you need?", "Who could help you with this?"],
        })
    prompts.append({
        "prompt": "What's something new you learned recently, and how will you apply it?",
        "type": "learning",
        "follow_up_questions": ["What sparked your interest in this topic?", "What would you like to learn next?"],
    })
    return prompts[:3]


# -- basic analysis (no AI provider) -----------------------------------------


def basic_insights(data: InsightData) -> List[dict]:
    rate = data.completion_rate
    mood = data.average_mood
    found = []
    if rate > 0.8:
        found.append(insight(
            "productivity",
            "High Task Completion Rate",
            f"You're completing {round(rate * 100)}% of your tasks. Excellent work!",
            0.9,
            ["Consider taking on more challenging tasks", "Share your productivity strategies"],
        ))
    if rate < 0.5 and len(data.tasks) > 3:
        found.append(insight(
            "warning",
            "Low Task Completion Rate",
            f"Your completion rate is {round(rate * 100)}%. Consider reviewing your task load.",
            0.8,
            ["Break large tasks into smaller pieces", "Review and prioritize your task list"],
        ))
    if mood is not None and mood < 5:
        found.append(insight(
            "mood",
            "Mood Support Needed",
            f"Your recent mood average is {mood:.1f}/10. Consider self-care activities.",
            0.7,
            ["Schedule self-care time", "Focus on smaller, achievable goals"],
        ))
    return found


def basic_task_suggestions(data: InsightData) -> List[dict]:
    suggestions = []
    pending = len([t for t in data.tasks if t.status == "todo"])
    if pending > 5:
        suggestions.append({
            "title": "Focus Session",
            "description": f"You have {pending} pending tasks. Consider scheduling a focused work session.",
            "priority": "medium",
            "reasoning": "High number of pending tasks detected",
        })
    if data.completion_rate < 0.5 and len(data.tasks) > 3:
        suggestions.append({
            "title": "Task Review Session",
            "description": "Review your task list and break down large items into smaller, manageable pieces.",
            "priority": "high",
            "reasoning": "Low completion rate suggests tasks may be too large or unclear",
        })
    return suggestions


def basic_journal_prompts(data: InsightData) -> List[dict]:
    prompts = []
    if not data.entries:
        prompts.append({
            "prompt": "What are three things you accomplished this week that you're proud of?",
            "type": "achievement",
            "context": "Starting your journaling practice",
        })
    mood = data.average_mood
    if mood is not None and mood < 6:
        prompts.append({
            "prompt": "What are three things you're grateful for today, no matter how small?",
            "type": "gratitude",
            "context": "Mood support",
        })
    else:
        prompts.append({
            "prompt": "What's one challenge you're facing right now, and what small step "
            "could you take toward solving it?",
            "type": "reflection",
            "context": "Growth and problem-solving",
        })
    return prompts


def context_summary(data: InsightData) -> dict:
    mood = data.average_mood
    return {
        "tasks_analyzed": len(data.tasks),
        "projects_active": len(data.active_projects),
        "journal_entries": len(data.entries),
        "avg_mood": f"{mood:.1f}" if mood is not None else None,
        "productivity_rate": f"{data.completion_rate * 100:.1f}%",
    }


# -- fixed payloads served when analysis fails ------------------------------

CANNED_INSIGHTS = [
    insight(
        "productivity",
        "Strong Morning Productivity",
        "You complete most of your tasks between 9-11 AM. Consider scheduling important work during this time.",
        0.8,
        [
            "Block calendar time from 9-11 AM for focused work",
            "Schedule meetings outside your peak productivity hours",
        ],
    ),
    insight(
        "mood",
        "Mood-Task Correlation",
        "Your task completion rate is 25% higher on days when you journal about achievements.",
        0.7,
        ["Start each day by noting one small win from yesterday", "Keep an achievement log to boost motivation"],
    ),
    insight(
        "pattern",
        "Weekly Planning Gap",
        "You tend to create many tasks on Mondays but fewer throughout the week. Consider better weekly planning.",
        0.6,
        ["Schedule 15 minutes each Friday for next week planning", "Review and adjust tasks mid-week"],
    ),
]

CANNED_TASK_SUGGESTIONS = [
    {
        "title": "Weekly Review Session",
        "description": "Schedule time to review completed tasks, assess progress, and plan for the upcoming week.",
        "priority": "medium",
        "estimated_duration": 30,
        "suggested_tags": ["review", "planning"],
        "reasoning": "Regular reviews help maintain momentum and adjust priorities.",
    },
    {
        "title": "Skill Development Research",
        "description": "Based on your recent tasks, research new tools or techniques that could improve your workflow.",
        "priority": "low",
        "estimated_duration": 45,
        "suggested_tags": ["learning", "research"],
        "reasoning": "Continuous learning can improve long-term productivity.",
    },
    {
        "title": "Energy Management Experiment",
        "description": "Track your energy levels throughout the day for a week to optimize your schedule.",
        "priority": "low",
        "estimated_duration": 10,
        "suggested_tags": ["self-care", "tracking"],
        "reasoning": "Understanding your energy patterns can improve task scheduling.",
    },
]

CANNED_JOURNAL_PROMPTS = [
    {
        "prompt": "What's one thing you accomplished today that you didn't expect to complete?",
        "type": "achievement",
        "follow_up_questions": ["What made this possible?", "How can you replicate this success?"],
    },
    {
        "prompt": "If you could give your past self from last week one piece of advice, what would it be?",
        "type": "reflection",
        "context": "Based on your recent experiences",
    },
    {
        "prompt": "What's something you're looking forward to, and what steps can you take to make it happen?",
        "type": "goal_progress",
        "follow_up_questions": ["What obstacles might you face?", "Who could support you in this?"],
    },
]

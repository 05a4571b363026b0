"""System prompts and per-action message assembly."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .actions import Action, GenerationRequest
from .sanitize import sanitize_text

__all__ = ["PromptPlan", "EMPTY_TEXT_FALLBACK", "build_prompt"]

CHAT_SYSTEM = """You are an experienced product manager and startup advisor helping someone refine their project idea. Your goal is to:

1. Ask thoughtful questions to understand their vision
2. Help them clarify the problem they're solving
3. Identify their target users
4. Understand the scope and constraints
5. Guide them toward a clear, actionable project concept

Be conversational, encouraging, and practical. Ask one focused question at a time. Keep responses concise but insightful.

When they seem to have a clear direction, acknowledge it and suggest they're ready to move to the next step."""

SUMMARY_SYSTEM = (
    "Based on the following conversation, create a clear, concise summary of the project idea "
    "that emerged. Focus on: the core concept, target users, main problem being solved, and key "
    "features. Keep it to 2-3 sentences."
)

PRD_SYSTEM = """You are a senior product manager creating a comprehensive Product Requirements Document (PRD). Based on the project idea provided, generate a well-structured PRD in markdown format.

The PRD should include these sections:
1. **Executive Summary** - Brief overview of the product
2. **Problem Statement** - What problem are we solving?
3. **Target Users** - Who are we building this for?
4. **Solution Overview** - High-level description of the solution
5. **Core Features** - Essential features for MVP
6. **Success Metrics** - How will we measure success?
7. **Technical Considerations** - Key technical requirements or constraints
8. **Timeline & Scope** - Rough phases and what's in/out of scope
9. **Risks & Assumptions** - Potential challenges and assumptions

Make it practical, actionable, and specific to the idea provided. Use clear headings and bullet points for readability."""

ROADMAP_SYSTEM = """You are a senior product manager creating a development roadmap. Based on the PRD provided, generate a phased roadmap that breaks the project into logical development phases.

Create 3-5 roadmap items. Each phase should build upon the previous one.

Return ONLY a valid JSON array with this exact structure:
[
  {
    "title": "MVP - Core Features",
    "description": "What will be built in this phase",
    "status": "planned",
    "phase": "mvp",
    "milestone": true,
    "color": "#3b82f6"
  }
]

Guidelines:
- The first phase is always phase "mvp", the second "phase_2", the rest "backlog"
- Mark major phases as milestones
- Use colors: #3b82f6, #10b981, #f59e0b, #ef4444, #8b5cf6
- Status is always "planned" for new roadmaps"""

_TASK_JSON = """Return ONLY a valid JSON array with this exact structure:
[
  {
    "title": "Task title",
    "description": "What needs to be done",
    "status": "todo",
    "priority": "medium",
    "estimated_hours": 8,
    "due_date": null,
    "tags": ["frontend"],
    "dependencies": []
  }
]"""

TASKS_SYSTEM = f"""You are a senior project manager breaking a project down into actionable tasks. Based on the PRD and roadmap provided, generate a list of development tasks.

{_TASK_JSON}

Guidelines:
- Create 8-15 tasks covering the MVP and early phases
- Mix frontend, backend, design and testing work
- Use realistic estimates (1-40 hours per task)
- Priorities are "low", "medium", "high" or "urgent"
- Status is always "todo" for new tasks
- Keep dependencies empty"""

DESIGN_TASKS_SYSTEM = f"""You are a senior product designer turning design feedback into concrete UI/UX tasks.

{_TASK_JSON}

Guidelines:
- Create 3-8 specific, actionable design tasks
- Always include the "design" tag plus an area tag such as "ui", "ux", "accessibility"
- Priorities are "low", "medium", "high" or "urgent"
- Status is always "todo\""""

DESIGN_IMAGE_SYSTEM = f"""You are a senior product designer reviewing a screenshot of a user interface. Identify usability, visual and accessibility problems and turn them into concrete design tasks.

{_TASK_JSON}

Guidelines:
- Create 3-8 specific, actionable design tasks
- Always include the "design" tag
- Status is always "todo\""""

DEPLOYMENT_SYSTEM = """You are a senior DevOps engineer preparing a go-live checklist for a web application.

Return ONLY a valid JSON array with this exact structure:
[
  {
    "title": "Configure environment variables",
    "description": "What must be done and how to verify it",
    "category": "env",
    "platform": "vercel",
    "environment": "production",
    "status": "todo",
    "priority": "critical",
    "is_required": true,
    "estimated_hours": 1,
    "verification_notes": "How to confirm the step is complete",
    "helpful_links": [{"title": "Docs", "url": "https://example.com"}],
    "tags": ["env"]
  }
]

Guidelines:
- Create 8-15 items
- category is one of: general, hosting, database, auth, env, security, monitoring, testing, dns, ssl, performance
- platform is one of the requested platforms, or "universal" for platform-independent steps
- priority is one of: low, medium, high, critical
- helpful_links must use real https documentation URLs"""

EMPTY_TEXT_FALLBACK = {
    Action.CHAT: "Sorry, I had trouble generating a response. Please try again.",
    Action.SUMMARY: "Unable to generate summary",
    Action.PRD: "Unable to generate PRD",
}


@dataclass(frozen=True)
class PromptPlan:
    """Everything needed for one upstream completion call."""

    messages: list[dict[str, Any]]
    max_tokens: int
    temperature: float
    vision: bool = False


def _conversation(request: GenerationRequest) -> str:
    return "\n\n".join(
        f"{'User' if msg['role'] == 'user' else 'AI'}: {sanitize_text(msg['content'])}"
        for msg in request.messages
    )


def _roadmap_summary(request: GenerationRequest) -> str:
    return "\n".join(
        f"{sanitize_text(item.get('title'))}: {sanitize_text(item.get('description'))}"
        for item in request.roadmap_items
    )


def build_prompt(request: GenerationRequest) -> PromptPlan:
    """Assemble the sanitized message list for ``request``."""

    action = request.action
    if action is Action.CHAT:
        history = [
            {"role": msg["role"], "content": sanitize_text(msg["content"])}
            for msg in request.messages
        ]
        return PromptPlan([{"role": "system", "content": CHAT_SYSTEM}, *history], 300, 0.7)
    if action is Action.SUMMARY:
        user = f"Please summarize this project ideation conversation:\n\n{_conversation(request)}"
        return PromptPlan(_pair(SUMMARY_SYSTEM, user), 150, 0.5)
    if action is Action.PRD:
        user = f"Create a PRD for this project idea: {sanitize_text(request.idea_summary)}"
        return PromptPlan(_pair(PRD_SYSTEM, user), 1500, 0.6)
    if action is Action.ROADMAP:
        user = f"Create a development roadmap based on this PRD:\n\n{sanitize_text(request.prd_content)}"
        return PromptPlan(_pair(ROADMAP_SYSTEM, user), 1000, 0.6)
    if action is Action.TASKS:
        user = (
            "Generate development tasks based on this PRD and roadmap:\n\n"
            f"PRD:\n{sanitize_text(request.prd_content)}\n\n"
            f"Roadmap:\n{_roadmap_summary(request)}"
        )
        return PromptPlan(_pair(TASKS_SYSTEM, user), 1500, 0.6)
    if action is Action.DESIGN_TASKS:
        user = f"Create design tasks from this feedback:\n\n{sanitize_text(request.feedback_text)}"
        return PromptPlan(_pair(DESIGN_TASKS_SYSTEM, user), 1200, 0.6)
    if action is Action.DESIGN_TASKS_IMAGE:
        image_url = f"data:{request.mime_type};base64,{request.image_data}"
        user_content = [
            {"type": "text", "text": "Review this interface and list the design tasks it needs."},
            {"type": "image_url", "image_url": {"url": image_url}},
        ]
        return PromptPlan(_pair(DESIGN_IMAGE_SYSTEM, user_content), 1200, 0.5, vision=True)

    platforms = ", ".join(sanitize_text(p) for p in request.platforms)
    parts = [f"Target platforms: {platforms}"]
    if request.prd_content:
        parts.append(f"PRD:\n{sanitize_text(request.prd_content)}")
    if request.roadmap_items:
        parts.append(f"Roadmap:\n{_roadmap_summary(request)}")
    user = "Create a deployment checklist for this project.\n\n" + "\n\n".join(parts)
    return PromptPlan(_pair(DEPLOYMENT_SYSTEM, user), 2000, 0.5)


def _pair(system: str, user: Any) -> list[dict[str, Any]]:
    return [{"role": "system", "content": system}, {"role": "user", "content": user}]

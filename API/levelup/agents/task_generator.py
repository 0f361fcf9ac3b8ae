"""
Task generation agent: turns journey context into the next practice task.

Builds a difficulty-aware instruction from the journey attributes and the most
recent levels, sends it to the configured LLM provider and returns the trimmed
task text. Nothing here touches the level store.
"""
import json
from collections.abc import Sequence

from levelup.agents.adaptation import DifficultyAdjustment, resolve_adjustment
from levelup.agents.base import BaseAgent
from levelup.core.llm_provider import BaseLLMProvider, get_llm_provider
from levelup.core.logging import DOMAIN_GENERATION, get_domain_logger
from levelup.core.settings import settings
from levelup.models.entities import Level
from levelup.orchestrator.errors import GenerationFailure

logger = get_domain_logger(__name__, DOMAIN_GENERATION)

PRIOR_TASKS_IN_PROMPT = 3

GOOD_TASK_EXAMPLES = (
    "Cook scrambled eggs with three ingredients and serve with toast",
    "Practice speaking for 60 seconds about your day without using filler words",
    "Build a simple paper airplane that can fly at least 10 feet",
)


def summarize_prior_levels(previous_levels: Sequence[Level]) -> str:
    """One line per prior level, most recent first, capped at three."""
    lines = []
    for level in list(previous_levels)[:PRIOR_TASKS_IN_PROMPT]:
        rating = level.difficulty_rating if level.difficulty_rating is not None else "Not rated"
        lines.append(f"Level {level.level_number}: {level.task} (Difficulty: {rating})")
    return "\n".join(lines)


def build_task_prompt(
    *,
    skill: str,
    experience_level: str,
    level_number: int,
    adjustment: DifficultyAdjustment,
    previous_levels: Sequence[Level] = (),
    time_commitment: str | None = None,
    goal: str | None = None,
) -> str:
    time_budget = time_commitment or settings.default_time_commitment
    personal_goal = goal or settings.default_goal
    history = summarize_prior_levels(previous_levels)
    history_block = f"Previous tasks (most recent first):\n{history}\n" if history else "This is their first task.\n"
    examples = "\n".join(f'- "{example}"' for example in GOOD_TASK_EXAMPLES)

    return (
        f"You are a skill learning coach creating personalized challenges for someone learning {skill}.\n\n"
        "Learner details:\n"
        f"- Experience level: {experience_level}\n"
        f"- Time available: {time_budget}\n"
        f"- Personal goal: {personal_goal}\n"
        f"- This is level {level_number} of their journey\n\n"
        f"{history_block}\n"
        f"{adjustment.instruction}\n\n"
        "Generate ONE specific, actionable task that:\n"
        f"1. Can be completed in {time_budget}\n"
        f"2. Is appropriate for a {experience_level} learner\n"
        "3. Builds on the previous tasks, if any\n"
        "4. Is concrete and measurable, so the learner knows when it is done\n\n"
        "Respond with ONLY the task description in 1-2 sentences. "
        "Do not include numbering, level numbers, greetings, or explanations.\n\n"
        f"Examples of good tasks:\n{examples}"
    )


class TaskGenerationAgent(BaseAgent):
    name = "task_generator"

    def __init__(self, provider: BaseLLMProvider | None = None):
        self.provider = provider or get_llm_provider()

    async def run(self, input_data: dict) -> dict:
        previous_levels: list[Level] = input_data.get("previous_levels", [])
        last_rating = previous_levels[0].difficulty_rating if previous_levels else None
        adjustment = resolve_adjustment(last_rating)
        prompt = build_task_prompt(
            skill=input_data["skill"],
            experience_level=input_data["level"],
            level_number=input_data["level_number"],
            adjustment=adjustment,
            previous_levels=previous_levels,
            time_commitment=input_data.get("time_commitment"),
            goal=input_data.get("goal"),
        )

        try:
            llm_text, usage = await self.provider.generate(prompt)
        except Exception as exc:
            raise GenerationFailure(
                f"Task generator call failed: {exc}",
                details={"provider": self.provider.provider_name, "error_type": type(exc).__name__},
            ) from exc

        logger.info(
            json.dumps(
                {
                    "type": "llm_usage",
                    "agent": self.name,
                    "journey_id": input_data.get("journey_id"),
                    "level_number": input_data["level_number"],
                    "adjustment": adjustment.key,
                    "usage": usage,
                }
            )
        )

        task = (llm_text or "").strip()
        if not task:
            raise GenerationFailure(
                "Task generator returned no text",
                details={"provider": self.provider.provider_name, "reason": (usage or {}).get("reason")},
            )
        return {
            "task": task,
            "prompt": prompt,
            "adjustment": adjustment.key,
            "usage": usage,
        }

"""Persona definitions and prompt builders for the stage chats."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class StageName(str, Enum):
    CUSTOMER = "customer"
    DESIGNER = "designer"
    MARKETER = "marketer"
    VC = "vc"

    @property
    def next_stage(self) -> Optional["StageName"]:
        order = list(StageName)
        idx = order.index(self)
        return order[idx + 1] if idx + 1 < len(order) else None


@dataclass(frozen=True)
class Persona:
    name: str
    backstory: str
    goal: str


PERSONAS: Mapping[StageName, Persona] = {
    StageName.CUSTOMER: Persona(
        name="Jordan",
        backstory=(
            "You are a potential customer who is practical, budget-conscious, and skeptical of new products. "
            "You speak in a casual, straightforward manner and use occasional slang. You care about solving "
            "real problems in your daily life. You will be told who the ideal customer is and you should "
            "become them, asking the things that customer would ask"
        ),
        goal="Validate whether this idea solves a real pain point for you, and if it's something you would pay for.",
    ),
    StageName.DESIGNER: Persona(
        name="Ava",
        backstory=(
            "You are a UX/UI designer who advocates for user-centric design. You challenge scope creep and "
            "push for simplicity. You believe in solving core problems first before adding features"
        ),
        goal=(
            "Help define the minimum viable product (MVP) by identifying core features and challenging "
            "unnecessary complexity."
        ),
    ),
    StageName.MARKETER: Persona(
        name="Zeke",
        backstory=(
            "You are a growth marketer who believes in scrappy, data-driven strategies. You focus on finding "
            "product-market fit and customer acquisition channels that are cost-effective"
        ),
        goal="Identify potential go-to-market strategies and suggest testable experiments to validate market assumptions.",
    ),
    StageName.VC: Persona(
        name="Morgan",
        backstory=(
            "You are a venture capitalist who evaluates startups based on market size, traction potential, "
            "and ROI. You are direct, blunt, and focused on business viability and scalability"
        ),
        goal="Evaluate the business potential of this idea and assign a score from 0-10 based on its investment worthiness.",
    ),
}


def idea_context(idea: Mapping[str, Any]) -> str:
    return json.dumps(
        {
            "title": idea.get("title"),
            "description": idea.get("raw_idea"),
            "customer": idea.get("ideal_customer"),
            "problem": idea.get("problem"),
            "currentSolutions": idea.get("current_solutions"),
            "valueProp": idea.get("value_prop"),
        },
        indent=2,
        ensure_ascii=False,
    )


def build_system_prompt(idea: Mapping[str, Any], stage: StageName) -> str:
    persona = PERSONAS[stage]
    return f'''You are {persona.name} - {persona.backstory}.
This is a summary of the user's business idea:
Context (triple-quoted JSON):
"""
{idea_context(idea)}
"""

Your goal: {persona.goal}

CONVERSATION RULES:
1. Respond naturally in a conversational style as {persona.name}.
2. End the conversation when you have gathered enough information to evaluate the idea or reach a natural closing point.
3. If the user wants to continue after you have tried to end it, continue the discussion.
4. When the conversation ends, close naturally with your overall assessment of the idea.
5. Do not rush to end the conversation.
6. When you are done, tell the user to click the continue button to move to the next stage and append
   ```json
   {{"stage_complete": true}}
   ```
'''


def build_summarization_prompt(conversation: str) -> str:
    return (
        "Summarize the following conversation in brief bullet points. Focus exclusively on the points made "
        "by the user and on how they addressed any concerns raised. Never mention the AI. The summary should "
        'tell the user "what went well" and "where can we improve" for their business idea.\n'
        f"{conversation}\n"
    )

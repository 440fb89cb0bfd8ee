from __future__ import annotations

from typing import List

from ..personas import PERSONAS, StageName
from .base import ChatTurn, ResponderResult

COMPLETION_MARKER = '```json\n{"stage_complete": true}\n```'

_FOLLOW_UPS = {
    StageName.CUSTOMER: [
        "Okay, but how often would I actually run into this problem?",
        "What would this cost me compared to what I do today?",
    ],
    StageName.DESIGNER: [
        "What is the single core flow a first-time user must complete?",
        "Which feature could we cut from the first version without losing the value?",
    ],
    StageName.MARKETER: [
        "Where do your ideal customers already hang out online?",
        "What is the cheapest experiment that would prove people want this?",
    ],
    StageName.VC: [
        "How big is the market, realistically?",
        "What would traction look like six months after launch?",
    ],
}


class ScriptedResponder:
    """
    Deterministic responder, no external API:
    - asks persona follow-ups, then closes with the completion marker
    - summaries list the user's points as bullets; vc adds a score line
    """
    name = "scripted"

    def __init__(self, closing_turn: int = 3) -> None:
        self.closing_turn = max(1, closing_turn)

    def reply(self, *, stage_name: str, turns: List[ChatTurn], request_id: str) -> ResponderResult:
        stage = StageName(stage_name)
        persona = PERSONAS[stage]
        user_turns = sum(1 for t in turns if t.role == "user")

        if user_turns >= self.closing_turn:
            content = (
                f"Well that's it from me, {persona.name} signing off! Thanks for your time and good luck "
                f"with your idea! Click the continue button to move to the next stage.\n{COMPLETION_MARKER}"
            )
            return ResponderResult(content=content, details={"closing": "true"})

        follow_ups = _FOLLOW_UPS[stage]
        question = follow_ups[(user_turns - 1) % len(follow_ups)] if user_turns else follow_ups[0]
        return ResponderResult(content=f"{persona.name} here. {question}")

    def summarize(self, *, stage_name: str, prompt: str, turns: List[ChatTurn], request_id: str) -> str:
        points = [t.content.strip() for t in turns if t.role == "user" and t.content.strip()]
        lines = [f"- {p}" for p in points] or ["- No points were raised."]
        if StageName(stage_name) is StageName.VC:
            lines.append(f"Score: {min(10, 3 + len(points))}/10")
        return "\n".join(lines)

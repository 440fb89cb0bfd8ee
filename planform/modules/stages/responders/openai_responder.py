from __future__ import annotations

from typing import Any, List, Optional

from openai import APIError, OpenAI

from .base import ChatTurn, ResponderError, ResponderResult

SUMMARY_SYSTEM_PROMPT = "You summarize founder interviews in short, candid bullet points."


class OpenAIResponder:
    """
    Persona chat and stage summaries through the OpenAI chat completions API.

    NOTE:
    - every API failure (status, connection, timeout) surfaces as ResponderError
    - the client is built lazily so importing the registry needs no key
    """
    name = "openai"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        client: Optional[Any] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ResponderError("OPENAI_API_KEY is not set")
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=1)
        return self._client

    def _complete(self, messages: List[dict], temperature: float) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
            )
        except APIError as e:
            raise ResponderError(f"openai request failed: {type(e).__name__}: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ResponderError("openai returned an empty completion")
        return content

    def reply(self, *, stage_name: str, turns: List[ChatTurn], request_id: str) -> ResponderResult:
        messages = [{"role": t.role, "content": t.content} for t in turns]
        content = self._complete(messages, temperature=0.7)
        return ResponderResult(content=content, details={"model": self.model})

    def summarize(self, *, stage_name: str, prompt: str, turns: List[ChatTurn], request_id: str) -> str:
        messages = [
            {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        return self._complete(messages, temperature=0.3)

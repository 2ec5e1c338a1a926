"""Fake model gateway that records calls and returns scripted replies."""

from typing import Any

from deposim.core.llm import LLMConfig, LLMResponse
from deposim.core.schemas_session import ChatMessage, TokenUsage


class FakeGateway:
    """Drop-in for ModelGateway.invoke.

    Replies are consumed in order; an Exception in the queue is raised instead.
    When the queue is empty a fixed reply is returned.
    """

    def __init__(self, replies: list[Any] | None = None, usage: TokenUsage | None = None):
        self.replies = list(replies or [])
        self.usage = usage or TokenUsage(input_tokens=100, output_tokens=20)
        self.calls: list[dict[str, Any]] = []

    async def invoke(
        self,
        messages: list[ChatMessage],
        config: LLMConfig,
        workflow: str = "deposition",
        session_id: str | None = None,
    ) -> LLMResponse:
        self.calls.append(
            {
                "messages": list(messages),
                "config": config,
                "workflow": workflow,
                "session_id": session_id,
            }
        )
        reply = self.replies.pop(0) if self.replies else "I don't recall."
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(
            content=reply,
            usage=self.usage,
            provider=config.provider_id,
            model=config.model or "fake-model",
        )

    @property
    def last_system_prompt(self) -> str:
        return self.calls[-1]["messages"][0].content

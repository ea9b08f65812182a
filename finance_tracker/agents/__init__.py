"""AI agents package."""

from finance_tracker.agents.assistant import (
    AssistantAction,
    AssistantCommand,
    AssistantError,
    FinanceAssistantAgent,
    build_prompt,
    parse_response_text,
)

__all__ = [
    "AssistantAction",
    "AssistantCommand",
    "AssistantError",
    "FinanceAssistantAgent",
    "build_prompt",
    "parse_response_text",
]

"""Prompt composition for the language-model call."""

from __future__ import annotations

from langchain_core.prompts import PromptTemplate

_PROMPT = PromptTemplate.from_template(
    """
You are a blockchain assistant. Analyze blockchain data and answer the question.

Rules:
1) Do not use markdown formatting (no bold, no lists, no code blocks).
2) Use plain text only.
3) Start directly with your explanation.

{context_line}Question: {query}
""".strip()
)

BALANCE_LINE_PREFIX = "Wallet balance: "


def compose_prompt(query: str, context: str = "") -> str:
    """Render the prompt; the balance line is omitted when `context` is empty.

    The query is embedded verbatim.
    """
    context_line = f"{BALANCE_LINE_PREFIX}{context}\n" if context else ""
    return _PROMPT.format(context_line=context_line, query=query)

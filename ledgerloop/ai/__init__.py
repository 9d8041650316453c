"""
LedgerLoop — AI Collaborator Client

Thin wrapper over the Anthropic async client. Every caller treats a raised
exception as "collaborator unavailable" and falls back to its local result,
so nothing here retries.
"""
import json
import time as _time

import anthropic

from ledgerloop.config import AI_PRIMARY_MODEL, AI_MAX_TOKENS, AI_TIMEOUT_SECONDS


def get_client() -> anthropic.AsyncAnthropic:
    return anthropic.AsyncAnthropic(timeout=AI_TIMEOUT_SECONDS, max_retries=0)


def strip_code_fences(text: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one."""
    text = (text or "").strip()
    if text.startswith("```"):
        first_nl = text.index("\n") if "\n" in text else len(text)
        text = text[first_nl + 1:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text


def first_text(message) -> str:
    return next((b.text for b in message.content if getattr(b, "type", "") == "text"), "")


async def call_claude_json(prompt: str, label: str, content_blocks: list = None,
                           system: str = None, client=None):
    """Send one prompt (optionally with document/image blocks) and parse the JSON reply.

    Raises on API errors and on replies that are not valid JSON.
    """
    client = client or get_client()
    content = list(content_blocks or []) + [{"type": "text", "text": prompt}]
    kwargs = {"model": AI_PRIMARY_MODEL, "max_tokens": AI_MAX_TOKENS,
              "messages": [{"role": "user", "content": content}]}
    if system:
        kwargs["system"] = system

    t0 = _time.time()
    msg = await client.messages.create(**kwargs)
    elapsed = round((_time.time() - t0) * 1000)
    result = json.loads(strip_code_fences(first_text(msg)))
    print(f"[AI:{label}] OK in {elapsed}ms")
    return result

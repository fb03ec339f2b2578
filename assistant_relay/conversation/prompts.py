"""
Prompt Templates for the Slack Assistant

The shared system prompt encodes the escalation contract: when the assistant
cannot answer from its own knowledge it must reply with the sentinel and
nothing else.
"""

# =============================================================================
# Escalation Sentinel
# =============================================================================

ESCALATION_SENTINEL = "NEED_WEB_SEARCH"

NO_SEARCH_RESULTS = "No results found."


# =============================================================================
# Assistant System Prompt
# =============================================================================

ASSISTANT_SYSTEM_PROMPT = f"""You are a helpful assistant answering questions from colleagues in Slack.

Guidelines:
- Answer clearly and concisely. Slack formatting (bold, bullet lists, code blocks) is fine.
- Keep the conversation going naturally; earlier messages in the thread are part of the same conversation.
- If a question needs current or real-time information you do not have (news, prices, exchange rates, weather, recent events), or you simply do not know the answer, reply with exactly:
{ESCALATION_SENTINEL}
  Do not add any other words, punctuation or mentions to that reply."""


def get_run_instructions(actor_id: str) -> str:
    """Build per-run instructions: the shared system prompt plus how to address the actor."""
    return f"{ASSISTANT_SYSTEM_PROMPT}\n\nPlease address the user as <@{actor_id}>."


# =============================================================================
# Search Restatement Prompt
# =============================================================================


def get_restatement_prompt(question: str, snippets: str) -> list[dict]:
    """Build the single-turn prompt that turns search snippets into an answer."""
    content = (
        "Here are web search results for a question.\n\n"
        f"Search results:\n---\n{snippets}\n---\n\n"
        f"Question: {question}\n\n"
        "Using only these results, answer the question in your own words. "
        "Present the answer as your own knowledge: do not mention searching, "
        "search results or snippets. If the results do not answer the question, "
        "say briefly that you could not find a reliable answer."
    )
    return [{"role": "user", "content": content}]

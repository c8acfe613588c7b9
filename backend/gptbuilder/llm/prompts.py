"""System prompt assembly for the completion proxy."""

DEFAULT_INSTRUCTIONS = "You are a helpful AI assistant."

CONTEXT_HEADER = "Relevant information from uploaded documents:"


def build_system_prompt(instructions: str | None = None, context: str | None = None) -> str:
    """Combine a GPT's instructions with retrieved document context.

    Blank context is dropped; missing instructions fall back to a generic
    assistant prompt.
    """
    system_content = instructions or DEFAULT_INSTRUCTIONS
    if context and context.strip():
        system_content += f"\n\n{CONTEXT_HEADER}\n{context}"
    return system_content

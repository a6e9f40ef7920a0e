"""
Renders captured output as a chat reply.
"""

from .sandbox.output import Output

CODE_FENCE = "```"
# Modifier letter grave accents look like backticks but do not close a fence
FENCE_LOOKALIKE = "ˋˋˋ"


def escape_code_block(text: str) -> str:
    return text.replace(CODE_FENCE, FENCE_LOOKALIKE)


def render_output(output: Output) -> str:
    """Status line (for failures) plus a fenced block of the captured text."""
    parts = []
    if not output.success:
        parts.append(f"**EXIT STATUS:** {output.status}\n")

    text = output.text
    if text:
        parts.append(f"{CODE_FENCE}\n{escape_code_block(text)}{CODE_FENCE}")
    elif not output.success:
        parts.append(f"{CODE_FENCE}\n{CODE_FENCE}")
    return "".join(parts)

"""Prompt templates for oracle questions."""

from smart_approve.oracle.models import Framing

CLASSIFY_INSTRUCTIONS = """\
You are reviewing a shell command a coding agent wants to run.

Answer APPROVE if the command is read-only (it does not modify files, \
system state or remote services), or if the user has already clearly \
agreed in the conversation below to exactly this action.
Answer DENY otherwise, or if you are unsure."""

CONSENT_INSTRUCTIONS = """\
You are reviewing a shell command a coding agent wants to run. The command \
modifies files, system state or remote services.

Answer APPROVE only if the user explicitly agreed in the conversation below \
to this exact side effect (this command or the step it performs).
Answer DENY if they did not, if the agreement was for something else, or \
if you are unsure."""

EFFECT_INSTRUCTIONS = """\
Analyze this shell command and determine if it modifies the filesystem, \
system state, or makes destructive network requests.

Answer MODIFYING if it does or if you are unsure, READONLY if it does not."""

_INSTRUCTIONS = {
    Framing.CLASSIFY: CLASSIFY_INSTRUCTIONS,
    Framing.CONSENT: CONSENT_INSTRUCTIONS,
    Framing.EFFECT: EFFECT_INSTRUCTIONS,
}


def build_prompt(
    command: str,
    framing: Framing,
    cwd: str | None = None,
    context: str = "",
    script_path: str | None = None,
    script_excerpt: str | None = None,
    excerpt_limit: int = 5000,
) -> str:
    """Assemble the full oracle prompt.

    Args:
        command: The shell command under review.
        framing: Which question is being asked.
        cwd: Working directory the command runs in.
        context: Recent conversation, one turn per line.
        script_path: Script the command runs, if any.
        script_excerpt: Leading content of that script.
        excerpt_limit: Cap applied to the excerpt.

    Returns:
        Prompt text ending with the one-word answer instruction.
    """
    sections = [_INSTRUCTIONS[framing], f"Command: {command}"]

    if cwd:
        sections.append(f"Working directory: {cwd}")

    if context:
        sections.append(f"Recent conversation:\n{context}")

    if script_path and script_excerpt is not None:
        truncated = len(script_excerpt) > excerpt_limit
        label = f"{script_path}, truncated to {excerpt_limit} chars" if truncated else script_path
        sections.append(
            f"Script file content ({label}):\n```\n{script_excerpt[:excerpt_limit]}\n```"
        )

    first, second = (verdict.name for verdict in framing.answers)
    sections.append(f'Respond with ONLY one word: "{first}" or "{second}".')
    return "\n\n".join(sections)

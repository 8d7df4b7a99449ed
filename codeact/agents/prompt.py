"""System prompt for the task loop."""

import platform

from .completion import COMPLETION_MARKER
from .session import Session

_BASE_PROMPT = """\
You are a capable assistant that completes tasks by writing and running code.

To run code, reply with a fenced code block tagged with its language:

```bash
ls -la
```

Supported languages are bash, javascript (run with Node.js) and python.
Code blocks in your reply are executed in order and their output is sent back to you.
Keep each step small and check its output before moving on.

To ask the user a question, reply with:
<tool>user_input</tool><input>your question</input>
and wait for the answer.

When the task is done, reply without code blocks, summarize the result and
include **{marker}** in your reply."""


def build_system_prompt(session: Session) -> str:
    """Build the system prompt for a session."""
    sections = [
        _BASE_PROMPT.format(marker=COMPLETION_MARKER),
        "\n".join(
            [
                "Environment:",
                f"- Working directory: {session.working_directory}",
                f"- Platform: {platform.system()} {platform.machine()}",
                f"- Security: {session.mode.description}",
            ]
        ),
    ]
    if session.requires_user_confirmation("write"):
        sections.append(
            "Before running code that creates, modifies or deletes files, ask the user "
            "for confirmation with the user_input tool."
        )
    return "\n\n".join(sections)

"""
Script Composer
===============
Concatenates before_script and script steps into one shell line.

No quoting is applied: each step must already be a complete shell fragment.
An empty step list composes to "" (a no-op shell invocation).
"""
from typing import Sequence

from builder.core.constants import SCRIPT_SEPARATOR, SHELL


def compose_script(before_script: Sequence[str], script: Sequence[str]) -> str:
    return SCRIPT_SEPARATOR.join([*before_script, *script])


def build_shell_command(command: str) -> list[str]:
    """Wrap a composed line as the container's argv."""
    return [SHELL, "-c", command]

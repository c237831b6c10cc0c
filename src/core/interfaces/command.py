"""Contracts for one-shot commands.

Why Protocol:
- Structural contract (duck typing) without rigid inheritance.
- The CLI can run any command the same way (`asyncio.run(command.invoke(...))`)
  and tests can pass stand-ins.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.domain.options import CommonOptions


@runtime_checkable
class Command(Protocol):
    """Minimal contract for a command run by a CLI verb.

    Design rules:
    - `invoke` is asynchronous because commands typically do I/O.
    - It receives the verb's option record and returns a summary object.
    """

    async def invoke(self, options: CommonOptions) -> Any:
        """Run the command to completion."""

        ...

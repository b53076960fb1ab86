from __future__ import annotations

from typing import Any

from mnemo.core.errors import ExecutionError

from .args import ToolArgs


async def stripe_handler(action: str, args: ToolArgs) -> dict[str, Any]:
    # Payment sync runs in the billing service; this tool only acknowledges it.
    if action == "list-transactions":
        return {"status": "Stripe transactions synced."}
    raise ExecutionError(f"Unsupported stripe action: {action}")

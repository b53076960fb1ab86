from __future__ import annotations

from typing import Any
from urllib.parse import urlencode, urljoin

from mnemo.core.config import UISettings
from mnemo.core.errors import ExecutionError

from .args import HelpArgs, OpenDashboardArgs, OpenUploaderArgs, ShowMemoryArgs, ToolArgs, VisualizerArgs


class UIConnector:
    """Builds navigation targets for the web dashboard; performs no I/O."""

    def __init__(self, settings: UISettings | None = None) -> None:
        self.base_url = (settings or UISettings()).base_url

    def _url(self, path: str, params: dict[str, str] | None = None) -> str:
        url = urljoin(self.base_url, path)
        query = {key: value for key, value in (params or {}).items() if value}
        if query:
            url = f"{url}?{urlencode(query)}"
        return url

    def _open(self, url: str, message: str) -> dict[str, Any]:
        return {"action": "open_url", "url": url, "message": message}

    def open_dashboard(self, args: OpenDashboardArgs) -> dict[str, Any]:
        url = self._url(args.path or "/dashboard", {"memory_id": args.memory_id or "", "topic_id": args.topic_id or ""})
        return self._open(url, f"Opening dashboard at {url}")

    def show_memory(self, args: ShowMemoryArgs) -> dict[str, Any]:
        url = self._url(f"/memory/{args.memory_id}", {"mode": args.mode or ""})
        return self._open(url, f"Opening memory {args.memory_id} in {args.mode or 'view'} mode")

    def open_visualizer(self, args: VisualizerArgs) -> dict[str, Any]:
        url = self._url("/visualizer", {"memory_id": args.memory_id or "", "topic_id": args.topic_id or ""})
        return self._open(url, "Opening memory visualizer")

    def open_uploader(self, args: OpenUploaderArgs) -> dict[str, Any]:
        params = {"type": args.type or ""}
        if args.prefill is not None:
            params.update(
                {
                    "title": args.prefill.title or "",
                    "content": args.prefill.content or "",
                    "memory_type": args.prefill.memory_type or "",
                }
            )
        url = self._url("/upload", params)
        return self._open(url, f"Opening {args.type or 'manual'} uploader")

    def show_help(self, args: HelpArgs) -> dict[str, Any]:
        url = self._url("/help", {"topic": args.topic or ""})
        return self._open(url, f"Opening help for {args.topic}" if args.topic else "Opening help")

    async def handle(self, action: str, args: ToolArgs) -> dict[str, Any]:
        if action == "open-dashboard" and isinstance(args, OpenDashboardArgs):
            return self.open_dashboard(args)
        if action == "show-memory" and isinstance(args, ShowMemoryArgs):
            return self.show_memory(args)
        if action == "open-visualizer" and isinstance(args, VisualizerArgs):
            return self.open_visualizer(args)
        if action == "open-uploader" and isinstance(args, OpenUploaderArgs):
            return self.open_uploader(args)
        if action == "show-stats":
            return self._open(self._url("/stats"), "Opening memory statistics dashboard")
        if action == "show-topics":
            return self._open(self._url("/topics"), "Opening topic management interface")
        if action == "open-settings":
            return self._open(self._url("/settings"), "Opening settings panel")
        if action == "show-help" and isinstance(args, HelpArgs):
            return self.show_help(args)
        raise ExecutionError(f"Unknown UI action: {action}")

from __future__ import annotations


class MnemoError(RuntimeError):
    """Base error for orchestration and agent failures."""


class ResolutionError(MnemoError):
    """Raised when free text cannot be turned into a command."""


class ToolNotFoundError(MnemoError):
    def __init__(self, tool: str, known_tools: list[str]) -> None:
        super().__init__(f'Tool "{tool}" not found. Available tools: {", ".join(known_tools)}')
        self.tool = tool
        self.known_tools = list(known_tools)


class ExecutionError(MnemoError):
    """Raised by handlers when a dispatched command cannot be carried out."""


class AgentTimeoutError(MnemoError):
    def __init__(self, agent_name: str, timeout_s: float) -> None:
        super().__init__(f"Agent {agent_name} timeout")
        self.agent_name = agent_name
        self.timeout_s = timeout_s

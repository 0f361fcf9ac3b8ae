from abc import ABC, abstractmethod
from typing import Any


class BaseAgent(ABC):
    """One async step of level generation: context dict in, result dict out."""

    name: str = "agent"

    @abstractmethod
    async def run(self, input_data: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

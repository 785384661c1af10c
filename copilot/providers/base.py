from abc import ABC, abstractmethod
from typing import Any, Dict


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""


class SwapAggregatorProvider(Provider):
    """Provider that prices swaps and builds router transactions"""

    @abstractmethod
    async def get_quote(self, chain_id: int, src: str, dst: str, amount: int) -> Any:
        """Quote an exact-input swap of ``amount`` base units"""

    @abstractmethod
    async def build_swap(
        self,
        chain_id: int,
        src: str,
        dst: str,
        amount: int,
        from_address: str,
        slippage_percent: float,
    ) -> Any:
        """Build an unsigned router transaction for ``from_address``"""

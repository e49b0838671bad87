"""
钱包仓储接口 - 定义钱包与账本流水的数据访问抽象
"""
from abc import ABC, abstractmethod
from typing import Optional, List

from .entity import Wallet, LedgerTransaction


class WalletRepository(ABC):
    """钱包仓储抽象接口"""

    @abstractmethod
    async def get(self, user_id: str, *, for_update: bool = False) -> Optional[Wallet]:
        """根据用户ID获取钱包；for_update 时加行锁"""
        pass

    @abstractmethod
    async def create(self, wallet: Wallet) -> Wallet:
        """创建钱包"""
        pass

    @abstractmethod
    async def update(self, wallet: Wallet) -> Wallet:
        """更新钱包金额字段"""
        pass


class TransactionRepository(ABC):
    """账本流水仓储抽象接口"""

    @abstractmethod
    async def add(self, transaction: LedgerTransaction) -> LedgerTransaction:
        """追加流水"""
        pass

    @abstractmethod
    async def get_by_id(self, transaction_id: str, *, for_update: bool = False) -> Optional[LedgerTransaction]:
        """根据ID获取流水"""
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, key: str) -> Optional[LedgerTransaction]:
        """根据幂等键获取流水"""
        pass

    @abstractmethod
    async def update(self, transaction: LedgerTransaction) -> LedgerTransaction:
        """更新流水状态"""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> List[LedgerTransaction]:
        """获取与用户相关的流水（付款方或收款方），按创建时间倒序"""
        pass

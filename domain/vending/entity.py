"""
售货机领域实体 - 包含单飞出货的核心业务规则
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from domain.common.exceptions import InvalidVendRequestException


class VendPhase(str, Enum):
    """售货机阶段"""

    IDLE = "idle"
    VENDING = "vending"


def validate_items(items: Any) -> list[int]:
    """业务规则：出货商品必须是非空的整数编号序列。"""
    if not isinstance(items, (list, tuple)) or len(items) == 0:
        raise InvalidVendRequestException()
    for item in items:
        # bool 是 int 的子类，这里显式排除
        if isinstance(item, bool) or not isinstance(item, int):
            raise InvalidVendRequestException()
    return list(items)


@dataclass
class MachineState:
    """售货机状态实体 - 每个应用实例唯一

    Invariants:
      - IDLE: items 为空，started_at / pending_completion 未设置
      - VENDING: items 非空，started_at / pending_completion 已设置
    """

    phase: VendPhase = VendPhase.IDLE
    items: list[int] = field(default_factory=list)
    started_at: Optional[datetime] = None
    started_monotonic: Optional[float] = None
    # 已调度的完成任务句柄，仅用于关闭时取消及识别过期触发
    pending_completion: Optional[Any] = None

    @property
    def is_vending(self) -> bool:
        return self.phase is VendPhase.VENDING

    def start(self, items: list[int], pending_completion: Any) -> None:
        """业务规则：空闲 → 出货"""
        if self.is_vending:
            raise ValueError("machine is already vending")
        if not items:
            raise ValueError("items must not be empty")
        self.phase = VendPhase.VENDING
        self.items = list(items)
        self.started_at = datetime.now(timezone.utc)
        self.started_monotonic = time.monotonic()
        self.pending_completion = pending_completion

    def finish(self) -> list[int]:
        """业务规则：出货 → 空闲，返回本轮出货的商品"""
        vended = list(self.items)
        self.phase = VendPhase.IDLE
        self.items = []
        self.started_at = None
        self.started_monotonic = None
        self.pending_completion = None
        return vended

    def elapsed_ms(self) -> int:
        if self.started_monotonic is None:
            return 0
        return max(0, int((time.monotonic() - self.started_monotonic) * 1000))

"""领域层业务异常定义，供领域与应用层使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class InvalidVendRequestException(BusinessException):
    def __init__(
        self,
        message: str = "Invalid items array. Expected non-empty array of item numbers.",
    ):
        super().__init__(
            code=BusinessCode.PARAM_ERROR,
            message=message,
            error_type="InvalidRequest",
            field="items",
        )


class VendingBusyException(BusinessException):
    def __init__(self, current_items: list[int]):
        self.current_items = list(current_items)
        super().__init__(
            code=BusinessCode.VENDING_BUSY,
            message="Vending machine is currently busy",
            error_type="Busy",
            details={"currentItems": list(current_items)},
        )

"""
统一响应格式定义

售货机控制器沿用上游点单应用约定的扁平结构：
``{"success": bool, "message": str, ...上下文字段}``
"""
from typing import Optional


def error_response(message: str, details: Optional[dict] = None) -> dict:
    """
    创建错误响应

    Args:
        message: 错误消息
        details: 追加到响应体的上下文字段（如 currentItems）

    Returns:
        dict: 响应体
    """
    body: dict = {"success": False, "message": message}
    if details:
        body.update(details)
    return body

from typing import Any, Dict, Optional


def success(data: Any, count: Optional[int] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "data": data}
    if count is not None:
        body["count"] = count
    return body


def failure(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}

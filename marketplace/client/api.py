from typing import Any, Dict, List, Optional

import httpx


class ApiError(Exception):
    """Non-2xx response, or a response whose envelope reports failure."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class MessagingClient:
    """Async wrapper around the messaging REST endpoints.

    Returns the unwrapped ``data`` of the response envelope. No request
    deadline is applied unless ``timeout`` is given.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "MessagingClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def list_conversations(self) -> List[Dict[str, Any]]:
        payload = await self._request("GET", "/conversations")
        return payload["data"]

    async def get_conversation(self, conversation_id: str) -> Dict[str, Any]:
        payload = await self._request("GET", f"/conversations/{conversation_id}")
        return payload["data"]

    async def create_conversation(self, receiver_id: str, initial_message: str, item_id: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"receiverId": receiver_id, "initialMessage": initial_message}
        if item_id:
            body["itemId"] = item_id
        payload = await self._request("POST", "/conversations", json=body)
        return payload["data"]

    async def list_messages(self, conversation_id: str) -> List[Dict[str, Any]]:
        payload = await self._request("GET", f"/messages/conversation/{conversation_id}")
        return payload["data"]

    async def mark_read(self, conversation_id: str) -> int:
        payload = await self._request("POST", f"/conversations/{conversation_id}/read")
        return int(payload.get("modifiedCount", 0))

    async def send_message(self, conversation_id: str, content: str) -> Dict[str, Any]:
        payload = await self._request("POST", "/messages", json={"conversationId": conversation_id, "content": content})
        return payload["data"]

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = await self._http.request(method, path, json=json)
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = {}
        if response.is_error or not payload.get("success", False):
            raise ApiError(response.status_code, payload.get("error") or response.reason_phrase)
        return payload

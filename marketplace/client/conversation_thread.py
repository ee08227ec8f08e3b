import asyncio
import logging
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from marketplace.client.api import MessagingClient
from marketplace.client.polling import Poller
from marketplace.client.state import REQUEST_ERRORS, ViewStatus, describe_error


logger = logging.getLogger(__name__)

THREAD_POLL_SECONDS = 7.0

Notify = Callable[[str, str], None]


class ConversationThreadView:
    """Local projection of one open conversation thread.

    Switching conversations discards everything held for the previous one.
    Polls re-fetch the full message list and replace it; the server copy is
    authoritative.
    """

    def __init__(
        self,
        client: MessagingClient,
        on_notify: Optional[Notify] = None,
        on_messages_changed: Optional[Callable[[List[Dict[str, Any]]], None]] = None,
        poll_interval: float = THREAD_POLL_SECONDS,
    ) -> None:
        self._client = client
        self._on_notify = on_notify
        self._on_messages_changed = on_messages_changed
        self._poll_interval = poll_interval
        self._poller: Optional[Poller] = None
        self._token = 0

        self.conversation_id: Optional[str] = None
        self.conversation: Optional[Dict[str, Any]] = None
        self.messages: List[Dict[str, Any]] = []
        self.status = ViewStatus.IDLE
        self.loading = False
        self.fetching = False
        self.sending = False
        self.error = ""
        self.draft = ""

    @property
    def polling(self) -> bool:
        return self._poller is not None and self._poller.running

    def set_conversation(self, conversation_id: Optional[str]) -> Optional[asyncio.Task]:
        """Switch to ``conversation_id`` (or to nothing) and start loading it.

        Returns the load task, or None when no conversation is selected.
        """
        self._teardown()
        self.conversation_id = conversation_id
        self.conversation = None
        self.error = ""
        self._replace_messages([])

        if conversation_id is None:
            self.status = ViewStatus.IDLE
            return None

        self.loading = True
        self.status = ViewStatus.LOADING
        task = asyncio.get_running_loop().create_task(self._load(self._token, conversation_id))
        self._poller = Poller(
            self._poll_interval, partial(self.poll, self._token), name=f"thread-poll-{conversation_id}"
        )
        self._poller.start()
        return task

    def unmount(self) -> None:
        self._teardown()

    async def poll(self, token: Optional[int] = None) -> None:
        """Re-fetch the open thread's messages.

        ``token`` pins the tick to the selection that scheduled it; a tick
        from a torn-down selection does nothing.
        """
        if token is None:
            token = self._token
        conversation_id = self.conversation_id
        if token != self._token or conversation_id is None or self._poller is None:
            return
        if self.loading or self.fetching:
            logger.debug("Skipping message poll for %s, previous fetch still in flight", conversation_id)
            return
        try:
            await self._fetch_messages(token, conversation_id)
        except REQUEST_ERRORS as exc:
            logger.warning("Polling: error fetching messages for %s: %s", conversation_id, describe_error(exc))

    async def send(self, text: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Send the draft (or ``text``) and append the server's copy on success.

        On failure the draft is kept and ``on_notify`` receives an error; the
        send is not retried.
        """
        if text is not None:
            self.draft = text
        conversation_id = self.conversation_id
        if conversation_id is None or self.sending or not self.draft.strip():
            return None

        token = self._token
        self.sending = True
        try:
            message = await self._client.send_message(conversation_id, self.draft)
        except REQUEST_ERRORS as exc:
            if token == self._token:
                self._notify(f"Failed to send message: {describe_error(exc)}", "error")
            return None
        finally:
            if token == self._token:
                self.sending = False

        if token != self._token:
            return None
        self._replace_messages(self.messages + [message])
        self.draft = ""
        return message

    async def _load(self, token: int, conversation_id: str) -> None:
        try:
            conversation = await self._client.get_conversation(conversation_id)
            if token != self._token:
                return
            self.conversation = conversation
            await self._fetch_messages(token, conversation_id)
        except REQUEST_ERRORS as exc:
            if token != self._token:
                return
            logger.error("Error loading conversation %s: %s", conversation_id, describe_error(exc))
            self.error = "Failed to load conversation. Please try again later."
            self.conversation = None
            self._replace_messages([])
            self.status = ViewStatus.ERROR
            # the error is terminal for this selection
            if self._poller is not None:
                self._poller.cancel()
                self._poller = None
        else:
            if token == self._token:
                self.status = ViewStatus.READY
        finally:
            if token == self._token:
                self.loading = False

    async def _fetch_messages(self, token: int, conversation_id: str) -> None:
        self.fetching = True
        try:
            messages = await self._client.list_messages(conversation_id)
            if token != self._token:
                return
            self._replace_messages(messages)
            if messages:
                try:
                    await self._client.mark_read(conversation_id)
                except REQUEST_ERRORS as exc:
                    logger.warning("Error marking messages as read for %s: %s", conversation_id, describe_error(exc))
        finally:
            if token == self._token:
                self.fetching = False

    def _teardown(self) -> None:
        self._token += 1
        if self._poller is not None:
            self._poller.cancel()
            self._poller = None
        self.fetching = False
        self.sending = False
        self.loading = False

    def _replace_messages(self, messages: List[Dict[str, Any]]) -> None:
        self.messages = list(messages)
        if self._on_messages_changed is not None:
            self._on_messages_changed(self.messages)

    def _notify(self, message: str, level: str) -> None:
        if self._on_notify is not None:
            self._on_notify(message, level)
        else:
            logger.warning(message)

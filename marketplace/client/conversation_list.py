import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from marketplace.client.api import MessagingClient
from marketplace.client.polling import Poller
from marketplace.client.state import REQUEST_ERRORS, ViewStatus, describe_error


logger = logging.getLogger(__name__)

LIST_POLL_SECONDS = 15.0


class ConversationListView:
    """Local projection of the caller's conversation list.

    The list is replaced wholesale on every successful fetch. Only a failed
    initial load is surfaced through ``error``; poll failures are logged.
    """

    def __init__(
        self,
        client: MessagingClient,
        on_select: Optional[Callable[[str], None]] = None,
        poll_interval: float = LIST_POLL_SECONDS,
    ) -> None:
        self._client = client
        self._on_select = on_select
        self._poll_interval = poll_interval
        self._poller: Optional[Poller] = None
        # bumped on unmount; results fetched under an older token are dropped
        self._token = 0

        self.conversations: List[Dict[str, Any]] = []
        self.status = ViewStatus.IDLE
        self.loading = False
        self.fetching = False
        self.error = ""

    @property
    def show_spinner(self) -> bool:
        return self.loading and not self.conversations

    @property
    def mounted(self) -> bool:
        return self._poller is not None

    def mount(self) -> asyncio.Task:
        """Start the initial load and the recurring poll; returns the load task."""
        self.unmount()
        self.error = ""
        self.status = ViewStatus.IDLE
        initial = asyncio.get_running_loop().create_task(self.refresh(polling=False))
        self._poller = Poller(self._poll_interval, lambda: self.refresh(polling=True), name="conversation-list-poll")
        self._poller.start()
        return initial

    def unmount(self) -> None:
        self._token += 1
        if self._poller is not None:
            self._poller.cancel()
            self._poller = None
        self.fetching = False
        self.loading = False

    def select(self, conversation_id: str) -> None:
        if self._on_select is not None:
            self._on_select(conversation_id)

    async def refresh(self, polling: bool = False) -> None:
        if polling and not self.mounted:
            return
        if polling and self.fetching:
            logger.debug("Skipping conversation poll, previous fetch still in flight")
            return

        token = self._token
        self.fetching = True
        if not polling:
            self.loading = True
            self.status = ViewStatus.LOADING
        try:
            conversations = await self._client.list_conversations()
        except REQUEST_ERRORS as exc:
            if token != self._token:
                return
            if polling:
                logger.warning("Polling error for conversations: %s", describe_error(exc))
            else:
                logger.error("Error fetching conversations: %s", describe_error(exc))
                self.error = "Failed to load conversations. Please try again later."
                self.status = ViewStatus.ERROR
        else:
            if token != self._token:
                return
            self.conversations = conversations
            if self.status != ViewStatus.ERROR:
                self.status = ViewStatus.READY
        finally:
            if token == self._token:
                self.fetching = False
                if not polling:
                    self.loading = False

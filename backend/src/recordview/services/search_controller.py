"""Search-as-you-type controller for external lookup fields.

Each lookup field moves through ``idle -> typing -> searching`` and ends in
``resolved``, ``cancelled`` or ``failed``. Keystrokes are debounced per field,
and every request is tagged with a token so that only the latest request of
a field may write its options. Fields never share timers or tokens.
"""

import logging
from typing import Optional

from recordview.core.config import Settings
from recordview.core.errors import LookupSearchError
from recordview.models.edit_session import EditSession, LookupFieldState, LookupStatus
from recordview.services.data_access.base import DataAccessService
from recordview.services.lookup_resolver import resolve_lookup_target
from recordview.core.timers import DebounceTimer

logger = logging.getLogger(__name__)

SEARCH_TIMER = "search"
BLUR_TIMER = "blur"


def _timer_key(kind: str, field_name: str) -> str:
    return f"{kind}:{field_name}"


class LookupSearchController:
    """Debounced, token-guarded lookup searches for one edit session."""

    def __init__(self, session: EditSession, data_access: DataAccessService, settings: Settings):
        self.session = session
        self.data_access = data_access
        self.settings = settings

    def _timer(self, kind: str, field_name: str) -> DebounceTimer:
        key = _timer_key(kind, field_name)
        timer = self.session.timer(key)
        if timer is None:
            if kind == SEARCH_TIMER:
                timer = DebounceTimer(
                    self.settings.lookup_debounce_seconds,
                    lambda: self.search(field_name),
                    name=key,
                )
            else:
                timer = DebounceTimer(
                    self.settings.lookup_blur_grace_seconds,
                    lambda: self._close_dropdown(field_name),
                    name=key,
                )
            self.session.set_timer(key, timer)
        return timer

    def _cancel_timer(self, kind: str, field_name: str) -> None:
        timer = self.session.timer(_timer_key(kind, field_name))
        if timer is not None:
            timer.cancel()

    @staticmethod
    def _next_token(state: LookupFieldState) -> int:
        state.pending_request_token += 1
        return state.pending_request_token

    def on_input(self, field_name: str, text: Optional[str]) -> None:
        """Handle a keystroke: clear the selection and restart the debounce."""
        if self.session.closed:
            return
        state = self.session.lookup(field_name)
        state.search_term = text or ""
        state.selected_label = None
        state.dropdown_open = True
        state.status = LookupStatus.TYPING
        self.session.working[field_name] = ""
        self._next_token(state)
        self._cancel_timer(BLUR_TIMER, field_name)
        self._timer(SEARCH_TIMER, field_name).start()

    async def search(self, field_name: str) -> LookupStatus:
        """Run the lookup query for a field's current search term.

        Returns the outcome of this particular request; a superseded request
        reports ``cancelled`` and leaves the field untouched.
        """
        if self.session.closed:
            return LookupStatus.CANCELLED
        state = self.session.lookup(field_name)
        token = self._next_token(state)
        target = resolve_lookup_target(self.session.descriptor(field_name))
        if not target:
            state.options = []
            state.status = LookupStatus.RESOLVED
            return state.status

        search_term = state.search_term.strip()
        state.status = LookupStatus.SEARCHING
        logger.info(f"Searching {target} for {search_term!r} (field {field_name}, token {token})")
        try:
            options = await self.data_access.search_lookup_candidates(
                target, search_term, self.settings.lookup_max_results
            )
        except Exception as e:
            if self._is_stale(state, token):
                return LookupStatus.CANCELLED
            error = LookupSearchError(str(e) or None)
            logger.warning(f"Lookup search for {field_name} failed: {error.message}")
            state.options = []
            state.status = LookupStatus.FAILED
            return state.status

        if self._is_stale(state, token):
            logger.warning(f"Discarding superseded lookup result for {field_name} (token {token})")
            return LookupStatus.CANCELLED

        state.options = list(options or [])
        state.status = LookupStatus.RESOLVED
        return state.status

    def _is_stale(self, state: LookupFieldState, token: int) -> bool:
        return self.session.closed or token != state.pending_request_token

    def select(self, field_name: str, value: str, label: Optional[str] = None) -> None:
        """Write a chosen option into the working copy."""
        if self.session.closed:
            return
        state = self.session.lookup(field_name)
        self._cancel_timer(SEARCH_TIMER, field_name)
        self._next_token(state)
        self.session.working[field_name] = value
        state.selected_label = label or value
        state.search_term = ""
        state.options = []
        state.dropdown_open = False
        state.status = LookupStatus.IDLE
        self.session.field_errors.pop(field_name, None)

    def clear(self, field_name: str) -> None:
        """Reset value, display, search term and options of a field."""
        if self.session.closed:
            return
        state = self.session.lookup(field_name)
        self._cancel_timer(SEARCH_TIMER, field_name)
        self._next_token(state)
        self.session.working[field_name] = ""
        state.selected_label = None
        state.search_term = ""
        state.options = []
        state.dropdown_open = False
        state.status = LookupStatus.IDLE

    def blur(self, field_name: str) -> None:
        """Close the dropdown after a grace delay so a click-to-select lands first."""
        if self.session.closed:
            return
        self._timer(BLUR_TIMER, field_name).start()

    async def _close_dropdown(self, field_name: str) -> None:
        if not self.session.closed:
            self.session.lookup(field_name).dropdown_open = False

    async def wait(self, field_name: Optional[str] = None) -> None:
        """Wait for pending timers and in-flight searches."""
        if field_name is None:
            timers = self.session.timers()
        else:
            timers = [
                timer
                for timer in (
                    self.session.timer(_timer_key(SEARCH_TIMER, field_name)),
                    self.session.timer(_timer_key(BLUR_TIMER, field_name)),
                )
                if timer is not None
            ]
        for timer in timers:
            await timer.wait()

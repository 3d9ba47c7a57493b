from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Optional, Protocol

from .config import Config
from .download import DownloadArtifact, build_download
from .encoding import encode
from .errors import GenerationError, IOFailure
from .prompts import GenerationRequest
from .session import SessionState
from .styles import LOADING_MESSAGES, find_by_name, get_style
from .validation import UploadCandidate, validate
from . import ws_protocol


logger = logging.getLogger(__name__)

Notify = Callable[[dict[str, Any]], Awaitable[None]]

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred."
BUSY_MESSAGE = "Please wait for the current portrait to finish."


class PortraitClient(Protocol):
    async def generate(self, base64_image: str, mime_type: str, prompt: str) -> str: ...


async def _discard(_msg: dict[str, Any]) -> None:
    return None


class SessionController:
    """
    Owns one SessionState and is the only thing that mutates it.

    idle -> preview -> generating -> result | preview (with error); reset() returns to idle
    from anywhere. Every transition publishes a ``state`` message through ``notify``.
    """

    def __init__(self, cfg: Config, client: PortraitClient, notify: Optional[Notify] = None):
        self._cfg = cfg
        self._client = client
        self._notify: Notify = notify or _discard
        self.state = SessionState()
        self._ticker: Optional[asyncio.Task[None]] = None

    @property
    def ticker_active(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    async def _publish(self) -> None:
        await self._notify(ws_protocol.state(self.state.snapshot()))

    # ---- status ticker -------------------------------------------------

    def _start_ticker(self, token: int) -> None:
        self._stop_ticker()

        async def _loop() -> None:
            idx = 0
            while True:
                await asyncio.sleep(self._cfg.status_interval_s)
                if token != self.state.generation_token or not self.state.generating:
                    return
                idx = (idx + 1) % len(LOADING_MESSAGES)
                self.state.loading_message = LOADING_MESSAGES[idx]
                await self._notify(ws_protocol.status("generating", self.state.loading_message))

        self._ticker = asyncio.create_task(_loop())

    def _stop_ticker(self) -> None:
        if self._ticker is not None and not self._ticker.done():
            self._ticker.cancel()
        self._ticker = None

    # ---- transitions ---------------------------------------------------

    async def select_file(self, candidate: Optional[UploadCandidate]) -> bool:
        st = self.state
        if st.generating:
            # one-off notice; the session error belongs to the running attempt
            await self._notify(ws_protocol.error(BUSY_MESSAGE))
            return False

        res = validate(candidate)
        if not res.ok:
            logger.info("upload rejected: %s", res.reason)
            st.error = res.reason
            await self._publish()
            return False
        assert candidate is not None
        candidate = replace(candidate, mime_type=res.mime_type)

        token = st.generation_token
        try:
            encoded = await encode(candidate)
        except IOFailure as e:
            if token != st.generation_token:
                return False
            st.candidate = None
            st.encoded = None
            st.error = str(e)
            await self._publish()
            return False

        if token != st.generation_token:
            # reset while reading; drop it
            return False

        st.candidate = candidate
        st.encoded = encoded
        st.result_b64 = None
        st.error = None
        logger.info("upload accepted name=%r mime=%s size=%s", candidate.name, candidate.mime_type, candidate.size)
        await self._publish()
        return True

    async def select_style(self, style_id: str) -> bool:
        style = get_style(style_id) or find_by_name(style_id)
        if style is None:
            self.state.error = f"Unknown style: {style_id}"
            await self._publish()
            return False
        self.state.style = style
        await self._publish()
        return True

    async def set_custom_prompt(self, text: str) -> None:
        self.state.custom_prompt = text or ""
        await self._publish()

    async def dismiss_error(self) -> None:
        self.state.error = None
        await self._publish()

    async def generate(self) -> bool:
        """
        Run one generation. Returns True when a result was stored.

        No-op while another generation is in flight or when nothing has been uploaded.
        """
        st = self.state
        if st.generating:
            logger.debug("generate ignored: already generating")
            return False
        if st.encoded is None:
            return False

        request = GenerationRequest.build(st.encoded, st.style, st.custom_prompt)
        token = st.bump_generation_token()

        st.generating = True
        st.error = None
        st.result_b64 = None
        st.loading_message = LOADING_MESSAGES[0]
        self._start_ticker(token)

        logger.info("generation started style=%s token=%s", st.style.id, token)
        result: Optional[str] = None
        err: Optional[str] = None
        try:
            await self._notify(ws_protocol.status("generating", st.loading_message))
            await self._publish()
            result = await self._client.generate(
                request.image.data, request.image.mime_type, request.prompt
            )
        except GenerationError as e:
            err = str(e)
        except Exception as e:
            logger.exception("generation crashed: %s", e)
            err = UNEXPECTED_ERROR_MESSAGE
        finally:
            if token == st.generation_token:
                self._stop_ticker()
                st.generating = False

        if token != st.generation_token:
            # superseded by reset; discard
            logger.info("discarding stale generation token=%s", token)
            return False

        if err is not None:
            st.error = err
            await self._notify(ws_protocol.status("ready", ""))
            await self._publish()
            return False

        st.result_b64 = result
        st.error = None
        await self._notify(ws_protocol.status("ready", ""))
        await self._publish()
        return True

    async def reset(self) -> None:
        # Does not abort an outstanding remote call; its result is dropped by token.
        self.state.bump_generation_token()
        self._stop_ticker()
        self.state.reset()
        await self._notify(ws_protocol.status("idle", ""))
        await self._publish()

    def download(self) -> Optional[DownloadArtifact]:
        if self.state.result_b64 is None:
            return None
        return build_download(self.state.result_b64, self._cfg.download_filename)

    def close(self) -> None:
        """Session is going away: stop the ticker and make any in-flight result stale."""
        self.state.bump_generation_token()
        self._stop_ticker()

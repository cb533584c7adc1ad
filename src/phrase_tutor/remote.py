"""Client for the remote check-answer endpoint."""
import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any

import httpx

from phrase_tutor.errors import RemoteCheckError
from phrase_tutor.models import AnswerMode, ComparisonResult, Direction
from phrase_tutor.session import Session, card_mode, current_phrase, is_current_checked, record_check

logger = logging.getLogger(__name__)

CHECK_ANSWER_PATH = "/learn/check-answer"


class RemoteAnswerChecker:
    """HTTP client for a phrase tutor service.

    A failed call raises RemoteCheckError, which callers must treat as a
    transient failure and never as a wrong answer.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RemoteAnswerChecker":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def check_answer(
        self,
        phrase_id: str,
        user_answer: str,
        direction: Direction,
        use_contains_mode: bool = False,
    ) -> ComparisonResult:
        payload = {
            "phrase_id": phrase_id,
            "user_answer": user_answer,
            "direction": direction.value,
            "use_contains_mode": use_contains_mode,
        }
        try:
            response = await self._client.post(CHECK_ANSWER_PATH, json=payload)
            response.raise_for_status()
            data = response.json()
            return ComparisonResult(
                is_correct=bool(data["is_correct"]),
                normalized_user=str(data["normalized_user"]),
                normalized_correct=str(data["normalized_correct"]),
            )
        except httpx.HTTPStatusError as e:
            logger.warning("Check-answer for %s failed with HTTP %d", phrase_id, e.response.status_code)
            raise RemoteCheckError(
                f"Check failed (HTTP {e.response.status_code})", status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.warning("Check-answer for %s failed: %s", phrase_id, e)
            raise RemoteCheckError(f"Check failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteCheckError("Check failed: malformed response") from e


async def check_remote(session: Session, checker: RemoteAnswerChecker) -> Session:
    """Check the current card through the remote comparator.

    On failure the error propagates and the given session is left as it was,
    so the card stays unchecked and can be retried.
    """
    phrase = current_phrase(session)
    if phrase is None or is_current_checked(session):
        return session
    draft = session.answers.get(phrase.id)
    result = await checker.check_answer(
        phrase.id,
        draft.user_answer if draft else "",
        session.direction,
        use_contains_mode=card_mode(session, phrase) == AnswerMode.CONTAINS,
    )
    return record_check(session, phrase.id, result)


async def corroborate(session: Session, checker: RemoteAnswerChecker, phrase_id: str) -> bool:
    """Compare a locally checked card with the remote result. The session is not changed."""
    card = session.answers.get(phrase_id)
    phrase = next((p for p in session.current_round if p.id == phrase_id), None)
    if card is None or phrase is None or not card.is_checked:
        raise ValueError(f"Phrase {phrase_id} has not been checked in this round")
    remote = await checker.check_answer(
        phrase_id,
        card.user_answer,
        session.direction,
        use_contains_mode=card_mode(session, phrase) == AnswerMode.CONTAINS,
    )
    local = ComparisonResult(card.is_correct, card.normalized_user, card.normalized_correct)
    if remote != local:
        logger.warning("Remote check for %s disagrees with local result: %s vs %s", phrase_id, remote, local)
        return False
    return True


class RemoteCorroborator:
    """Corroborates local results on a background event loop.

    The interactive loop stays synchronous: `submit` returns at once and the
    remote call runs on a private loop thread. Disagreements and failures are
    logged. Pending calls can be cancelled at any time and are cancelled on
    close.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, name="phrase-tutor-remote", daemon=True)
        self._thread.start()
        self._checker = RemoteAnswerChecker(base_url, timeout, transport)
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def submit(self, session: Session, phrase_id: str) -> Future:
        future = asyncio.run_coroutine_threadsafe(corroborate(session, self._checker, phrase_id), self._loop)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._finished)
        return future

    def _finished(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning("Remote corroboration failed: %s", error)

    def cancel_pending(self) -> int:
        with self._lock:
            pending = list(self._pending)
        return sum(1 for future in pending if future.cancel())

    def close(self) -> None:
        self.cancel_pending()
        asyncio.run_coroutine_threadsafe(self._checker.close(), self._loop).result()
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()

    def __enter__(self) -> "RemoteCorroborator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

import time
import logging
import threading
from typing import Callable, Optional, TypeVar

from .errors import PollCancelledError, PollTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def poll(
        fetch: Callable[[int], Optional[T]],
        *,
        interval: float = 1.0,
        max_attempts: int = 60,
        sleep: Callable[[float], None] = time.sleep,
        cancel: Optional[threading.Event] = None,
        label: str = "operation",
) -> T:
    """
    Общий цикл поллинга: пауза → запрос → проверка.

    fetch(attempt) возвращает результат, когда задача готова, и None, пока она
    ещё выполняется. Ошибки внутри fetch не глотаются и прерывают цикл.
    После max_attempts попыток без результата бросается PollTimeoutError.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        if cancel is not None and cancel.is_set():
            raise PollCancelledError(f"{label} polling cancelled after {attempt - 1} attempts")

        sleep(interval)

        if cancel is not None and cancel.is_set():
            raise PollCancelledError(f"{label} polling cancelled after {attempt - 1} attempts")

        result = fetch(attempt)
        if result is not None:
            return result
        logger.debug(f"🔄 [Poll] {label}: attempt {attempt}/{max_attempts} still pending")

    raise PollTimeoutError(
        f"{label} timed out after {max_attempts} attempts ({max_attempts * interval:.0f}s)"
    )

"""
Retry Policy - retry có giới hạn với exponential backoff
"""

import logging
import threading
import time
from typing import Callable, Optional, Tuple, Type, TypeVar
from models.errors import RetryCancelled, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """
    Chạy một thao tác đơn lẻ, retry khi gặp lỗi tạm thời.

    Delay trước lần retry thứ n (bắt đầu từ 0) = base_delay * 2**n,
    với mặc định: 1s, 2s, 4s.
    """

    def __init__(self,
                 max_retries: int = 3,
                 base_delay: float = 1.0,
                 retry_on: Tuple[Type[BaseException], ...] = (StoreError,),
                 sleep: Optional[Callable[[float], None]] = None):
        if max_retries < 0:
            raise ValueError("max_retries phải >= 0")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.retry_on = retry_on
        self.sleep = sleep

    def delays(self):
        return [self.base_delay * (2 ** n) for n in range(self.max_retries)]

    def _wait(self, delay: float, cancel_event: Optional[threading.Event]) -> None:
        if self.sleep is not None:
            self.sleep(delay)
        elif cancel_event is not None:
            cancel_event.wait(delay)
        else:
            time.sleep(delay)

    def run(self, operation: Callable[[], T],
            cancel_event: Optional[threading.Event] = None,
            description: str = "operation") -> T:
        """
        Args:
            operation: Thao tác cần chạy (một lần gọi, không tự retry)
            cancel_event: Khi được set, không retry thêm nữa
            description: Tên thao tác dùng trong log

        Returns:
            Kết quả của operation

        Raises:
            RetryCancelled: Nếu bị hủy trong lúc chờ retry
            Lỗi cuối cùng của operation nếu đã hết số lần retry
        """
        delays = self.delays()
        attempt = 0
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise RetryCancelled(f"{description} cancelled")
            try:
                return operation()
            except self.retry_on as e:
                if attempt >= len(delays):
                    logger.error("%s failed after %d retries: %s", description, attempt, e)
                    raise
                delay = delays[attempt]
                attempt += 1
                logger.warning("Retrying %s in %.1fs (attempt %d/%d): %s",
                               description, delay, attempt, self.max_retries, e)
                self._wait(delay, cancel_event)

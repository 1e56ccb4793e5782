"""
Errors - phân loại lỗi của luồng thi
"""


class QuizError(Exception):
    """Lỗi gốc của hệ thống"""


class StoreError(QuizError):
    """Lỗi I/O từ store (đọc/ghi answer log, câu hỏi, profile)"""


class FetchFailure(QuizError):
    """Không tải được câu hỏi hoặc tiến độ - lỗi cố định cho lần tải đó"""


class LeaderboardFetchFailure(QuizError):
    """Không tải được bảng xếp hạng sau khi đã retry"""


class RetryCancelled(QuizError):
    """Người gọi không còn cần kết quả, dừng retry"""


class SubmitPersistFailure(QuizError):
    """Không lưu được câu trả lời, state không thay đổi"""


class ValidationFailure(QuizError):
    """Input không hợp lệ, bị từ chối trước khi có I/O"""


class InvalidTransition(QuizError):
    """Hành động không hợp lệ ở trạng thái hiện tại của phiên"""

import json
import logging
import os
import sys
import argparse
from typing import Dict, List, Optional
from models.errors import StoreError
from services.answer_log_loader_service import AnswerLogLoaderService
from api.shared import create_store

logger = logging.getLogger(__name__)


def export_answer_log(store, only_correct: bool = False, page_size: int = 100,
                      total_limit: Optional[int] = None) -> List[Dict]:
    """
    Lấy answer log từ store và chuyển sang dạng row

    Args:
        store: CompetitionStore nguồn
        only_correct: Chỉ lấy các câu trả lời đúng
        page_size: Số bản ghi mỗi lần
        total_limit: Tổng số bản ghi muốn lấy

    Returns:
        Danh sách row (giống format của bảng user_answers)
    """
    records = AnswerLogLoaderService.fetch_all_answers(
        store,
        only_correct=only_correct,
        page_size=page_size,
        total_limit=total_limit,
    )
    return [AnswerLogLoaderService.record_to_row(r) for r in records]


def main(argv=None):
    parser = argparse.ArgumentParser(description='Xuất answer log của cuộc thi ra file JSON')
    parser.add_argument('--backend', type=str, default=None,
                        help='Store backend: memory | json | rest (mặc định theo QUIZ_STORE_BACKEND)')
    parser.add_argument('--limit', type=int, default=None,
                        help='Tổng số bản ghi muốn lấy (mặc định: tất cả)')
    parser.add_argument('--page-size', type=int, default=100,
                        help='Số bản ghi mỗi trang (mặc định: 100)')
    parser.add_argument('--only-correct', action='store_true',
                        help='Chỉ xuất các câu trả lời đúng')
    parser.add_argument('--output', type=str, default='answer_log.json',
                        help='Tên file output (mặc định: answer_log.json)')

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    try:
        store = create_store(args.backend)
        rows = export_answer_log(
            store,
            only_correct=args.only_correct,
            page_size=args.page_size,
            total_limit=args.limit,
        )
    except (StoreError, ValueError) as e:
        logger.error("Export failed: %s", e)
        return 1

    with open(args.output, 'w', encoding='utf-8') as f:
        json.dump(rows, f, ensure_ascii=False, indent=2)

    file_size = os.path.getsize(args.output) / 1024
    logger.info("Saved %d records to %s (%.1f KB)", len(rows), args.output, file_size)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Analysis Service - Phân tích và thống kê câu hỏi từ answer log
"""

from typing import Dict, Iterable, List
from collections import defaultdict
import numpy as np
from models.answer_record import AnswerRecord
from models.question import Question

class AnalysisService:
    """
    Service để phân tích và thống kê câu hỏi
    """

    @staticmethod
    def _empty_time_stats() -> Dict[str, float]:
        return {
            "min": 0.0,
            "max": 0.0,
            "mean": 0.0,
            "median": 0.0,
        }

    @staticmethod
    def analyze_questions(questions: List[Question],
                          answers: Iterable[AnswerRecord]) -> Dict:
        """
        Thống kê từng câu hỏi

        Args:
            questions: Danh sách câu hỏi theo ordinal
            answers: Answer log (mỗi cặp user/câu hỏi một bản ghi)

        Returns:
            Dict chứa thống kê tổng và theo từng câu hỏi
        """
        answers_by_question = defaultdict(list)
        for answer in answers:
            answers_by_question[answer.question_id].append(answer)

        question_stats = []
        for q in questions:
            rows = answers_by_question.get(q.question_id, [])
            correct_rows = [r for r in rows if r.is_correct]
            attempted_users = {r.user_id for r in rows}
            correct_users = {r.user_id for r in correct_rows}

            if correct_rows:
                times = np.array([r.time_taken_seconds for r in correct_rows], dtype=float)
                time_stats = {
                    "min": float(np.min(times)),
                    "max": float(np.max(times)),
                    "mean": float(np.mean(times)),
                    "median": float(np.median(times)),
                }
            else:
                time_stats = AnalysisService._empty_time_stats()

            accuracy = len(correct_users) / len(attempted_users) if attempted_users else 0.0

            question_stats.append({
                "question_id": q.question_id,
                "ordinal": q.ordinal,
                "attempted_users": len(attempted_users),
                "correct_users": len(correct_users),
                "accuracy": accuracy,
                "solve_time": time_stats,
            })

        if question_stats:
            accuracies = np.array([s["accuracy"] for s in question_stats])
            hardest = min(question_stats, key=lambda s: (s["accuracy"], s["ordinal"]))
            overall = {
                "mean_accuracy": float(np.mean(accuracies)),
                "hardest_question_id": hardest["question_id"],
            }
        else:
            overall = {
                "mean_accuracy": 0.0,
                "hardest_question_id": None,
            }

        participants = {a.user_id for rows in answers_by_question.values() for a in rows}

        return {
            "total_questions": len(questions),
            "total_participants": len(participants),
            "overall": overall,
            "questions": question_stats,
        }

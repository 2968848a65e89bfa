"""
Scoring Service
Points for quiz battle answers
"""


class ScoringService:
    """Service for scoring answers"""

    @staticmethod
    def is_correct(question, answer):
        """Case- and whitespace-insensitive comparison with the correct answer"""
        if answer is None:
            return False
        return str(answer).strip().lower() == question.correct_answer.strip().lower()

    @staticmethod
    def calculate_points(is_correct, time_taken, time_limit, base_points):
        """
        Calculate points for an answer

        A correct answer at the instant the question opens earns base_points,
        one at the deadline earns half. Wrong or late answers earn nothing.
        """
        if not is_correct:
            return 0

        if not time_limit or time_limit <= 0:
            return base_points

        if time_taken > time_limit:
            return 0

        time_ratio = max(time_taken, 0) / time_limit
        return int(round(base_points * (1 - time_ratio / 2)))

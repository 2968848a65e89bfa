"""
Leaderboard Service
Handles leaderboard generation for contests and quiz battles
"""
from classengage.models import ContestImage, QuizAnswer, QuizPlayer
from classengage.extensions import db
from sqlalchemy import func


class LeaderboardService:
    """Leaderboard generation"""

    @staticmethod
    def get_image_leaderboard(contest_id=None, limit=10):
        """
        Top voted images, across all contests or within one

        Returns:
            list: dicts with rank (1-based), medal, and the image fields
        """
        query = ContestImage.query
        if contest_id is not None:
            query = query.filter_by(contest_id=contest_id)
        images = query.order_by(ContestImage.votes.desc(), ContestImage.id.asc()).limit(limit).all()

        medals = {0: "🥇", 1: "🥈", 2: "🥉"}
        return [
            dict(image.to_dict(), rank=i + 1, medal=medals.get(i))
            for i, image in enumerate(images)
        ]

    @staticmethod
    def build_quiz_leaderboard(room_id):
        """
        Full quiz battle leaderboard

        Returns:
            list: dicts with rank, name, score, correct, answered, time
        """
        stats = db.session.query(
            QuizAnswer.player_id,
            func.sum(
                db.case((QuizAnswer.is_correct == True, 1), else_=0)  # noqa: E712
            ).label("correct_count"),
            func.count(QuizAnswer.id).label("answered"),
            func.sum(QuizAnswer.time_taken).label("total_time"),
        ).filter_by(room_id=room_id).group_by(QuizAnswer.player_id).all()
        by_player = {row.player_id: row for row in stats}

        players = QuizPlayer.query.filter_by(room_id=room_id)\
            .order_by(QuizPlayer.score.desc(), QuizPlayer.joined_at.asc(), QuizPlayer.id.asc()).all()

        board = []
        for i, player in enumerate(players):
            row = by_player.get(player.id)
            board.append({
                "rank": i + 1,
                "player_id": player.id,
                "name": player.name,
                "score": player.score,
                "correct": int(row.correct_count or 0) if row else 0,
                "answered": int(row.answered or 0) if row else 0,
                "time": round(float(row.total_time or 0), 2) if row else 0,
            })
        return board

    @staticmethod
    def get_question_leaderboard(room_id, question_id, limit=10):
        """Fastest correct answers for one question"""
        answers = db.session.query(QuizAnswer, QuizPlayer.name)\
            .join(QuizPlayer, QuizPlayer.id == QuizAnswer.player_id)\
            .filter(
                QuizAnswer.room_id == room_id,
                QuizAnswer.question_id == question_id,
                QuizAnswer.is_correct == True,  # noqa: E712
            ).order_by(
                QuizAnswer.time_taken.asc(),
                QuizAnswer.submitted_at.asc()
            ).limit(limit).all()

        return [
            {
                "rank": i + 1,
                "name": name,
                "time_taken": answer.time_taken,
                "points": answer.points
            }
            for i, (answer, name) in enumerate(answers)
        ]

"""
Quiz Battle Service
Room lifecycle for host-driven quiz battles
"""
import csv
import io
import json
import logging
import random

from flask import current_app
from sqlalchemy.exc import IntegrityError

from classengage.errors import Conflict, NotFound, PermissionDenied, ValidationError
from classengage.extensions import db, socketio
from classengage.models import QuizAnswer, QuizPlayer, QuizQuestion, QuizRoom
from classengage.services.class_service import ClassService
from classengage.services.leaderboard_service import LeaderboardService
from classengage.services.scoring_service import ScoringService
from classengage.utils import as_utc, generate_room_code, now_utc

logger = logging.getLogger(__name__)

OPEN_STATES = ('setup', 'lobby', 'active')


class QuizBattleService:
    """Quiz battle rooms"""

    # ================= QUESTIONS =================

    @staticmethod
    def parse_csv(text):
        """
        Parse quiz questions from CSV text

        Columns: question, correctAnswer, wrong1, wrong2, wrong3, imageUrl

        Returns:
            list: dicts with question, correct_answer, answers, image_url
        """
        reader = csv.DictReader(io.StringIO(text or ''))
        questions = []
        for row in reader:
            row = {(k or '').strip(): (v or '').strip() for k, v in row.items() if k}
            if not any(row.values()):
                continue
            if not row.get('question') or not row.get('correctAnswer'):
                raise ValidationError('CSV must have "question" and "correctAnswer" columns.')

            answers = [
                a for a in (row.get('correctAnswer'), row.get('wrong1'), row.get('wrong2'), row.get('wrong3'))
                if a
            ]
            if len(answers) < 2:
                raise ValidationError(f'Question "{row["question"]}" has fewer than 2 answers.')

            questions.append({
                'question': row['question'],
                'correct_answer': row['correctAnswer'],
                'answers': answers,
                'image_url': row.get('imageUrl') or None,
            })

        if not questions:
            raise ValidationError("The CSV file contains no questions.")
        return questions

    @staticmethod
    def load_questions(room, questions):
        """Replace the room's questions; answers are shuffled once here"""
        if room.state != 'setup':
            raise ValidationError("Questions can only be loaded before the quiz starts.")

        for existing in list(room.questions):
            room.questions.remove(existing)

        for order, q in enumerate(questions):
            answers = list(q['answers'])
            random.shuffle(answers)
            room.questions.append(QuizQuestion(
                order=order,
                question=q['question'],
                correct_answer=q['correct_answer'],
                answers=json.dumps(answers),
                image_url=q.get('image_url'),
            ))
        db.session.commit()
        logger.info("Loaded %d questions into room %s", len(questions), room.code)
        return room.questions

    # ================= ROOMS =================

    @staticmethod
    def _unique_room_code():
        while True:
            code = generate_room_code()
            clash = QuizRoom.query.filter(
                QuizRoom.code == code, QuizRoom.state.in_(OPEN_STATES)
            ).first()
            if not clash:
                return code

    @staticmethod
    def create_room(host, class_id=None, time_limit=None, base_points=None,
                    auto_advance=False, show_leaderboard=True):
        if class_id is not None:
            ClassService.get_owned_class(host, class_id)

        config = current_app.config
        room = QuizRoom(
            code=QuizBattleService._unique_room_code(),
            host_id=host.id,
            class_id=class_id,
            state='setup',
        )
        QuizBattleService._apply_settings(
            room,
            time_limit if time_limit is not None else config.get('QUIZ_DEFAULT_TIME_LIMIT', 30),
            base_points if base_points is not None else config.get('QUIZ_DEFAULT_BASE_POINTS', 1000),
            auto_advance,
            show_leaderboard,
        )
        db.session.add(room)
        db.session.commit()
        logger.info("Quiz room %s created by user %s", room.code, host.id)
        return room

    @staticmethod
    def _apply_settings(room, time_limit, base_points, auto_advance, show_leaderboard):
        try:
            time_limit = int(time_limit)
            base_points = int(base_points)
        except (TypeError, ValueError):
            raise ValidationError("Time limit and base points must be numbers.")
        if time_limit <= 0 or base_points <= 0:
            raise ValidationError("Time limit and base points must be positive.")
        room.time_limit = time_limit
        room.base_points = base_points
        room.auto_advance = bool(auto_advance)
        room.show_leaderboard = bool(show_leaderboard)

    @staticmethod
    def update_settings(room, **settings):
        if room.state != 'setup':
            raise ValidationError("Settings can only be changed before the quiz starts.")
        current = room.settings()
        current.update({k: v for k, v in settings.items() if v is not None})
        QuizBattleService._apply_settings(
            room, current['time_limit'], current['base_points'],
            current['auto_advance'], current['show_leaderboard']
        )
        db.session.commit()
        return room

    @staticmethod
    def get_host_room(host, room_id):
        room = db.session.get(QuizRoom, room_id)
        if room is None:
            raise NotFound("Quiz room not found.")
        if room.host_id != host.id:
            raise PermissionDenied("You are not the host of this quiz.")
        return room

    @staticmethod
    def find_room(code, include_ended=False):
        """Most recent room with this code; ended rooms only when asked"""
        code = (code or '').strip()
        room = None
        if code:
            query = QuizRoom.query.filter(QuizRoom.code == code)
            if not include_ended:
                query = query.filter(QuizRoom.state.in_(OPEN_STATES))
            room = query.order_by(QuizRoom.id.desc()).first()
        if room is None:
            raise NotFound("Quiz room not found.")
        return room

    @staticmethod
    def open_lobby(room):
        if room.state != 'setup':
            raise ValidationError("The lobby is already open.")
        if not room.questions:
            raise ValidationError("Load at least one question before opening the lobby.")
        room.state = 'lobby'
        db.session.commit()
        QuizBattleService.broadcast(room)
        return room

    # ================= PLAYERS =================

    @staticmethod
    def join(code, name, participant_key):
        """Join a room in lobby or active state; rejoining returns the same player"""
        name = (name or '').strip()
        if not name or not (code or '').strip():
            raise ValidationError("Please enter your name and a room code.")

        room = QuizBattleService.find_room(code)
        if room.state not in ('lobby', 'active'):
            raise ValidationError("This quiz is not accepting players yet.")

        existing = QuizPlayer.query.filter_by(room_id=room.id, name=name).first()
        if existing:
            if existing.participant_key == participant_key:
                return room, existing
            raise Conflict("That name is already taken in this room.")

        player = QuizPlayer(room_id=room.id, name=name, participant_key=participant_key, score=0)
        db.session.add(player)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("That name is already taken in this room.")

        logger.info("Player %s joined room %s", name, room.code)
        QuizBattleService.broadcast(room)
        return room, player

    @staticmethod
    def get_player(room, participant_key):
        player = QuizPlayer.query.filter_by(room_id=room.id, participant_key=participant_key).first()
        if player is None:
            raise PermissionDenied("Join the room before answering.")
        return player

    # ================= GAME FLOW =================

    @staticmethod
    def next_question(room):
        """Show the next question, or end the quiz after the last one"""
        if room.state not in ('lobby', 'active'):
            raise ValidationError("The quiz is not running.")

        next_index = (room.current_index if room.current_index is not None else -1) + 1
        if next_index >= len(room.questions):
            return QuizBattleService.end_quiz(room)

        room.state = 'active'
        room.current_index = next_index
        room.question_started_at = now_utc()
        db.session.commit()
        logger.info("Room %s: question %d of %d", room.code, next_index + 1, len(room.questions))
        QuizBattleService.broadcast(room)
        return room

    @staticmethod
    def end_quiz(room):
        room.state = 'ended'
        db.session.commit()
        logger.info("Room %s finished", room.code)
        QuizBattleService.broadcast(room)
        return room

    @staticmethod
    def elapsed_seconds(room):
        if room.question_started_at is None:
            return 0.0
        return max((now_utc() - as_utc(room.question_started_at)).total_seconds(), 0.0)

    @staticmethod
    def submit_answer(room, player, answer):
        """
        Record the player's answer to the current question

        Returns:
            dict: is_correct, points, total score, correct answer
        """
        if room.state != 'active':
            raise ValidationError("The quiz is not running.")
        question = room.current_question
        if question is None:
            raise ValidationError("There is no open question.")

        if QuizAnswer.query.filter_by(question_id=question.id, player_id=player.id).first():
            raise Conflict("You have already answered this question.")

        elapsed = QuizBattleService.elapsed_seconds(room)
        is_correct = ScoringService.is_correct(question, answer)
        points = ScoringService.calculate_points(is_correct, elapsed, room.time_limit, room.base_points)

        db.session.add(QuizAnswer(
            room_id=room.id,
            question_id=question.id,
            player_id=player.id,
            answer=answer,
            is_correct=is_correct,
            time_taken=round(elapsed, 3),
            points=points,
            submitted_at=now_utc(),
        ))
        player.score = (player.score or 0) + points
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("You have already answered this question.")

        result = {
            'is_correct': is_correct,
            'points': points,
            'score': player.score,
            'correct_answer': question.correct_answer,
        }

        if room.auto_advance and QuizBattleService._round_complete(room, question, elapsed):
            QuizBattleService.next_question(room)
        else:
            QuizBattleService.broadcast(room)
        return result

    @staticmethod
    def _round_complete(room, question, elapsed):
        if elapsed > room.time_limit:
            return True
        answered = QuizAnswer.query.filter_by(question_id=question.id).count()
        return answered >= QuizPlayer.query.filter_by(room_id=room.id).count()

    # ================= PAYLOADS =================

    @staticmethod
    def state_payload(room):
        """Room snapshot shared with host and players"""
        question = room.current_question
        payload = {
            'room_id': room.id,
            'code': room.code,
            'state': room.state,
            'settings': room.settings(),
            'question_index': room.current_index,
            'total_questions': len(room.questions),
            'players': [p.to_dict() for p in sorted(room.players, key=lambda p: p.id)],
            'question': None,
            'time_left': None,
            'leaderboard': None,
        }
        if room.state == 'active' and question is not None:
            payload['question'] = question.to_public_dict()
            payload['time_left'] = max(room.time_limit - QuizBattleService.elapsed_seconds(room), 0)
        if room.show_leaderboard or room.state == 'ended':
            payload['leaderboard'] = LeaderboardService.build_quiz_leaderboard(room.id)
        return payload

    @staticmethod
    def broadcast(room):
        socketio.emit('quiz_room_updated', QuizBattleService.state_payload(room), room=f'quiz:{room.code}')

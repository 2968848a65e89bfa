"""
Quiz Battle Models
Host-driven quiz rooms, their CSV-loaded questions, players and answers
"""
from classengage.extensions import db
from datetime import datetime, timezone
import json


def now_utc():
    return datetime.now(timezone.utc)


ROOM_STATES = ('setup', 'lobby', 'active', 'ended')


class QuizRoom(db.Model):
    """Quiz battle room"""
    __tablename__ = 'quiz_room'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(4), nullable=False, index=True)
    host_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('classroom.id'), nullable=True)
    state = db.Column(db.String(20), nullable=False, default='setup')

    # Settings
    time_limit = db.Column(db.Integer, default=30)  # seconds per question
    base_points = db.Column(db.Integer, default=1000)
    auto_advance = db.Column(db.Boolean, default=False)
    show_leaderboard = db.Column(db.Boolean, default=True)

    # Progress; -1 means no question shown yet
    current_index = db.Column(db.Integer, default=-1)
    question_started_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=now_utc)

    questions = db.relationship(
        'QuizQuestion',
        backref='room',
        lazy=True,
        cascade='all, delete-orphan',
        order_by='QuizQuestion.order',
    )
    players = db.relationship('QuizPlayer', backref='room', lazy=True, cascade='all, delete-orphan')

    def __repr__(self):
        return f'<QuizRoom {self.code} ({self.state})>'

    @property
    def current_question(self):
        index = self.current_index if self.current_index is not None else -1
        if 0 <= index < len(self.questions):
            return self.questions[index]
        return None

    def settings(self):
        return {
            'time_limit': self.time_limit,
            'base_points': self.base_points,
            'auto_advance': bool(self.auto_advance),
            'show_leaderboard': bool(self.show_leaderboard),
        }


class QuizQuestion(db.Model):
    """Question with one correct answer among 2-4"""
    __tablename__ = 'quiz_question'

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('quiz_room.id'), nullable=False, index=True)
    order = db.Column(db.Integer, default=0)
    question = db.Column(db.Text, nullable=False)
    correct_answer = db.Column(db.String(200), nullable=False)
    answers = db.Column(db.Text)  # JSON list, shuffled
    image_url = db.Column(db.Text)

    def __repr__(self):
        return f'<QuizQuestion {self.id}: {self.question[:50]}>'

    def get_answers(self):
        if self.answers:
            try:
                return json.loads(self.answers)
            except ValueError:
                pass
        return [self.correct_answer]

    def to_public_dict(self):
        """Question as shown to players, without the correct answer"""
        return {
            'id': self.id,
            'order': self.order,
            'question': self.question,
            'answers': self.get_answers(),
            'image_url': self.image_url,
        }


class QuizPlayer(db.Model):
    """Participant in a quiz room"""
    __tablename__ = 'quiz_player'

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('quiz_room.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    participant_key = db.Column(db.String(64), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    joined_at = db.Column(db.DateTime, default=now_utc)

    __table_args__ = (
        db.UniqueConstraint('room_id', 'name', name='unique_player_name_per_room'),
    )

    def __repr__(self):
        return f'<QuizPlayer {self.name}: {self.score}>'

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'score': self.score}


class QuizAnswer(db.Model):
    """A player's answer to one question"""
    __tablename__ = 'quiz_answer'

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('quiz_room.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('quiz_question.id'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('quiz_player.id'), nullable=False, index=True)
    answer = db.Column(db.String(200))
    is_correct = db.Column(db.Boolean, nullable=False)
    time_taken = db.Column(db.Float, nullable=False, default=0)  # seconds
    points = db.Column(db.Integer, default=0)
    submitted_at = db.Column(db.DateTime, default=now_utc)

    __table_args__ = (
        db.UniqueConstraint('question_id', 'player_id', name='unique_answer_per_question'),
    )

    def __repr__(self):
        return f'<QuizAnswer Q{self.question_id} by player {self.player_id}>'

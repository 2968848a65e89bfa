"""
Live Poll Models
One poll session per class, holding many polls of which at most one is active
"""
from classengage.extensions import db
from datetime import datetime, timezone


def now_utc():
    return datetime.now(timezone.utc)


class PollSession(db.Model):
    """Live poll session hosted by a class trainer"""
    __tablename__ = 'poll_session'

    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classroom.id'), unique=True, nullable=False)
    code = db.Column(db.String(10), unique=True, nullable=False, index=True)
    active_poll_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=now_utc)

    polls = db.relationship(
        'Poll',
        backref='session',
        lazy=True,
        cascade='all, delete-orphan',
        order_by='Poll.created_at.desc()',
    )

    def __repr__(self):
        return f'<PollSession {self.code}>'

    @property
    def active_poll(self):
        if self.active_poll_id is None:
            return None
        for poll in self.polls:
            if poll.id == self.active_poll_id:
                return poll
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'class_id': self.class_id,
            'code': self.code,
            'active_poll_id': self.active_poll_id,
            'polls': [poll.to_dict() for poll in self.polls],
        }


class Poll(db.Model):
    """Single question with 2-5 options"""
    __tablename__ = 'poll'

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('poll_session.id'), nullable=False, index=True)
    question = db.Column(db.Text, nullable=False)
    is_active = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=now_utc)

    options = db.relationship(
        'PollOption',
        backref='poll',
        lazy=True,
        cascade='all, delete-orphan',
        order_by='PollOption.position',
    )
    ballots = db.relationship('PollBallot', lazy=True, cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Poll {self.question[:50]}>'

    def total_votes(self):
        return sum(option.votes for option in self.options)

    def to_dict(self):
        return {
            'id': self.id,
            'question': self.question,
            'is_active': bool(self.is_active),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'options': [option.to_dict() for option in self.options],
        }


class PollOption(db.Model):
    """Answer option with its running vote count"""
    __tablename__ = 'poll_option'

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(db.Integer, db.ForeignKey('poll.id'), nullable=False, index=True)
    position = db.Column(db.Integer, default=0)
    text = db.Column(db.String(200), nullable=False)
    votes = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<PollOption {self.text}: {self.votes}>'

    def to_dict(self):
        return {'id': self.id, 'text': self.text, 'votes': self.votes}


class PollBallot(db.Model):
    """Records that a participant voted in a poll"""
    __tablename__ = 'poll_ballot'

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(db.Integer, db.ForeignKey('poll.id'), nullable=False, index=True)
    voter_key = db.Column(db.String(64), nullable=False)
    option_id = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=now_utc)

    __table_args__ = (
        db.UniqueConstraint('poll_id', 'voter_key', name='unique_ballot_per_poll'),
    )

    def __repr__(self):
        return f'<PollBallot {self.voter_key} on poll {self.poll_id}>'

"""
Contest Models
PicPick photo contests, their images and per-user daily vote records
"""
from classengage.extensions import db
from datetime import datetime, timezone
import json


def now_utc():
    return datetime.now(timezone.utc)


IMAGE_SHAPES = ('circle', 'square')


class Contest(db.Model):
    """Time-bounded photo voting campaign, class-scoped or global"""
    __tablename__ = 'contest'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    creator_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    creator_name = db.Column(db.String(100))
    status = db.Column(db.String(20), default='active')
    image_shape = db.Column(db.String(20), default='circle')
    start_date = db.Column(db.DateTime, nullable=True)
    end_date = db.Column(db.DateTime, nullable=True)

    # NULL class means a global contest
    class_id = db.Column(db.Integer, db.ForeignKey('classroom.id'), nullable=True, index=True)

    has_password = db.Column(db.Boolean, default=False)
    password_hash = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=now_utc)

    def __repr__(self):
        return f'<Contest {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'creator_id': self.creator_id,
            'creator_name': self.creator_name,
            'status': self.status,
            'image_shape': self.image_shape,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'class_id': self.class_id,
            'has_password': bool(self.has_password),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class ContestImage(db.Model):
    """Photo entered into a contest"""
    __tablename__ = 'contest_image'

    id = db.Column(db.Integer, primary_key=True)
    contest_id = db.Column(db.Integer, db.ForeignKey('contest.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100), default='')
    url = db.Column(db.Text)
    votes = db.Column(db.Integer, nullable=False, default=0)
    uploader_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=now_utc)

    def __repr__(self):
        return f'<ContestImage {self.name}: {self.votes} votes>'

    def to_dict(self):
        return {
            'id': self.id,
            'contest_id': self.contest_id,
            'name': self.name,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'url': self.url,
            'votes': self.votes,
            'uploader_id': self.uploader_id,
        }


class UserVote(db.Model):
    """Daily vote quota of one user in one contest"""
    __tablename__ = 'user_vote'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    contest_id = db.Column(db.Integer, db.ForeignKey('contest.id'), nullable=False, index=True)
    votes_today = db.Column(db.Integer, nullable=False, default=0)
    last_voted_date = db.Column(db.String(10))  # YYYY-MM-DD
    image_votes = db.Column(db.Text, default='{}')  # JSON: image id -> count

    __table_args__ = (
        db.UniqueConstraint('user_id', 'contest_id', name='unique_vote_record_per_contest'),
    )

    def __repr__(self):
        return f'<UserVote user={self.user_id} contest={self.contest_id}>'

    def get_image_votes(self):
        """Image vote counts keyed by image id (as string)"""
        if self.image_votes:
            try:
                return json.loads(self.image_votes)
            except ValueError:
                pass
        return {}

    def set_image_votes(self, counts):
        self.image_votes = json.dumps(counts)

    def reset(self, votes, today):
        self.votes_today = votes
        self.last_voted_date = today
        self.set_image_votes({})

    def to_dict(self):
        return {
            'votes_left': self.votes_today,
            'last_voted_date': self.last_voted_date,
            'image_votes': self.get_image_votes(),
        }

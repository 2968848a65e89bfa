"""
Activity Models
Randomizer wheel and Tickr countdown timer state
"""
from classengage.extensions import db
from datetime import datetime, timezone
import json


def now_utc():
    return datetime.now(timezone.utc)


class RandomizerWheel(db.Model):
    """Spinning wheel of entries, one per class (or per owner without a class)"""
    __tablename__ = 'randomizer_wheel'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classroom.id'), nullable=True, index=True)
    entries = db.Column(db.Text, default='[]')  # JSON list of strings
    history = db.Column(db.Text, default='[]')  # JSON list of past winners
    last_result = db.Column(db.String(200))
    updated_at = db.Column(db.DateTime, default=now_utc, onupdate=now_utc)

    def __repr__(self):
        return f'<RandomizerWheel {self.id}>'

    def get_entries(self):
        try:
            return json.loads(self.entries or '[]')
        except ValueError:
            return []

    def set_entries(self, entries):
        self.entries = json.dumps(entries)

    def get_history(self):
        try:
            return json.loads(self.history or '[]')
        except ValueError:
            return []

    def set_history(self, history):
        self.history = json.dumps(history)

    def to_dict(self):
        return {
            'id': self.id,
            'class_id': self.class_id,
            'entries': self.get_entries(),
            'last_result': self.last_result,
            'history': self.get_history(),
        }


class ActivityTimer(db.Model):
    """Shared countdown timer"""
    __tablename__ = 'activity_timer'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classroom.id'), nullable=True, index=True)
    minutes = db.Column(db.Integer, default=5)
    seconds = db.Column(db.Integer, default=0)
    total_seconds = db.Column(db.Integer, default=300)

    # Remaining seconds when the timer last stopped or started
    remaining_seconds = db.Column(db.Integer, default=300)
    started_at = db.Column(db.DateTime)
    status = db.Column(db.String(20), default='idle')
    message = db.Column(db.String(200), default="Time's Up! Great job!")
    updated_at = db.Column(db.DateTime, default=now_utc, onupdate=now_utc)

    def __repr__(self):
        return f'<ActivityTimer {self.id} ({self.status})>'

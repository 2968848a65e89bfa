"""
Classroom Models
Classes, enrollments and trainer notes about learners
"""
from classengage.extensions import db
from datetime import datetime, timezone


def now_utc():
    return datetime.now(timezone.utc)


class_learners = db.Table(
    'class_learners',
    db.Column('class_id', db.Integer, db.ForeignKey('classroom.id'), primary_key=True),
    db.Column('user_id', db.Integer, db.ForeignKey('user.id'), primary_key=True),
)


class Classroom(db.Model):
    """Class owned by one trainer"""
    __tablename__ = 'classroom'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    trainer_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    invite_code = db.Column(db.String(10), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=now_utc)

    trainer = db.relationship('User', foreign_keys=[trainer_id])
    learners = db.relationship(
        'User',
        secondary=class_learners,
        backref=db.backref('classes', lazy='select'),
        lazy='select',
    )

    def __repr__(self):
        return f'<Classroom {self.name}>'

    def has_learner(self, user):
        return any(learner.id == user.id for learner in self.learners)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'trainer_id': self.trainer_id,
            'trainer_name': self.trainer.display_name if self.trainer else None,
            'invite_code': self.invite_code,
            'learner_count': len(self.learners),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class StudentNote(db.Model):
    """Trainer note about a learner within a class"""
    __tablename__ = 'student_note'

    id = db.Column(db.Integer, primary_key=True)
    note = db.Column(db.Text, nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classroom.id'), nullable=False, index=True)
    trainer_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    trainer_name = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, default=now_utc)

    def __repr__(self):
        return f'<StudentNote {self.id} for {self.student_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'note': self.note,
            'student_id': self.student_id,
            'class_id': self.class_id,
            'trainer_name': self.trainer_name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

"""
Class Service
Classes, enrollment by invite code, rosters and learner notes
"""
import logging

from classengage.errors import NotFound, PermissionDenied, ValidationError
from classengage.extensions import db
from classengage.models import Classroom, StudentNote, User
from classengage.utils import generate_join_code

logger = logging.getLogger(__name__)

TOOLS = (
    ('picpick', "PicPick Contest", "Run a photo contest where learners vote for their favorite images."),
    ('randomizer', "Randomizer Wheel", "A spinning wheel to randomly select learners or topics."),
    ('livevote', "Live Polls", "Engage your class with real-time polls and see instant results."),
    ('quizbattle', "Quiz Battle", "Test knowledge with fun, interactive quizzes and leaderboards."),
    ('tickr', "Class Timer", "A shared timer for activities, breaks, or presentations."),
)

STUDENT_TOOLS = ('picpick',)


class ClassService:
    """Class management"""

    @staticmethod
    def _unique_invite_code():
        while True:
            code = generate_join_code(6)
            if not Classroom.query.filter_by(invite_code=code).first():
                return code

    @staticmethod
    def get_class(class_id):
        classroom = db.session.get(Classroom, class_id)
        if classroom is None:
            raise NotFound("The requested class does not exist.")
        return classroom

    @staticmethod
    def get_owned_class(trainer, class_id):
        classroom = ClassService.get_class(class_id)
        if classroom.trainer_id != trainer.id:
            raise PermissionDenied("You do not have access to this class.")
        return classroom

    @staticmethod
    def create_class(trainer, name):
        name = (name or '').strip()
        if not name:
            raise ValidationError("Class name is required.")
        classroom = Classroom(
            name=name,
            trainer_id=trainer.id,
            invite_code=ClassService._unique_invite_code(),
        )
        db.session.add(classroom)
        db.session.commit()
        logger.info("Class %s created by trainer %s", classroom.id, trainer.id)
        return classroom

    @staticmethod
    def list_trainer_classes(trainer):
        return Classroom.query.filter_by(trainer_id=trainer.id)\
            .order_by(Classroom.created_at.desc(), Classroom.id.desc()).all()

    @staticmethod
    def list_student_classes(student):
        return sorted(student.classes, key=lambda c: c.id)

    @staticmethod
    def join_class(student, invite_code):
        """
        Enroll a learner using a class invite code

        Returns:
            dict: success flag, message and the class
        """
        code = (invite_code or '').strip().upper()
        if not code:
            raise ValidationError("Please enter an invite code.")
        if student.role != 'student':
            raise PermissionDenied("Only learners can join classes.")

        classroom = Classroom.query.filter_by(invite_code=code).first()
        if classroom is None:
            raise NotFound("Invalid invite code.")

        if classroom.has_learner(student):
            return {
                'success': True,
                'message': f'You are already enrolled in "{classroom.name}".',
                'class': classroom,
            }

        classroom.learners.append(student)
        db.session.commit()
        logger.info("User %s joined class %s", student.id, classroom.id)
        return {
            'success': True,
            'message': f'Successfully joined "{classroom.name}".',
            'class': classroom,
        }

    @staticmethod
    def dashboard(user, class_id):
        """Class header plus the tools available to this user"""
        classroom = ClassService.get_class(class_id)
        if classroom.trainer_id == user.id:
            tools = TOOLS
            view = 'trainer'
        elif classroom.has_learner(user):
            tools = [t for t in TOOLS if t[0] in STUDENT_TOOLS]
            view = 'student'
        else:
            raise PermissionDenied("You are not enrolled in this class.")

        return {
            'class': classroom.to_dict(),
            'view': view,
            'tools': [
                {'key': key, 'title': title, 'description': description}
                for key, title, description in tools
            ],
        }

    @staticmethod
    def roster(trainer, class_id):
        classroom = ClassService.get_owned_class(trainer, class_id)
        learners = sorted(classroom.learners, key=lambda u: (u.display_name or '').lower())
        return classroom, learners

    @staticmethod
    def _learner_in_class(classroom, student_id):
        student = db.session.get(User, student_id)
        if student is None:
            raise NotFound("Student not found.")
        if not classroom.has_learner(student):
            raise NotFound("Student is not enrolled in this class.")
        return student

    @staticmethod
    def add_note(trainer, class_id, student_id, text):
        if trainer.role != 'trainer':
            raise PermissionDenied("Only trainers can add notes.")
        text = (text or '').strip()
        if not text:
            raise ValidationError("Note cannot be empty.")

        classroom = ClassService.get_owned_class(trainer, class_id)
        student = ClassService._learner_in_class(classroom, student_id)

        note = StudentNote(
            note=text,
            student_id=student.id,
            class_id=classroom.id,
            trainer_id=trainer.id,
            trainer_name=trainer.display_name,
        )
        db.session.add(note)
        db.session.commit()
        return note

    @staticmethod
    def student_detail(trainer, class_id, student_id):
        """Learner profile with notes, newest first"""
        classroom = ClassService.get_owned_class(trainer, class_id)
        student = ClassService._learner_in_class(classroom, student_id)
        notes = StudentNote.query.filter_by(student_id=student.id, class_id=classroom.id)\
            .order_by(StudentNote.created_at.desc(), StudentNote.id.desc()).all()
        return student, notes

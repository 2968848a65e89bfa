"""
Models Package
Exports all database models
"""
from classengage.models.user import User
from classengage.models.classroom import Classroom, StudentNote
from classengage.models.contest import Contest, ContestImage, UserVote
from classengage.models.poll import PollSession, Poll, PollOption, PollBallot
from classengage.models.quiz_battle import QuizRoom, QuizQuestion, QuizPlayer, QuizAnswer
from classengage.models.activity import RandomizerWheel, ActivityTimer

__all__ = [
    'User', 'Classroom', 'StudentNote',
    'Contest', 'ContestImage', 'UserVote',
    'PollSession', 'Poll', 'PollOption', 'PollBallot',
    'QuizRoom', 'QuizQuestion', 'QuizPlayer', 'QuizAnswer',
    'RandomizerWheel', 'ActivityTimer',
]

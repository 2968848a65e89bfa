"""
Services Package
"""
from classengage.services.account_service import AccountService
from classengage.services.class_service import ClassService
from classengage.services.contest_service import ContestService
from classengage.services.image_service import ImageService
from classengage.services.vote_service import VoteService
from classengage.services.leaderboard_service import LeaderboardService
from classengage.services.scoring_service import ScoringService
from classengage.services.poll_service import PollService
from classengage.services.quiz_battle_service import QuizBattleService
from classengage.services.randomizer_service import RandomizerService
from classengage.services.timer_service import TimerService

__all__ = [
    'AccountService', 'ClassService', 'ContestService', 'ImageService',
    'VoteService', 'LeaderboardService', 'ScoringService', 'PollService',
    'QuizBattleService', 'RandomizerService', 'TimerService',
]

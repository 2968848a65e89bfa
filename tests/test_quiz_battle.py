import io
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from classengage.errors import ValidationError
from classengage.services import QuizBattleService, ScoringService
from tests.base import AppTestCase

CSV_TEXT = (
    "question,correctAnswer,wrong1,wrong2,wrong3,imageUrl\n"
    "Capital of France?,Paris,Rome,Berlin,Madrid,\n"
    "2 + 2?,4,3,5,,https://example.com/sum.png\n"
)

T0 = datetime(2024, 5, 1, 9, 0, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


class ScoringTests(unittest.TestCase):
    def test_points_decay_to_half_at_deadline(self):
        self.assertEqual(ScoringService.calculate_points(True, 0, 30, 1000), 1000)
        self.assertEqual(ScoringService.calculate_points(True, 15, 30, 1000), 750)
        self.assertEqual(ScoringService.calculate_points(True, 30, 30, 1000), 500)

    def test_wrong_or_late_answers_score_nothing(self):
        self.assertEqual(ScoringService.calculate_points(False, 1, 30, 1000), 0)
        self.assertEqual(ScoringService.calculate_points(True, 31, 30, 1000), 0)


class CsvParsingTests(unittest.TestCase):
    def test_parse_rows(self):
        questions = QuizBattleService.parse_csv(CSV_TEXT)
        self.assertEqual(len(questions), 2)
        self.assertEqual(questions[0]["answers"], ["Paris", "Rome", "Berlin", "Madrid"])
        self.assertEqual(questions[1]["answers"], ["4", "3", "5"])
        self.assertEqual(questions[1]["image_url"], "https://example.com/sum.png")
        self.assertIsNone(questions[0]["image_url"])

    def test_missing_columns(self):
        with self.assertRaises(ValidationError):
            QuizBattleService.parse_csv("prompt,answer\nHi,there\n")

    def test_empty_file(self):
        with self.assertRaises(ValidationError):
            QuizBattleService.parse_csv("question,correctAnswer\n")


class QuizBattleFlowTests(AppTestCase):
    def setUp(self):
        super().setUp()
        self.host = self.make_user("host@example.com", role="trainer")
        self.login(self.host)
        self.clock = Clock(T0)
        patcher = patch("classengage.services.quiz_battle_service.now_utc", side_effect=self.clock)
        patcher.start()
        self.addCleanup(patcher.stop)

    def _room(self, **settings):
        resp = self.client.post("/api/quizbattle/rooms", json=settings)
        self.assertEqual(resp.status_code, 201)
        room = resp.get_json()
        self.assertEqual(room["state"], "setup")
        loaded = self.client.post(f"/api/quizbattle/rooms/{room['room_id']}/questions", json={"csv": CSV_TEXT})
        self.assertEqual(loaded.get_json()["message"], "Loaded 2 questions.")
        return room

    def _player(self, code, name):
        client = self.app.test_client()
        resp = client.post("/api/quizbattle/join", json={"code": code, "name": name})
        self.assertEqual(resp.status_code, 200, resp.get_json())
        return client

    def test_full_game(self):
        room = self._room(time_limit=30, base_points=1000)
        room_id, code = room["room_id"], room["code"]
        self.assertEqual(len(code), 4)

        lobby = self.client.post(f"/api/quizbattle/rooms/{room_id}/lobby").get_json()
        self.assertEqual(lobby["state"], "lobby")
        self.assertEqual(lobby["message"], f"Room code: {code}")

        ana = self._player(code, "Ana")
        ben = self._player(code, "Ben")

        started = self.client.post(f"/api/quizbattle/rooms/{room_id}/next").get_json()
        self.assertEqual(started["state"], "active")
        self.assertEqual(started["question_index"], 0)
        first = started["questions"][0]
        self.assertEqual(sorted(first["answers"]), ["Berlin", "Madrid", "Paris", "Rome"])

        player_view = ana.get(f"/api/quizbattle/play/{code}").get_json()
        self.assertNotIn("correct_answer", player_view["question"])

        self.clock.advance(6)
        result = ana.post(f"/api/quizbattle/play/{code}/answer", json={"answer": "paris"}).get_json()
        self.assertTrue(result["is_correct"])
        self.assertEqual(result["points"], 900)

        again = ana.post(f"/api/quizbattle/play/{code}/answer", json={"answer": "Paris"})
        self.assertEqual(again.status_code, 409)

        wrong = ben.post(f"/api/quizbattle/play/{code}/answer", json={"answer": "Rome"}).get_json()
        self.assertFalse(wrong["is_correct"])
        self.assertEqual(wrong["points"], 0)
        self.assertEqual(wrong["correct_answer"], "Paris")

        fastest = self.client.get(
            f"/api/quizbattle/rooms/{room_id}/questions/{first['id']}/leaderboard"
        ).get_json()["leaderboard"]
        self.assertEqual([(r["name"], r["points"]) for r in fastest], [("Ana", 900)])

        self.client.post(f"/api/quizbattle/rooms/{room_id}/next")
        self.clock.advance(31)
        late = ben.post(f"/api/quizbattle/play/{code}/answer", json={"answer": "4"}).get_json()
        self.assertTrue(late["is_correct"])
        self.assertEqual(late["points"], 0)

        ended = self.client.post(f"/api/quizbattle/rooms/{room_id}/next").get_json()
        self.assertEqual(ended["state"], "ended")

        final = ana.get(f"/api/quizbattle/play/{code}").get_json()
        self.assertEqual(final["state"], "ended")
        board = final["leaderboard"]
        self.assertEqual([(r["name"], r["score"], r["correct"]) for r in board],
                         [("Ana", 900, 1), ("Ben", 0, 1)])

    def test_auto_advance_after_everyone_answers(self):
        room = self._room(auto_advance=True)
        self.client.post(f"/api/quizbattle/rooms/{room['room_id']}/lobby")
        solo = self._player(room["code"], "Solo")
        self.client.post(f"/api/quizbattle/rooms/{room['room_id']}/next")

        solo.post(f"/api/quizbattle/play/{room['code']}/answer", json={"answer": "Paris"})
        state = solo.get(f"/api/quizbattle/play/{room['code']}").get_json()
        self.assertEqual(state["question_index"], 1)

    def test_late_answer_scores_nothing_and_advances(self):
        room = self._room(auto_advance=True, time_limit=30)
        room_id, code = room["room_id"], room["code"]
        self.client.post(f"/api/quizbattle/rooms/{room_id}/lobby")
        ana = self._player(code, "Ana")
        self._player(code, "Ben")
        self.client.post(f"/api/quizbattle/rooms/{room_id}/next")

        self.clock.advance(31)
        late = ana.post(f"/api/quizbattle/play/{code}/answer", json={"answer": "Paris"}).get_json()
        self.assertTrue(late["is_correct"])
        self.assertEqual(late["points"], 0)
        state = ana.get(f"/api/quizbattle/play/{code}").get_json()
        self.assertEqual(state["state"], "active")
        self.assertEqual(state["question_index"], 1)

        self.clock.advance(31)
        last = ana.post(f"/api/quizbattle/play/{code}/answer", json={"answer": "4"}).get_json()
        self.assertEqual(last["points"], 0)
        self.assertEqual(ana.get(f"/api/quizbattle/play/{code}").get_json()["state"], "ended")

    def test_duplicate_names_rejected(self):
        room = self._room()
        self.client.post(f"/api/quizbattle/rooms/{room['room_id']}/lobby")
        self._player(room["code"], "Sam")
        resp = self.app.test_client().post("/api/quizbattle/join", json={"code": room["code"], "name": "Sam"})
        self.assertEqual(resp.status_code, 409)

    def test_cannot_join_before_lobby_opens(self):
        room = self._room()
        resp = self.app.test_client().post("/api/quizbattle/join", json={"code": room["code"], "name": "Early"})
        self.assertEqual(resp.status_code, 400)

    def test_lobby_needs_questions(self):
        resp = self.client.post("/api/quizbattle/rooms", json={})
        room_id = resp.get_json()["room_id"]
        lobby = self.client.post(f"/api/quizbattle/rooms/{room_id}/lobby")
        self.assertEqual(lobby.status_code, 400)

    def test_settings_locked_after_setup(self):
        room = self._room()
        resp = self.client.patch(f"/api/quizbattle/rooms/{room['room_id']}/settings", json={"time_limit": 10})
        self.assertEqual(resp.get_json()["settings"]["time_limit"], 10)

        self.client.post(f"/api/quizbattle/rooms/{room['room_id']}/lobby")
        locked = self.client.patch(f"/api/quizbattle/rooms/{room['room_id']}/settings", json={"time_limit": 5})
        self.assertEqual(locked.status_code, 400)

    def test_csv_file_upload(self):
        resp = self.client.post("/api/quizbattle/rooms", json={})
        room_id = resp.get_json()["room_id"]
        upload = self.client.post(
            f"/api/quizbattle/rooms/{room_id}/questions",
            data={"file": (io.BytesIO(CSV_TEXT.encode("utf-8")), "quiz.csv", "text/csv")},
            content_type="multipart/form-data",
        )
        self.assertEqual(upload.status_code, 200)
        self.assertEqual(len(upload.get_json()["questions"]), 2)

    def test_other_users_cannot_host(self):
        room = self._room()
        other = self.make_user("other@example.com", role="trainer")
        client = self.login(other, client=self.app.test_client())
        self.assertEqual(client.post(f"/api/quizbattle/rooms/{room['room_id']}/next").status_code, 403)


if __name__ == "__main__":
    unittest.main()

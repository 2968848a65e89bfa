import unittest
from unittest.mock import patch

from classengage.services import PollService
from tests.base import AppTestCase


class LivePollTests(AppTestCase):
    def setUp(self):
        super().setUp()
        self.trainer = self.make_user("trainer@example.com", role="trainer")
        self.classroom = self.make_class(self.trainer)
        self.login(self.trainer)

        resp = self.client.post("/api/polls/sessions", json={"class_id": self.classroom.id})
        self.assertEqual(resp.status_code, 201)
        self.session = resp.get_json()["session"]
        self.code = self.session["code"]

    def _create_poll(self, question="Favourite colour?", options=("Red", "Blue", "")):
        resp = self.client.post(
            f"/api/polls/sessions/{self.session['id']}/polls",
            json={"question": question, "options": list(options)},
        )
        return resp

    def _activate(self, poll_id):
        return self.client.post(f"/api/polls/sessions/{self.session['id']}/polls/{poll_id}/toggle")

    def test_session_is_reused_per_class(self):
        again = self.client.post("/api/polls/sessions", json={"class_id": self.classroom.id})
        self.assertEqual(again.get_json()["session"]["code"], self.code)
        self.assertEqual(len(self.code), 6)

    def test_concurrent_session_creation_returns_existing(self):
        with patch.object(PollService, "_find_class_session", return_value=None):
            resp = self.client.post("/api/polls/sessions", json={"class_id": self.classroom.id})
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.get_json()["session"]["code"], self.code)
        self.assertEqual(resp.get_json()["session"]["id"], self.session["id"])

    def test_poll_needs_question_and_two_options(self):
        self.assertEqual(self._create_poll(question="").status_code, 400)
        resp = self._create_poll(options=("Only one", " "))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["message"], "You must provide at least two options.")
        self.assertEqual(self._create_poll(options=list("ABCDEF")).status_code, 400)

        poll = self._create_poll().get_json()["poll"]
        self.assertEqual([o["text"] for o in poll["options"]], ["Red", "Blue"])
        self.assertFalse(poll["is_active"])

    def test_only_one_poll_is_active(self):
        first = self._create_poll().get_json()["poll"]["id"]
        second = self._create_poll(question="Pets?", options=("Cat", "Dog")).get_json()["poll"]["id"]

        self._activate(first)
        resp = self._activate(second)
        self.assertEqual(resp.get_json()["active_poll_id"], second)

        session = self.client.get(f"/api/polls/sessions?class_id={self.classroom.id}").get_json()["session"]
        active = [p["id"] for p in session["polls"] if p["is_active"]]
        self.assertEqual(active, [second])

        off = self._activate(second)
        self.assertIsNone(off.get_json()["active_poll_id"])

    def test_participants_vote_once(self):
        poll = self._create_poll().get_json()["poll"]
        self._activate(poll["id"])
        red, blue = (o["id"] for o in poll["options"])

        guest = self.app.test_client()
        view = guest.get(f"/api/polls/join/{self.code.lower()}").get_json()
        self.assertEqual(view["active_poll"]["question"], "Favourite colour?")
        self.assertFalse(view["has_voted"])

        resp = guest.post(f"/api/polls/join/{self.code}/vote", json={"poll_id": poll["id"], "option_id": red})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["message"], "Thank you for your participation.")

        dup = guest.post(f"/api/polls/join/{self.code}/vote", json={"poll_id": poll["id"], "option_id": blue})
        self.assertEqual(dup.status_code, 409)

        other = self.app.test_client()
        other.post(f"/api/polls/join/{self.code}/vote", json={"poll_id": poll["id"], "option_id": red})
        third = self.app.test_client()
        third.post(f"/api/polls/join/{self.code}/vote", json={"poll_id": poll["id"], "option_id": blue})

        display = self.client.get(f"/api/polls/display/{self.code}").get_json()
        self.assertEqual(display["join_path"], f"/livevote?sessionCode={self.code}")
        results = display["active_poll"]
        self.assertEqual(results["total_votes"], 3)
        self.assertEqual([o["votes"] for o in results["options"]], [2, 1])
        self.assertEqual([o["percent"] for o in results["options"]], [67, 33])

        revisit = guest.get(f"/api/polls/join/{self.code}").get_json()
        self.assertTrue(revisit["has_voted"])

    def test_percentages_round_half_up(self):
        poll = self._create_poll(options=("A", "B")).get_json()["poll"]
        self._activate(poll["id"])
        first, second = (o["id"] for o in poll["options"])

        for option_id in [first] + [second] * 7:
            guest = self.app.test_client()
            resp = guest.post(f"/api/polls/join/{self.code}/vote", json={"poll_id": poll["id"], "option_id": option_id})
            self.assertEqual(resp.status_code, 200)

        results = self.client.get(f"/api/polls/display/{self.code}").get_json()["active_poll"]
        self.assertEqual([o["votes"] for o in results["options"]], [1, 7])
        self.assertEqual([o["percent"] for o in results["options"]], [13, 88])

    def test_inactive_poll_rejects_votes(self):
        poll = self._create_poll().get_json()["poll"]
        guest = self.app.test_client()
        resp = guest.post(
            f"/api/polls/join/{self.code}/vote",
            json={"poll_id": poll["id"], "option_id": poll["options"][0]["id"]},
        )
        self.assertEqual(resp.status_code, 400)

    def test_unknown_session_code(self):
        resp = self.app.test_client().get("/api/polls/join/ZZZZZZ")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.get_json()["message"], "Session Not Found")

    def test_delete_active_poll_clears_session(self):
        poll_id = self._create_poll().get_json()["poll"]["id"]
        self._activate(poll_id)
        resp = self.client.delete(f"/api/polls/sessions/{self.session['id']}/polls/{poll_id}")
        self.assertEqual(resp.get_json()["message"], "Poll Deleted")

        view = self.app.test_client().get(f"/api/polls/join/{self.code}").get_json()
        self.assertIsNone(view["active_poll"])

    def test_learners_cannot_manage_polls(self):
        learner = self.make_user("learner@example.com")
        client = self.login(learner, client=self.app.test_client())
        resp = client.post(
            f"/api/polls/sessions/{self.session['id']}/polls",
            json={"question": "Hi?", "options": ["a", "b"]},
        )
        self.assertEqual(resp.status_code, 403)


if __name__ == "__main__":
    unittest.main()

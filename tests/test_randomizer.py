import random
import unittest

from classengage.errors import ValidationError
from classengage.services import RandomizerService
from tests.base import AppTestCase


class RandomizerTests(AppTestCase):
    def setUp(self):
        super().setUp()
        self.trainer = self.make_user("trainer@example.com", role="trainer")

    def test_spin_picks_from_entries(self):
        wheel = RandomizerService.get_wheel(self.trainer)
        RandomizerService.set_entries(wheel, ["Ann", " ", "Bo", "Cy"])
        self.assertEqual(wheel.get_entries(), ["Ann", "Bo", "Cy"])

        result = RandomizerService.spin(wheel, rng=random.Random(7))
        self.assertIn(result["winner"], ["Ann", "Bo", "Cy"])
        self.assertEqual(result["entries"][result["index"]], result["winner"])
        self.assertEqual(wheel.last_result, result["winner"])
        self.assertEqual(wheel.get_history(), [result["winner"]])

    def test_remove_winner(self):
        wheel = RandomizerService.get_wheel(self.trainer)
        RandomizerService.set_entries(wheel, ["Only"])
        result = RandomizerService.spin(wheel, remove_winner=True)
        self.assertEqual(result["winner"], "Only")
        self.assertEqual(wheel.get_entries(), [])

        with self.assertRaises(ValidationError):
            RandomizerService.spin(wheel)

    def test_history_is_capped(self):
        wheel = RandomizerService.get_wheel(self.trainer)
        RandomizerService.set_entries(wheel, ["A", "B"])
        rng = random.Random(1)
        for _ in range(25):
            RandomizerService.spin(wheel, rng=rng)
        self.assertEqual(len(wheel.get_history()), 20)

    def test_class_wheel_loads_roster(self):
        learners = [
            self.make_user("b@example.com", display_name="Bea"),
            self.make_user("a@example.com", display_name="Abe"),
        ]
        classroom = self.make_class(self.trainer, learners=learners)
        self.login(self.trainer)

        resp = self.client.post("/api/tools/randomizer/roster", json={"class_id": classroom.id})
        self.assertEqual(resp.get_json()["wheel"]["entries"], ["Abe", "Bea"])

        spun = self.client.post(
            "/api/tools/randomizer/spin", json={"class_id": classroom.id, "remove_winner": True}
        ).get_json()
        self.assertEqual(len(spun["wheel"]["entries"]), 1)
        self.assertNotIn(spun["winner"], spun["wheel"]["entries"])

    def test_entries_from_text(self):
        self.login(self.trainer)
        resp = self.client.put("/api/tools/randomizer/entries", json={"entries": "Red\nGreen\n\nBlue"})
        self.assertEqual(resp.get_json()["wheel"]["entries"], ["Red", "Green", "Blue"])

        wheel = self.client.get("/api/tools/randomizer").get_json()["wheel"]
        self.assertEqual(wheel["entries"], ["Red", "Green", "Blue"])

    def test_empty_wheel_cannot_spin(self):
        self.login(self.trainer)
        resp = self.client.post("/api/tools/randomizer/spin", json={})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["message"], "Add at least one entry to spin.")

    def test_personal_wheel_has_no_roster(self):
        self.login(self.trainer)
        self.assertEqual(self.client.post("/api/tools/randomizer/roster", json={}).status_code, 400)

    def test_other_trainers_class_wheel_is_off_limits(self):
        classroom = self.make_class(self.trainer)
        other = self.make_user("other@example.com", role="trainer")
        self.login(other)
        resp = self.client.get(f"/api/tools/randomizer?class_id={classroom.id}")
        self.assertEqual(resp.status_code, 403)


if __name__ == "__main__":
    unittest.main()

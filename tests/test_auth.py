import unittest

from tests.base import AppTestCase


class AuthApiTests(AppTestCase):
    def test_register_login_and_me(self):
        resp = self.client.post("/api/auth/register", json={
            "email": "Ada@Example.com", "password": "pw", "display_name": "Ada", "role": "trainer",
        })
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.get_json()["user"]["email"], "ada@example.com")

        resp = self.client.post("/api/auth/login", json={"email": "ada@example.com", "password": "pw"})
        self.assertEqual(resp.status_code, 200)

        me = self.client.get("/api/auth/me").get_json()
        self.assertEqual(me["user"]["display_name"], "Ada")
        self.assertEqual(me["user"]["role"], "trainer")

    def test_duplicate_email_conflicts(self):
        self.make_user("dup@example.com")
        resp = self.client.post("/api/auth/register", json={"email": "dup@example.com", "password": "x"})
        self.assertEqual(resp.status_code, 409)
        self.assertFalse(resp.get_json()["success"])

    def test_bad_password_rejected(self):
        self.make_user("kim@example.com", password="right")
        resp = self.client.post("/api/auth/login", json={"email": "kim@example.com", "password": "wrong"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.get_json()["message"], "Invalid email or password. Please try again.")

    def test_unknown_role_rejected(self):
        resp = self.client.post("/api/auth/register", json={
            "email": "x@example.com", "password": "x", "role": "admin",
        })
        self.assertEqual(resp.status_code, 400)

    def test_me_requires_login(self):
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)

    def test_logout_clears_session(self):
        user = self.make_user("out@example.com")
        self.login(user)
        self.assertEqual(self.client.post("/api/auth/logout").status_code, 200)
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)

    def test_manager_adds_trainers(self):
        manager = self.make_user("boss@example.com", role="manager")
        self.make_user("t1@example.com", role="trainer", display_name="Zed")
        self.make_user("s1@example.com", role="student")
        self.login(manager)

        resp = self.client.post("/api/auth/manager/trainers", json={"email": "t1@example.com"})
        self.assertEqual(resp.status_code, 200)

        resp = self.client.post("/api/auth/manager/trainers", json={"email": "s1@example.com"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.get_json()["message"], "No trainer found with that email address.")

        trainers = self.client.get("/api/auth/manager/trainers").get_json()["trainers"]
        self.assertEqual([t["email"] for t in trainers], ["t1@example.com"])

    def test_manager_routes_need_manager_role(self):
        trainer = self.make_user("t@example.com", role="trainer")
        self.login(trainer)
        self.assertEqual(self.client.get("/api/auth/manager/trainers").status_code, 403)


if __name__ == "__main__":
    unittest.main()

import os
import time
from unittest import mock

from absl.testing import absltest

import app as app_module


class AppTest(absltest.TestCase):

    def setUp(self) -> None:
        super().setUp()
        self.trace_path = os.path.join(self.create_tempdir().full_path, "trace.jsonl")
        app = app_module.app
        saved = dict(app.config)
        self.addCleanup(lambda: (app.config.clear(), app.config.update(saved)))
        app.config.update(
            TESTING=True,
            TRACE_PATH=self.trace_path,
            SOLVE_IN_BACKGROUND=False,
            TRACE_FLUSH_EVERY=1000,
        )
        self.client = app.test_client()
        # stop anything still running in the background
        self.addCleanup(self.client.post, "/clear")

    def post_solve(self, words, result, **extra):
        return self.client.post("/solve", json={"words": words, "result": result, **extra})

    def wait_for_trace(self, timeout=120):
        deadline = time.monotonic() + timeout
        trace = self.client.get("/trace").get_json()
        while not trace["ready"] and time.monotonic() < deadline:
            time.sleep(0.05)
            trace = self.client.get("/trace").get_json()
        self.assertTrue(trace["ready"])
        return trace["events"]

    def test_solve_and_trace(self) -> None:
        resp = self.post_solve(["SEND", "MORE"], "MONEY")
        self.assertEqual(resp.status_code, 200)
        body = resp.get_json()
        self.assertEqual(body["status"], "finished")
        self.assertTrue(body["solved"])
        self.assertEqual(body["assignment"],
                         {"S": 9, "E": 5, "N": 6, "D": 7, "M": 1, "O": 0, "R": 8, "Y": 2})

        trace = self.client.get("/trace").get_json()
        self.assertTrue(trace["ready"])
        self.assertEqual(trace["events"][0]["type"], "START")
        self.assertEqual(trace["events"][-1]["type"], "SOLVER_DONE")

    def test_no_solution(self) -> None:
        body = self.post_solve(["AA", "AA"], "AB", use_column_pruning=False).get_json()
        self.assertFalse(body["solved"])
        self.assertIsNone(body["assignment"])
        self.assertFalse(body["use_column_pruning"])

    def test_invalid_word(self) -> None:
        resp = self.post_solve(["SEND", "M0RE"], "MONEY")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["kind"], "InvalidInput")
        self.assertFalse(os.path.exists(self.trace_path))

    def test_too_many_symbols(self) -> None:
        resp = self.post_solve(["ABCDEF", "GHIJKA"], "ABCDEFG")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["kind"], "TooManySymbols")

    def test_wrong_word_count(self) -> None:
        resp = self.post_solve(["SEND", "MORE", "MORE"], "MONEY")
        self.assertEqual(resp.status_code, 400)

    def test_unknown_order(self) -> None:
        resp = self.post_solve(["SEND", "MORE"], "MONEY", order="random")
        self.assertEqual(resp.status_code, 400)

    def test_missing_body(self) -> None:
        resp = self.client.post("/solve", data="not json")
        self.assertEqual(resp.status_code, 400)

    def test_trace_before_solving(self) -> None:
        self.assertEqual(self.client.get("/trace").get_json(), {"ready": False, "events": []})

    def test_clear(self) -> None:
        self.post_solve(["TO", "GO"], "OUT")
        self.assertTrue(os.path.exists(self.trace_path))
        self.assertEqual(self.client.post("/clear").get_json(), {"cleared": True})
        self.assertFalse(os.path.exists(self.trace_path))
        self.assertFalse(self.client.get("/trace").get_json()["ready"])

    def test_background_solve(self) -> None:
        app_module.app.config["SOLVE_IN_BACKGROUND"] = True
        resp = self.post_solve(["TWO", "TWO"], "FOUR")
        self.assertEqual(resp.get_json()["status"], "started")
        events = self.wait_for_trace(timeout=30)
        self.assertEqual(events[-2]["reason"], "solution found")

    def test_unpruned_solve_finishes(self) -> None:
        app_module.app.config.update(SOLVE_IN_BACKGROUND=True, TRACE_FLUSH_EVERY=25,
                                     TRACE_MAX_EVENTS=5000)
        resp = self.post_solve(["SEND", "MORE"], "MONEY", use_column_pruning=False)
        self.assertEqual(resp.get_json()["status"], "started")

        events = self.wait_for_trace()
        self.assertLen(events, 5000 + 3)
        self.assertEqual([ev["type"] for ev in events].count("TRUNCATED"), 1)
        self.assertEqual(events[-2]["reason"], "solution found")
        self.assertEqual(events[-2]["result"],
                         {"S": 9, "E": 5, "N": 6, "D": 7, "M": 1, "O": 0, "R": 8, "Y": 2})

    def test_new_solve_replaces_running_one(self) -> None:
        app_module.app.config["SOLVE_IN_BACKGROUND"] = True
        self.post_solve(["SEND", "MORE"], "MONEY", use_column_pruning=False, order="appearance")
        first = app_module._current["interrupter"]
        self.post_solve(["TO", "GO"], "OUT")
        self.assertTrue(first.interrupted)

        events = self.wait_for_trace(timeout=30)
        starts = [ev for ev in events if ev["type"] == "START"]
        self.assertLen(starts, 1)
        self.assertEqual(starts[0]["words"], ["TO", "GO"])
        self.assertEqual(events[-2]["result"], {"T": 2, "O": 1, "G": 8, "U": 0})

    def test_solver_error_ends_trace(self) -> None:
        with mock.patch.object(app_module, "search", side_effect=OSError("disk full")), \
                self.assertLogs(app_module.app.logger, "ERROR"):
            body = self.post_solve(["TO", "GO"], "OUT").get_json()
        self.assertEqual(body["status"], "stopped")

        trace = self.client.get("/trace").get_json()
        self.assertTrue(trace["ready"])
        self.assertEqual(trace["events"][-2]["reason"], "error")


if __name__ == "__main__":
    absltest.main()

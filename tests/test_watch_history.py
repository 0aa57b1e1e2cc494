import unittest
from datetime import datetime, timedelta, timezone

from episodic.schemas.watched import EpisodeInput, WatchEntry
from episodic.services.watch_history import (
    InvalidWatchPayloadError,
    dump_history,
    merge_watched,
)

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _eps(*ids: int) -> list[EpisodeInput]:
    return [EpisodeInput(id=i, number=i, name=f"Episode {i}") for i in ids]


class TestMergeWatched(unittest.TestCase):
    def test_new_show_creates_entry(self) -> None:
        history, entry = merge_watched([], "1399", "Show X", "/x.jpg", 1, _eps(1, 2), now=T0)

        self.assertEqual(len(history), 1)
        self.assertIs(history[0], entry)
        self.assertEqual(entry.last_watched_at, T0)
        self.assertEqual([e.episode_id for e in entry.episodes], [1, 2])
        self.assertTrue(all(e.season_number == 1 for e in entry.episodes))

    def test_remark_updates_in_place(self) -> None:
        history, _ = merge_watched([], "1399", "Show X", None, 1, _eps(1, 2), now=T0)
        later = T0 + timedelta(hours=3)

        history, entry = merge_watched(history, "1399", "Show X", None, 1, _eps(1), now=later)

        self.assertEqual(len(entry.episodes), 2)
        by_id = {e.episode_id: e for e in entry.episodes}
        self.assertEqual(by_id[1].watched_at, later)
        self.assertEqual(by_id[2].watched_at, T0)
        self.assertEqual(entry.last_watched_at, later)

    def test_remark_with_new_season_number_overwrites_it(self) -> None:
        history, _ = merge_watched([], "1399", "Show X", None, 1, _eps(7), now=T0)
        history, entry = merge_watched(history, "1399", "Show X", None, 2, _eps(7), now=T0 + timedelta(minutes=1))
        self.assertEqual(len(entry.episodes), 1)
        self.assertEqual(entry.episodes[0].season_number, 2)

    def test_duplicate_ids_in_one_request_collapse(self) -> None:
        _, entry = merge_watched([], "1399", "Show X", None, 1, _eps(3, 3, 3), now=T0)
        self.assertEqual(len(entry.episodes), 1)

    def test_touched_show_moves_to_front(self) -> None:
        history = []
        for i, show in enumerate(["a", "b", "c"]):
            history, _ = merge_watched(history, show, show.upper(), None, 1, _eps(1), now=T0 + timedelta(minutes=i))
        self.assertEqual([e.show_id for e in history], ["c", "b", "a"])

        history, _ = merge_watched(history, "a", "A", None, 1, _eps(2), now=T0 + timedelta(minutes=10))
        self.assertEqual([e.show_id for e in history], ["a", "c", "b"])

    def test_history_capped_to_most_recent(self) -> None:
        history = []
        for i in range(51):
            history, _ = merge_watched(
                history, f"show-{i}", f"Show {i}", None, 1, _eps(1),
                now=T0 + timedelta(minutes=i),
            )

        self.assertEqual(len(history), 50)
        self.assertEqual(history[0].show_id, "show-50")
        self.assertNotIn("show-0", {e.show_id for e in history})
        stamps = [e.last_watched_at for e in history]
        self.assertEqual(stamps, sorted(stamps, reverse=True))

    def test_custom_limit(self) -> None:
        history = []
        for i in range(5):
            history, _ = merge_watched(history, str(i), str(i), None, 1, _eps(1), now=T0 + timedelta(minutes=i), limit=3)
        self.assertEqual([e.show_id for e in history], ["4", "3", "2"])

    def test_input_history_not_mutated(self) -> None:
        original, _ = merge_watched([], "1399", "Show X", None, 1, _eps(1), now=T0)
        merge_watched(original, "1399", "Show X", None, 1, _eps(2), now=T0 + timedelta(hours=1))
        self.assertEqual(len(original[0].episodes), 1)
        self.assertEqual(original[0].last_watched_at, T0)

    def test_invalid_payloads_rejected(self) -> None:
        cases = [
            dict(show_id="", show_name="X", episodes=_eps(1)),
            dict(show_id="1", show_name="  ", episodes=_eps(1)),
            dict(show_id="1", show_name="X", episodes=[]),
        ]
        for case in cases:
            with self.subTest(case=case):
                with self.assertRaises(InvalidWatchPayloadError):
                    merge_watched([], case["show_id"], case["show_name"], None, 1, case["episodes"], now=T0)

    def test_dump_uses_stored_camel_case_keys(self) -> None:
        history, _ = merge_watched([], "1399", "Show X", "/x.jpg", 1, _eps(1), now=T0)
        stored = dump_history(history)[0]
        self.assertEqual(
            set(stored),
            {"showId", "showName", "posterPath", "lastWatchedAt", "episodes"},
        )
        self.assertEqual(
            set(stored["episodes"][0]),
            {"episodeId", "number", "name", "seasonNumber", "watchedAt"},
        )
        # Stored form parses back
        self.assertEqual(WatchEntry.model_validate(stored).show_id, "1399")

    def test_naive_stored_timestamps_treated_as_utc(self) -> None:
        legacy = WatchEntry.model_validate({
            "showId": "9",
            "showName": "Old",
            "posterPath": None,
            "lastWatchedAt": "2025-05-01T10:00:00",
            "episodes": [],
        })
        history, _ = merge_watched([legacy], "10", "New", None, 1, _eps(1), now=T0)
        self.assertEqual([e.show_id for e in history], ["10", "9"])

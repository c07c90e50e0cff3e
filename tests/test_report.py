import random

from football_sim.report import build_timeline


class _SameMinute(random.Random):
    def randint(self, a: int, b: int) -> int:
        return max(a, min(b, 40))


def test_goals_in_the_same_minute_are_all_kept() -> None:
    timeline = build_timeline("Alpha", "Bravo", 3, 0, _SameMinute(5))
    goals = [event for event in timeline if event["kind"] == "goal"]
    assert len(goals) == 3
    assert all(event["text"] == "40' GOAL! Alpha player (Alpha)" for event in goals)


def test_timeline_is_ordered_and_bookended() -> None:
    timeline = build_timeline("Alpha", "Bravo", 1, 2, random.Random(9))
    minutes = [event["minute"] for event in timeline]
    assert minutes == sorted(minutes)
    assert sum(1 for event in timeline if event["kind"] == "goal") == 3
    assert timeline[-1]["kind"] == "full_time"

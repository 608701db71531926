from unittest.mock import AsyncMock

import pytest

from mindsprout.application.records import card_to_record, deck_to_record
from mindsprout.application.scheduler import schedule
from mindsprout.application.stats.metrics_calculator import MetricsCalculator, compute_stats
from mindsprout.application.stats.service import StatsService
from mindsprout.domain.constants import DAY_MS
from mindsprout.domain.models import Difficulty, ReviewLog, ReviewRecord, Strategy
from mindsprout.domain.ports import CARDS, DECKS


@pytest.fixture
def calculator():
    return MetricsCalculator()


def _graded(card, grades, now, duration=0):
    for i, grade in enumerate(grades):
        card = schedule(card, grade, duration=duration, now=now + i)
    return card


def test_empty_collection(calculator, now):
    report = calculator.compute([], [], now)

    assert report.total == 0
    assert report.retention_rate == 0.0
    assert report.average_duration_ms == 0.0
    assert report.leeches == []
    assert [d.count for d in report.workload] == [0] * 7
    assert report.maturity.total == 0


def test_maturity_buckets_are_exhaustive(calculator, make_card, now):
    cards = [
        make_card("seed", repetition=0, interval=30),  # lapsed with stale interval
        make_card("sprout", repetition=1, interval=4),
        make_card("tree-lo", repetition=3, interval=5),
        make_card("tree-hi", repetition=4, interval=20),
        make_card("forest", repetition=6, interval=21),
    ]
    m = calculator.compute(cards, [], now).maturity

    assert (m.seeds, m.sprouts, m.trees, m.forest) == (1, 1, 2, 1)
    assert m.total == len(cards)


def test_mastered_threshold_follows_deck_strategy(calculator, make_card, make_deck, now):
    decks = [make_deck("std"), make_deck("exam", strategy=Strategy.EXAM)]
    cards = [
        make_card("s-7", deck_id="std", repetition=3, interval=7),
        make_card("s-21", deck_id="std", repetition=5, interval=21),
        make_card("e-7", deck_id="exam", repetition=4, interval=7),
        make_card("e-6", deck_id="exam", repetition=4, interval=6),
        make_card("orphan-10", deck_id="gone", repetition=4, interval=10),
        make_card("orphan-21", deck_id="gone", repetition=6, interval=21),
    ]
    assert calculator.compute(cards, decks, now).mastered == 3  # s-21, e-7, orphan-21


def test_retention_and_average_duration(calculator, make_card, now):
    history = ReviewLog(
        [
            ReviewRecord(date=now, difficulty=Difficulty.EASY, interval=1, duration=1000),
            ReviewRecord(date=now, difficulty=Difficulty.VERY_EASY, interval=4, duration=3000),
            ReviewRecord(date=now, difficulty=Difficulty.HARD, interval=1, duration=2000),
            ReviewRecord(date=now, difficulty=Difficulty.VERY_HARD, interval=1, duration=0),
        ]
    )
    report = calculator.compute([make_card(history=history)], [], now)

    assert report.retention_rate == pytest.approx(50.0)
    assert report.average_duration_ms == pytest.approx(1500.0)
    assert report.total_reviews == 4


def test_leech_needs_three_failures(calculator, make_card, now):
    three = _graded(make_card("three"), [Difficulty.HARD] * 3, now)
    two = _graded(make_card("two"), [Difficulty.HARD] * 2, now)

    ids = [leech.card_id for leech in calculator.compute([three, two], [], now).leeches]

    assert "three" in ids
    assert "two" not in ids


def test_low_easiness_is_a_leech(calculator, make_card, now):
    report = calculator.compute([make_card("sticky", easiness=1.4)], [], now)
    assert [leech.card_id for leech in report.leeches] == ["sticky"]


def test_leeches_sorted_by_history_and_capped(calculator, make_card, now):
    cards = [
        _graded(make_card(f"l{n}"), [Difficulty.VERY_HARD] * n, now) for n in range(3, 10)
    ]
    leeches = calculator.compute(cards, [], now).leeches

    assert len(leeches) == 5
    assert [leech.card_id for leech in leeches] == ["l9", "l8", "l7", "l6", "l5"]
    assert leeches[0].failures == 9


def test_workload_folds_overdue_into_today(calculator, make_card, now):
    cards = [
        make_card("way-overdue", next_review=now - 30 * DAY_MS),
        make_card("now", next_review=now),
        make_card("tonight", next_review=now + DAY_MS - 1),
        make_card("tomorrow", next_review=now + DAY_MS),
        make_card("day-6", next_review=now + 6 * DAY_MS + 5),
        make_card("day-7", next_review=now + 7 * DAY_MS),
    ]
    workload = calculator.compute(cards, [], now).workload

    assert [d.count for d in workload] == [3, 1, 0, 0, 0, 0, 1]
    assert [d.offset for d in workload] == list(range(7))
    assert workload[0].label == "Today"
    assert workload[1].start == now + DAY_MS


def test_deck_overview_counts(calculator, make_card, make_deck, now):
    deck = make_deck("d1", strategy=Strategy.EXAM)
    cards = [
        make_card("n", deck_id="d1"),
        make_card("l", deck_id="d1", repetition=2, interval=4, next_review=now + DAY_MS),
        make_card("m", deck_id="d1", repetition=5, interval=8, next_review=now + 8 * DAY_MS),
        make_card("x", deck_id="other"),
    ]
    o = calculator.overview(deck, cards, now)

    assert (o.total, o.due, o.new, o.learning, o.mastered) == (3, 1, 1, 1, 1)


def test_compute_stats_wrapper(make_card, now):
    assert compute_stats([make_card()], [], now).total == 1


@pytest.mark.asyncio
async def test_stats_service_orchestration(make_card, make_deck, now):
    store = AsyncMock()
    deck = make_deck("d1")
    records = {
        DECKS: [deck_to_record(deck)],
        CARDS: [card_to_record(make_card("c1")), card_to_record(make_card("c2"))],
    }
    store.get_all.side_effect = lambda collection: records[collection]

    service = StatsService(store=store, clock=lambda: now)
    report = await service.get_report()

    assert report.total == 2
    assert report.due == 2
    store.get_all.assert_any_await(DECKS)
    store.get_all.assert_any_await(CARDS)

    overviews = await service.get_overviews()
    assert [o.deck_id for o in overviews] == ["d1"]
    assert overviews[0].total == 2

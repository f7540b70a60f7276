import pytest

from aggregator import Decision, RecognitionAggregator
from conftest import FakeLabels, read_lines

ALICE, BOB, CAROL, NOBODY = 0, 1, 2, 99
CONF_OK = 50.0
CONF_LOW = 3.0


@pytest.fixture
def labels():
    return FakeLabels({ALICE: "Alice", BOB: "Bob", CAROL: "Carol"})


@pytest.fixture
def event_log(tmp_path):
    return str(tmp_path / "framedata.csv")


@pytest.fixture
def agg(labels, roster, event_log):
    return RecognitionAggregator(labels, roster, event_log_path=event_log,
                                 threshold=7.0, window_size=60)


def feed(agg, labels_seq, conf=CONF_OK):
    decisions = []
    for label in labels_seq:
        d = agg.observe(label, conf)
        if d is not None:
            decisions.append(d)
    return decisions


def test_majority_wins_and_resolves_roster_fields(agg, event_log):
    frames = [ALICE] * 20 + [BOB] * 15 + [NOBODY] * 5 + [ALICE] * 20
    decisions = feed(agg, frames)

    assert decisions == [Decision("Alice", "2", "3", 40)]
    assert read_lines(event_log) == ["Alice,40"]
    assert agg.pending == 0


def test_unknown_plurality_emits_nothing(agg, event_log):
    frames = [NOBODY] * 35 + [ALICE] * 25
    assert feed(agg, frames) == []
    assert read_lines(event_log) == []
    assert agg.pending == 0


def test_frames_at_or_below_threshold_are_not_counted(agg):
    assert agg.observe(ALICE, CONF_LOW) is None
    assert agg.observe(ALICE, 7.0) is None
    assert agg.pending == 0
    agg.observe(ALICE, 7.01)
    assert agg.pending == 1


def test_no_decision_before_window_is_full(agg):
    assert feed(agg, [ALICE] * 59) == []
    assert agg.pending == 59
    assert feed(agg, [ALICE]) == [Decision("Alice", "2", "3", 60)]


def test_tie_goes_to_first_name_seen(agg):
    frames = [BOB] * 30 + [ALICE] * 30
    assert feed(agg, frames)[0].name == "Bob"

    frames = [ALICE, BOB] * 30
    assert feed(agg, frames)[0].name == "Alice"


def test_roster_miss_still_reports_decision(agg, event_log):
    decisions = feed(agg, [CAROL] * 60)
    assert decisions == [Decision("Carol", "Unknown", "", 60)]
    assert read_lines(event_log) == ["Carol,60"]


def test_consecutive_windows_are_independent(agg, event_log):
    decisions = feed(agg, [ALICE] * 60 + [BOB] * 60)
    assert [d.name for d in decisions] == ["Alice", "Bob"]
    assert read_lines(event_log) == ["Alice,60", "Bob,60"]


def test_unknown_window_keeps_previous_decision_on_display(labels, roster, event_log):
    shown = []
    agg = RecognitionAggregator(labels, roster, event_log_path=event_log,
                                window_size=10, on_decision=shown.append)
    feed(agg, [BOB] * 10)
    feed(agg, [NOBODY] * 10)

    assert [d.name for d in shown] == ["Bob"]


def test_reset_drops_partial_window(agg):
    feed(agg, [ALICE] * 30)
    agg.reset()
    assert agg.pending == 0
    assert feed(agg, [BOB] * 60)[0] == Decision("Bob", "1", "1", 60)


def test_window_size_must_be_positive(labels, roster):
    with pytest.raises(ValueError):
        RecognitionAggregator(labels, roster, window_size=0)

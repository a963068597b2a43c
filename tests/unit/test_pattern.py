import pytest
from datetime import timedelta
from pydantic import ValidationError

from netemtrace.core.pattern import RepeatedPattern
from netemtrace.core.trace import Segment
from netemtrace.core.units import mbps
from netemtrace.models import (
    NormalizedBwConfig,
    RepeatedBwPatternConfig,
    StaticBwConfig,
    StaticDelayConfig,
    TraceBwConfig,
)

MS = timedelta(milliseconds=1)


@pytest.fixture
def a():
    return StaticBwConfig(bw=mbps(12), duration=MS)


@pytest.fixture
def b():
    return StaticBwConfig(bw=mbps(24), duration=2 * MS)


def test_children_play_in_order(a, b):
    model = RepeatedBwPatternConfig(pattern=[a, b], count=2).build()
    assert isinstance(model, RepeatedPattern)
    assert list(model) == [
        Segment(mbps(12), MS),
        Segment(mbps(24), 2 * MS),
        Segment(mbps(12), MS),
        Segment(mbps(24), 2 * MS),
    ]
    assert model.advance() is None


def test_zero_count_repeats_forever(a, b):
    model = RepeatedBwPatternConfig(pattern=[a, b], count=0).build()
    items = model.take(1_001)
    assert len(items) == 1_001
    assert items[-1] == Segment(mbps(12), MS)


def test_empty_pattern_exhausts_immediately():
    for count in (0, 1, 5):
        assert RepeatedBwPatternConfig(pattern=[], count=count).build().advance() is None


def test_children_that_produce_nothing_end_the_pattern():
    model = RepeatedBwPatternConfig(pattern=[TraceBwConfig(), TraceBwConfig()], count=0).build()
    assert model.advance() is None


def test_every_pass_rebuilds_children():
    noisy = NormalizedBwConfig(mean=mbps(12), std_dev=mbps(3), duration=5 * MS, seed=7)
    bws = [bw for bw, _ in RepeatedBwPatternConfig(pattern=[noisy], count=3).build()]
    assert len(bws) == 15
    assert bws[:5] == bws[5:10] == bws[10:]
    assert len(set(bws[:5])) > 1


def test_nested_patterns(a, b):
    inner = RepeatedBwPatternConfig(pattern=[a], count=2)
    outer = RepeatedBwPatternConfig(pattern=[inner, b], count=2)
    bws = [bw for bw, _ in outer.build()]
    assert bws == [mbps(12), mbps(12), mbps(24)] * 2


def test_children_can_be_given_encoded():
    config = RepeatedBwPatternConfig(
        pattern=[{"StaticBwConfig": {"bw": "12Mbps", "duration": "1ms"}}],
        count=1,
    )
    assert config.pattern == (StaticBwConfig(bw=mbps(12), duration=MS),)


def test_rejects_children_of_another_kind(a):
    with pytest.raises(ValidationError, match="only accepts bw traces"):
        RepeatedBwPatternConfig(pattern=[a, StaticDelayConfig()])


def test_rejects_negative_count(a):
    with pytest.raises(ValidationError):
        RepeatedBwPatternConfig(pattern=[a], count=-1)


def test_rejects_unknown_encoded_child():
    with pytest.raises(ValidationError, match="NoSuchConfig"):
        RepeatedBwPatternConfig(pattern=[{"NoSuchConfig": {}}])


def test_config_is_shared_read_only(a, b):
    config = RepeatedBwPatternConfig(pattern=[a, b], count=1)
    first = config.build()
    first.advance()
    second = config.build()
    assert second.advance() == Segment(mbps(12), MS)
    assert config.pattern == (a, b)


def test_pass_logging_stops_at_last_pass(a, caplog):
    model = RepeatedBwPatternConfig(pattern=[a], count=2).build()
    with caplog.at_level("DEBUG", logger="netemtrace.core.pattern"):
        assert len(list(model)) == 2
    messages = [record.getMessage() for record in caplog.records]
    assert any("starting pass 2" in message for message in messages)
    assert not any("starting pass 3" in message for message in messages)

import pytest
from datetime import timedelta
from pydantic import ValidationError

from netemtrace.core.trace import Segment, TraceKind
from netemtrace.models import (
    RepeatedDelayPatternConfig,
    RepeatedDuplicatePatternConfig,
    RepeatedLossPatternConfig,
    StaticDelayConfig,
    StaticDuplicateConfig,
    StaticLossConfig,
)

SECOND = timedelta(seconds=1)


def test_static_delay_defaults():
    model = StaticDelayConfig().build()
    assert model.kind == TraceKind.DELAY
    assert model.advance() == Segment(timedelta(milliseconds=10), SECOND)
    assert model.advance() is None


def test_zero_delay_is_allowed():
    assert StaticDelayConfig(delay=timedelta(0)).build().advance() == (timedelta(0), SECOND)


def test_repeated_delay_pattern():
    config = RepeatedDelayPatternConfig(
        pattern=[
            StaticDelayConfig(delay=timedelta(milliseconds=10)),
            StaticDelayConfig(delay=timedelta(milliseconds=50)),
        ],
        count=2,
    )
    delays = [delay for delay, _ in config.build()]
    assert delays == [timedelta(milliseconds=ms) for ms in (10, 50, 10, 50)]


def test_static_loss_defaults():
    model = StaticLossConfig().build()
    assert model.kind == TraceKind.LOSS
    assert model.advance() == Segment((0.1, 0.2), SECOND)
    assert model.advance() is None


def test_loss_pattern_is_immutable():
    config = StaticLossConfig(loss=[0.5])
    assert config.loss == (0.5,)
    value, _ = config.build().advance()
    assert value is config.loss
    with pytest.raises(AttributeError):
        value.append(1.0)
    assert hash(config) == hash(StaticLossConfig(loss=(0.5,)))


def test_duplicate_pattern_is_immutable():
    config = StaticDuplicateConfig(duplicate=[0.3])
    assert config.duplicate == (0.3,)
    with pytest.raises(AttributeError):
        config.duplicate.append(0.4)
    assert hash(config) == hash(StaticDuplicateConfig(duplicate=(0.3,)))


def test_repeated_loss_pattern():
    config = RepeatedLossPatternConfig(
        pattern=[StaticLossConfig(loss=[0.1, 0.2]), StaticLossConfig(loss=[0.2, 0.4])],
        count=2,
    )
    assert [loss for loss, _ in config.build()] == [(0.1, 0.2), (0.2, 0.4)] * 2


def test_static_duplicate():
    model = StaticDuplicateConfig(duplicate=[0.3], duration=timedelta(milliseconds=500)).build()
    assert model.kind == TraceKind.DUPLICATE
    assert model.advance() == Segment((0.3,), timedelta(milliseconds=500))
    assert model.advance() is None


def test_repeated_duplicate_pattern():
    config = RepeatedDuplicatePatternConfig(pattern=[StaticDuplicateConfig()], count=3)
    assert len(list(config.build())) == 3


@pytest.mark.parametrize("pattern", [[1.5], [-0.1], [0.1, 2.0]])
def test_probabilities_must_be_in_unit_range(pattern):
    with pytest.raises(ValidationError):
        StaticLossConfig(loss=pattern)
    with pytest.raises(ValidationError):
        StaticDuplicateConfig(duplicate=pattern)

import pytest
import numpy as np
from datetime import timedelta
from pydantic import ValidationError

from netemtrace.core.sampling import BoundPolicy, RngAlgorithm
from netemtrace.core.trace import Segment
from netemtrace.core.units import mbps
from netemtrace.models import NormalizedBwConfig, SawtoothBwConfig, TraceBwConfig

MS = timedelta(milliseconds=1)


def values(model):
    return [bw for bw, _ in model]


class TestNormalizedBw:
    def test_zero_std_dev_is_constant(self):
        config = NormalizedBwConfig(mean=mbps(12), duration=10 * MS, step=MS)
        assert list(config.build()) == [Segment(mbps(12), MS)] * 10

    def test_last_step_is_shortened(self):
        config = NormalizedBwConfig(duration=10 * MS, step=3 * MS)
        durations = [duration for _, duration in config.build()]
        assert durations == [3 * MS, 3 * MS, 3 * MS, MS]

    def test_same_seed_same_trace(self):
        config = NormalizedBwConfig(mean=mbps(12), std_dev=mbps(1), duration=timedelta(seconds=1), seed=42)
        assert list(config.build()) == list(config.build())

    def test_seed_and_algorithm_change_the_trace(self):
        base = NormalizedBwConfig(mean=mbps(12), std_dev=mbps(1), duration=100 * MS)
        reseeded = base.model_copy(update={"seed": 43})
        philox = base.model_copy(update={"rng": RngAlgorithm.PHILOX})
        assert values(base.build()) != values(reseeded.build())
        assert values(base.build()) != values(philox.build())

    @pytest.mark.parametrize("policy", list(BoundPolicy))
    def test_never_leaves_bounds(self, policy):
        config = NormalizedBwConfig(
            mean=mbps(12),
            std_dev=mbps(5),
            lower_bound=mbps(10),
            upper_bound=mbps(14),
            duration=timedelta(seconds=5),
            bound_policy=policy,
        )
        bws = values(config.build())
        assert len(bws) == 5_000
        assert min(bws) >= mbps(10)
        assert max(bws) <= mbps(14)

    def test_negative_draws_become_zero(self):
        config = NormalizedBwConfig(mean=0, std_dev=mbps(1), duration=timedelta(seconds=1))
        bws = values(config.build())
        assert min(bws) == 0
        assert max(bws) > 0

    def test_rejects_inverted_bounds(self):
        with pytest.raises(ValidationError, match="above upper_bound"):
            NormalizedBwConfig(lower_bound=mbps(20), upper_bound=mbps(10))

    def test_rejects_non_positive_step(self):
        with pytest.raises(ValidationError):
            NormalizedBwConfig(step=timedelta(0))

    def test_build_truncated_keeps_the_mean(self):
        config = NormalizedBwConfig(mean=mbps(12), std_dev=mbps(12), duration=timedelta(seconds=20))
        default_mean = np.mean(values(config.build()))
        truncated_mean = np.mean(values(config.build_truncated()))
        # Clipping negative draws to 0 pushes the plain build above its mean
        assert default_mean > mbps(12.6)
        assert abs(truncated_mean - mbps(12)) < mbps(0.4)

    def test_build_truncated_leaves_config_alone(self):
        config = NormalizedBwConfig(mean=mbps(12), std_dev=mbps(12))
        model = config.build_truncated()
        assert model.config is config
        assert model.clone_config().mean == mbps(12)


class TestSawtoothBw:
    def test_rises_then_falls(self):
        config = SawtoothBwConfig(
            bottom=0,
            top=mbps(12),
            interval=10 * MS,
            duty_ratio=0.5,
            duration=20 * MS,
            step=MS,
        )
        bws = values(config.build())
        one_period = [0, 2.4e6, 4.8e6, 7.2e6, 9.6e6, 12e6, 9.6e6, 7.2e6, 4.8e6, 2.4e6]
        assert bws == pytest.approx(one_period * 2, abs=1)

    def test_full_duty_ratio_only_rises(self):
        config = SawtoothBwConfig(bottom=mbps(2), top=mbps(6), interval=4 * MS, duty_ratio=1.0, duration=4 * MS)
        assert values(config.build()) == pytest.approx([2e6, 3e6, 4e6, 5e6], abs=1)

    def test_finite_duration(self):
        config = SawtoothBwConfig(duration=7 * MS, step=2 * MS)
        durations = [duration for _, duration in config.build()]
        assert durations == [2 * MS, 2 * MS, 2 * MS, MS]

    def test_unbounded_duration_runs_forever(self):
        config = SawtoothBwConfig(duration=None, interval=10 * MS)
        assert len(config.build().take(5_000)) == 5_000

    def test_noise_is_bounded(self):
        config = SawtoothBwConfig(
            bottom=mbps(5),
            top=mbps(5),
            std_dev=mbps(1),
            lower_noise_bound=mbps(0.5),
            upper_noise_bound=mbps(0.5),
            duration=timedelta(seconds=2),
        )
        bws = values(config.build())
        assert min(bws) >= mbps(4.5)
        assert max(bws) <= mbps(5.5)
        assert len(set(bws)) > 100

    def test_rejects_bottom_above_top(self):
        with pytest.raises(ValidationError, match="above top"):
            SawtoothBwConfig(bottom=mbps(20), top=mbps(10))

    def test_rejects_duty_ratio_outside_unit_range(self):
        with pytest.raises(ValidationError):
            SawtoothBwConfig(duty_ratio=1.5)


class TestTraceBw:
    @pytest.fixture
    def config(self):
        return TraceBwConfig(pattern=[(MS, [mbps(12), mbps(24)]), (2 * MS, [mbps(6)])])

    def test_replays_in_order(self, config):
        assert list(config.build()) == [
            Segment(mbps(12), MS),
            Segment(mbps(24), MS),
            Segment(mbps(6), 2 * MS),
        ]

    def test_empty_trace(self):
        assert TraceBwConfig().build().advance() is None

    def test_compact_form(self, config):
        compact = [[1.0, [12.0, 24.0]], [2.0, [6.0]]]
        assert TraceBwConfig.model_validate(compact) == config
        assert config.model_dump(mode="json") == compact

    @pytest.mark.parametrize("compact", [[[1.0]], [[1.0, 12.0]], [["1ms", [12.0]]], [[0, [12.0]]]])
    def test_rejects_malformed_compact_form(self, compact):
        with pytest.raises(ValidationError):
            TraceBwConfig.model_validate(compact)

"""Test DownlinkScheduler frame selection and transmission."""

import pytest
import numpy as np

from accretion.contracts import assert_downlink_plan
from accretion.imaging.motion import MotionVector
from accretion.pipeline.downlink_scheduler import DownlinkScheduler

pytestmark = [pytest.mark.unit, pytest.mark.pipeline]


def _no_motion(n):
    return [None] * n


class TestSelect:
    """Greedy selection under quota and attempt budget."""

    def test_quota_floor(self):
        assert DownlinkScheduler.quota(5, 40) == 2
        assert DownlinkScheduler.quota(7, 50) == 3
        assert DownlinkScheduler.quota(3, 0) == 0
        assert DownlinkScheduler.quota(10, 100) == 10

    def test_five_frames_forty_percent(self, internal_config):
        plan = DownlinkScheduler(internal_config).select(
            40, _no_motion(5), [0.0, 1.0, 2.0, 3.0, 0.0], 5
        )

        assert plan.quota == 2
        assert plan.selected == [0, 4]
        assert plan.attempts == 0
        assert plan.quota_met
        assert_downlink_plan(plan, 5)

    def test_all_equal_scores_terminate(self, internal_config):
        n = 9
        plan = DownlinkScheduler(internal_config).select(100, _no_motion(n), [1.0] * n, n)

        assert plan.selected == list(range(n))
        assert plan.attempts <= 1000
        assert plan.quota_met

    def test_picks_best_neighbourhood(self, internal_config):
        densities = [None, 1.0, 1.0, 1.0, 9.0, 1.0, 1.0, 1.0, 1.0, None]
        plan = DownlinkScheduler(internal_config).select(50, _no_motion(10), densities, 10)

        # quota 5: endpoints, then 3..5 around the densest frame
        assert plan.selected == [0, 3, 4, 5, 9]
        assert plan.attempts == 1

    def test_ties_pick_first(self, internal_config):
        plan = DownlinkScheduler(internal_config).select(30, _no_motion(10), [2.0] * 10, 10)

        assert plan.selected == [0, 1, 2, 9]

    def test_score_combines_density_and_acceleration(self, internal_config):
        scheduler = DownlinkScheduler(internal_config)

        assert scheduler.score(4.0, MotionVector(1.0, 3.0)) == pytest.approx(4.0)
        assert scheduler.score(None, MotionVector(1.0, 1.0)) == pytest.approx(1.0)
        assert scheduler.score(2.0, None) == pytest.approx(1.0)
        assert scheduler.score(None, None) == 0.0

    def test_endpoint_scores_pinned(self, internal_config):
        plan = DownlinkScheduler(internal_config).select(0, _no_motion(4), [5.0] * 4, 4)

        assert plan.scores[0] == 0.0 and plan.scores[-1] == 0.0
        assert plan.scores[1] == pytest.approx(2.5)

    def test_attempt_budget_gives_partial_plan(self, make_config):
        from accretion.schemas.user import UserDownlinkConfig
        config = make_config(downlink=UserDownlinkConfig(max_attempts=1))
        n = 20
        plan = DownlinkScheduler(config).select(100, _no_motion(n), list(np.linspace(0, 1, n)), n)

        assert plan.attempts == 1
        assert plan.selected == [0, 17, 18, 19]
        assert not plan.quota_met
        assert_downlink_plan(plan, n)

    def test_short_sequences(self, internal_config):
        scheduler = DownlinkScheduler(internal_config)

        assert scheduler.select(100, [], [], 0).selected == []
        assert scheduler.select(100, [None], [None], 1).selected == [0]
        assert scheduler.select(100, [None] * 2, [None] * 2, 2).selected == [0, 1]


class TestTransmit:
    """Copying selected frames to the downlink store."""

    def test_transmit_copies_frames(self, internal_config, source_store, downlink_store,
                                    write_frame, output_dirs):
        for i in (1, 2, 3):
            write_frame(source_store.path_for(i), np.full((5, 5), 10 * i, dtype=np.uint8))

        sent, failed = DownlinkScheduler(internal_config).transmit([1, 3], source_store, downlink_store)

        assert sent == [1, 3]
        assert failed == []
        assert downlink_store.path_for(1).exists()
        assert not downlink_store.path_for(2).exists()

    def test_transmit_failure_continues(self, internal_config, source_store, downlink_store,
                                        write_frame):
        write_frame(source_store.path_for(2), np.zeros((5, 5), dtype=np.uint8))

        sent, failed = DownlinkScheduler(internal_config).transmit([1, 2], source_store, downlink_store)

        assert sent == [2]
        assert [index for index, _ in failed] == [1]
        assert failed[0][1].kind == "io_error"

from types import SimpleNamespace

import pytest

from hand_input import (
    HandInput, HandState, PointerFilter, ShotTrigger,
    fist_metric, is_fist, palm_center,
)

W = H = 100

TIPS = {8: 0.45, 12: 0.50, 16: 0.54, 20: 0.58}
PIPS = {6: 0.45, 10: 0.50, 14: 0.54, 18: 0.58}


def hand(tip_xy, pip_y=0.45, thumb=(0.35, 0.6)):
    land = [SimpleNamespace(x=0.5, y=0.5) for _ in range(21)]
    land[0] = SimpleNamespace(x=0.5, y=0.8)
    land[5] = SimpleNamespace(x=0.45, y=0.6)
    land[9] = SimpleNamespace(x=0.5, y=0.6)
    land[17] = SimpleNamespace(x=0.58, y=0.62)
    land[4] = SimpleNamespace(x=thumb[0], y=thumb[1])
    for i, x in PIPS.items():
        land[i] = SimpleNamespace(x=x, y=pip_y)
    for i in TIPS:
        land[i] = SimpleNamespace(x=tip_xy(i)[0], y=tip_xy(i)[1])
    return land


def open_hand():
    return hand(lambda i: (TIPS[i], 0.3))


def closed_hand():
    return hand(lambda i: (0.51, 0.68), pip_y=0.6, thumb=(0.5, 0.66))


def half_closed_hand():
    # every fingertip 0.52 hand-lengths from the palm, fingers not curled
    base = hand(lambda i: (0.0, 0.0), pip_y=0.6)
    palm = palm_center(base)
    return hand(lambda i: (palm.x, palm.y - 0.104), pip_y=0.6, thumb=(palm.x, palm.y))


def test_open_hand_is_not_a_fist():
    assert not is_fist(open_hand(), W, H)
    assert fist_metric(open_hand(), W, H) > 1.0


def test_closed_hand_is_a_fist():
    assert is_fist(closed_hand(), W, H)


def test_fist_hysteresis():
    land = half_closed_hand()
    assert fist_metric(land, W, H) == pytest.approx(0.52, abs=1e-3)
    assert not is_fist(land, W, H, was_fist=False)
    assert is_fist(land, W, H, was_fist=True)


def test_pointer_filter_smooths_and_clamps():
    f = PointerFilter(start=0.5, smooth=0.5, deadzone=0.0)
    assert f.update(1.0) == pytest.approx(0.75)
    assert f.update(1.0) == pytest.approx(0.875)
    f = PointerFilter(start=0.9, smooth=1.0, deadzone=0.0)
    assert f.update(1.5) == 1.0


def test_pointer_filter_ignores_jitter():
    f = PointerFilter(start=0.5, smooth=0.5, deadzone=0.01)
    assert f.update(0.505) == 0.5


def test_shot_trigger_fires_on_closing_only():
    t = ShotTrigger(cooldown=0.16)
    assert t.update(True, 0.0)
    assert not t.update(True, 0.1)
    assert not t.update(False, 0.2)
    assert t.update(True, 0.3)


def test_shot_trigger_cooldown():
    t = ShotTrigger(cooldown=0.16)
    assert t.update(True, 1.0)
    t.update(False, 1.05)
    assert not t.update(True, 1.1)
    t.update(False, 1.2)
    assert t.update(True, 1.3)


def test_hand_state_counts_shots_until_consumed():
    s = HandState()
    s.update(0.2, True, True, True, True)
    s.update(0.3, True, True, True, True)
    s.update(0.4, False, True, True, False)
    assert s.consume_shots() == 2
    assert s.consume_shots() == 0
    assert s.snapshot() == (0.4, True, True, False)


def test_poll_reports_no_pointer_without_a_hand():
    h = HandInput()
    assert h.poll(480) == (None, 0)
    h.state.update(0.25, True, True, True, True)
    assert h.poll(480) == (120.0, 1)

from gestures import GestureTracker, TAP, DRAG, clamp


def test_short_still_press_is_a_tap():
    g = GestureTracker()
    g.start(100, 1000)
    assert g.end(105, 1150) == TAP


def test_press_that_moves_is_a_drag():
    g = GestureTracker()
    g.start(100, 1000)
    g.move(130)
    assert g.end(150, 1150) == DRAG


def test_long_press_is_a_drag():
    g = GestureTracker()
    g.start(100, 1000)
    assert g.end(100, 1200) == DRAG


def test_thresholds_are_exclusive():
    g = GestureTracker()
    g.start(100, 0)
    assert g.end(110, 199) == DRAG
    g.start(100, 0)
    assert g.end(109, 199) == TAP


def test_movement_is_measured_from_the_start():
    # wandering away and back still counts as a tap
    g = GestureTracker()
    g.start(100, 0)
    g.move(300)
    assert g.end(102, 50) == TAP


def test_end_without_start_is_ignored():
    g = GestureTracker()
    assert g.end(10, 10) is None
    g.start(0, 0)
    g.end(0, 10)
    assert g.end(0, 20) is None


def test_clamp():
    assert clamp(-5, 0, 10) == 0
    assert clamp(15, 0, 10) == 10
    assert clamp(5, 0, 10) == 5

TAP_MAX_DURATION_MS = 200
TAP_MAX_MOVEMENT = 10

DRAG = "drag"
TAP = "tap"


def clamp(value, lo, hi):
    return max(lo, min(value, hi))


class GestureTracker:
    """
    Tells a tap from a drag.

    A press that is released within TAP_MAX_DURATION_MS and less than
    TAP_MAX_MOVEMENT pixels (horizontally) from where it started is a tap;
    anything else is a drag.
    """

    def __init__(self, max_duration_ms=TAP_MAX_DURATION_MS, max_movement=TAP_MAX_MOVEMENT):
        self.max_duration_ms = max_duration_ms
        self.max_movement = max_movement
        self.start_time = None
        self.start_x = None
        self.last_x = None

    @property
    def active(self):
        return self.start_time is not None

    def start(self, x, timestamp_ms):
        self.start_time = timestamp_ms
        self.start_x = x
        self.last_x = x

    def move(self, x):
        if self.active:
            self.last_x = x

    def end(self, x, timestamp_ms):
        """Finish the gesture; returns TAP, DRAG, or None if none was in progress."""
        if not self.active:
            return None
        duration = timestamp_ms - self.start_time
        movement = abs(x - self.start_x)
        self.cancel()
        if duration < self.max_duration_ms and movement < self.max_movement:
            return TAP
        return DRAG

    def cancel(self):
        self.start_time = None
        self.start_x = None
        self.last_x = None

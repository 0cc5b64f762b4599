import random
import logging
from collections import namedtuple

import numpy as np

import scheduler
from gestures import GestureTracker, TAP, clamp

logger = logging.getLogger(__name__)


ROUND_SECONDS = 120

SPAWN_MS = 500
COUNTDOWN_MS = 1000
MOTION_MS = 16
LASER_FLASH_MS = 300

BUBBLE_RADIUS = 30
SPAWN_OFFSET_Y = 100
RISE_PER_TICK = 2
CULL_Y = -60

GUN_WIDTH = 60

IDLE = "idle"
RUNNING = "running"
GAME_OVER = "game-over"


BubbleView = namedtuple("BubbleView", "id x y radius")

Snapshot = namedtuple(
    "Snapshot",
    "phase started over score time_remaining bubbles gun_position_x gun_center_x laser_visible",
)


class Bubble:
    __slots__ = ("id", "x", "y", "radius")

    def __init__(self, id, x, y, radius=BUBBLE_RADIUS):
        self.id = id
        self.x = x
        self.y = y
        self.radius = radius

    @property
    def center_x(self):
        return self.x + self.radius

    def view(self):
        return BubbleView(self.id, self.x, self.y, self.radius)

    def __repr__(self):
        return f"Bubble(id={self.id}, x={self.x:.1f}, y={self.y:.1f})"


class GameSession:
    """
    All state of one game screen: the round, the bubbles, the gun and the laser.

    Nothing here knows about pygame. The host loop feeds it the current time
    through `advance(now_ms)` and pointer gestures through `press`, `drag` and
    `release`; a renderer reads `snapshot()` or registers a listener.
    """

    def __init__(self, screen_width, screen_height, seed=None, max_bubbles=None,
                 round_seconds=ROUND_SECONDS, bubble_radius=BUBBLE_RADIUS, gun_width=GUN_WIDTH):
        if screen_width <= 0 or screen_height <= 0:
            raise ValueError(f"screen size must be positive, got {screen_width}x{screen_height}")
        if screen_width < 2 * bubble_radius or screen_width < gun_width:
            raise ValueError(f"screen width {screen_width} is narrower than a bubble or the gun")
        if max_bubbles is not None and max_bubbles < 1:
            raise ValueError(f"max_bubbles must be at least 1, got {max_bubbles}")

        self.screen_width = screen_width
        self.screen_height = screen_height
        self.round_seconds = round_seconds
        self.bubble_radius = bubble_radius
        self.gun_width = gun_width
        self.max_bubbles = max_bubbles
        self.rng = random.Random(seed)

        self.phase = IDLE
        self.score = 0
        self.time_remaining = round_seconds
        self.bubbles = []
        self.laser_visible = False
        self.gun_position = 0.0
        self.next_bubble_id = 1
        self.epoch = 0

        self.timers = scheduler.Scheduler(is_current=lambda epoch: epoch == self.epoch)
        self.gesture = GestureTracker()
        self._listeners = []

        self.aim(screen_width / 2)

    # ---- lifecycle ----

    @property
    def started(self):
        return self.phase != IDLE

    @property
    def over(self):
        return self.phase == GAME_OVER

    @property
    def running(self):
        return self.phase == RUNNING

    def start(self):
        if self.running:
            logger.debug("start() ignored, round already running")
            return False
        self.timers.cancel_all()
        self.epoch += 1
        self._clear_round()
        self.aim(self.screen_width / 2)
        self.phase = RUNNING
        self.timers.every(scheduler.SPAWN, SPAWN_MS, self.epoch, self._on_spawn)
        self.timers.every(scheduler.COUNTDOWN, COUNTDOWN_MS, self.epoch, self._on_countdown)
        self.timers.every(scheduler.MOTION, MOTION_MS, self.epoch, self._on_motion)
        logger.debug("round %d started at %d ms", self.epoch, self.timers.now_ms)
        self._changed()
        return True

    def reset(self):
        # gun position is left where the player put it
        self.timers.cancel_all()
        self.epoch += 1
        self._clear_round()
        self.phase = IDLE
        logger.debug("reset to idle (epoch %d)", self.epoch)
        self._changed()

    def _clear_round(self):
        self.gesture.cancel()
        self.score = 0
        self.time_remaining = self.round_seconds
        self.bubbles = []
        self.laser_visible = False
        self.next_bubble_id = 1

    def _end_round(self):
        self.timers.cancel(scheduler.SPAWN, scheduler.COUNTDOWN, scheduler.MOTION)
        self.gesture.cancel()
        self.phase = GAME_OVER
        logger.debug("round %d over, score %d", self.epoch, self.score)

    def advance(self, now_ms):
        return self.timers.advance(now_ms)

    # ---- timer callbacks ----

    def _on_countdown(self):
        if self.time_remaining <= 1:
            self.time_remaining = 0
            self._end_round()
        else:
            self.time_remaining -= 1
        self._changed()

    def _on_spawn(self):
        self.spawn_bubble()

    def _on_motion(self):
        self.step_bubbles()

    # ---- spawner / motion ----

    def spawn_bubble(self):
        if self.max_bubbles is not None and len(self.bubbles) >= self.max_bubbles:
            return None
        radius = self.bubble_radius
        max_x = self.screen_width - 2 * radius
        bubble = Bubble(self.next_bubble_id, self.rng.uniform(0, max_x),
                        self.screen_height - SPAWN_OFFSET_Y, radius)
        self.next_bubble_id += 1
        self.bubbles.append(bubble)
        self._changed()
        return bubble

    def step_bubbles(self):
        for b in self.bubbles:
            b.y -= RISE_PER_TICK
        self.bubbles = [b for b in self.bubbles if b.y > CULL_Y]
        self._changed()

    # ---- gun / laser ----

    @property
    def max_gun_position(self):
        return self.screen_width - self.gun_width

    @property
    def gun_center_x(self):
        return self.gun_position + self.gun_width / 2

    def aim(self, center_x):
        """Put the gun's centre at center_x, clamped to the screen."""
        self.gun_position = float(clamp(center_x - self.gun_width / 2, 0, self.max_gun_position))
        return self.gun_position

    def fire(self, laser_x=None):
        if not self.running:
            return 0
        if laser_x is None:
            laser_x = self.gun_center_x
        self.laser_visible = True
        self.timers.once(scheduler.LASER_HIDE, LASER_FLASH_MS, self.epoch, self._hide_laser)
        hits = self._check_hits(laser_x)
        self._changed()
        return hits

    def _hide_laser(self):
        self.laser_visible = False
        self._changed()

    def _check_hits(self, laser_x):
        if not self.bubbles:
            return 0
        centers = np.fromiter((b.center_x for b in self.bubbles), dtype=float, count=len(self.bubbles))
        radii = np.fromiter((b.radius for b in self.bubbles), dtype=float, count=len(self.bubbles))
        hit = np.abs(centers - laser_x) <= radii
        count = int(hit.sum())
        if count:
            self.bubbles = [b for b, h in zip(self.bubbles, hit) if not h]
            self.score += count
        return count

    # ---- pointer gestures ----

    def press(self, x, timestamp_ms):
        if not self.running:
            return
        self.gesture.start(x, timestamp_ms)
        self.aim(x)
        self._changed()

    def drag(self, x):
        if not self.running or not self.gesture.active:
            return
        self.gesture.move(x)
        self.aim(x)
        self._changed()

    def release(self, x, timestamp_ms):
        """End a gesture; fires if it was a tap. Returns the gesture kind or None."""
        if not self.running:
            self.gesture.cancel()
            return None
        kind = self.gesture.end(x, timestamp_ms)
        if kind == TAP:
            self.fire()
        return kind

    # ---- observers ----

    def add_listener(self, fn):
        self._listeners.append(fn)

    def remove_listener(self, fn):
        if fn in self._listeners:
            self._listeners.remove(fn)

    def _changed(self):
        if not self._listeners:
            return
        snap = self.snapshot()
        for fn in list(self._listeners):
            fn(snap)

    def snapshot(self):
        return Snapshot(
            phase=self.phase,
            started=self.started,
            over=self.over,
            score=self.score,
            time_remaining=self.time_remaining,
            bubbles=tuple(b.view() for b in self.bubbles),
            gun_position_x=self.gun_position,
            gun_center_x=self.gun_center_x,
            laser_visible=self.laser_visible,
        )

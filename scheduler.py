import logging

logger = logging.getLogger(__name__)


SPAWN = "spawn"
COUNTDOWN = "countdown"
MOTION = "motion"
LASER_HIDE = "laser-hide"


class Task:
    def __init__(self, kind, due_ms, period_ms, epoch, callback):
        self.kind = kind
        self.due_ms = due_ms
        self.period_ms = period_ms
        self.epoch = epoch
        self.callback = callback
        self.cancelled = False

    @property
    def periodic(self):
        return self.period_ms is not None

    def __repr__(self):
        return f"Task({self.kind!r}, due={self.due_ms}, period={self.period_ms}, epoch={self.epoch})"


class Scheduler:
    """
    Cooperative timer list driven by an external millisecond clock.

    At most one task per kind is live; scheduling a kind again replaces the
    previous task. `advance(now_ms)` runs every due task to completion in due
    order, one period at a time, so a periodic task that fell behind catches
    up tick by tick. Each task carries the epoch it was scheduled in and
    `is_current(epoch)` decides whether it may still run.
    """

    def __init__(self, is_current=None):
        self.now_ms = 0
        self._tasks = {}
        self._seq = 0
        self._is_current = is_current or (lambda epoch: True)

    def every(self, kind, period_ms, epoch, callback):
        if period_ms <= 0:
            raise ValueError(f"period must be positive, got {period_ms}")
        return self._add(Task(kind, self.now_ms + period_ms, period_ms, epoch, callback))

    def once(self, kind, delay_ms, epoch, callback):
        return self._add(Task(kind, self.now_ms + max(0, delay_ms), None, epoch, callback))

    def _add(self, task):
        self.cancel(task.kind)
        self._tasks[task.kind] = task
        return task

    def cancel(self, *kinds):
        for kind in kinds:
            task = self._tasks.pop(kind, None)
            if task is not None:
                task.cancelled = True

    def cancel_all(self):
        self.cancel(*list(self._tasks))

    def pending(self, kind):
        task = self._tasks.get(kind)
        return task is not None and not task.cancelled

    def kinds(self):
        return sorted(self._tasks)

    def _next_due(self, until_ms):
        best = None
        for task in self._tasks.values():
            if task.due_ms > until_ms:
                continue
            if best is None or task.due_ms < best.due_ms:
                best = task
        return best

    def advance(self, now_ms):
        """Run everything due up to now_ms. Returns the number of callbacks run."""
        if now_ms < self.now_ms:
            now_ms = self.now_ms
        ran = 0
        while True:
            task = self._next_due(now_ms)
            if task is None:
                break
            self.now_ms = task.due_ms
            if not self._is_current(task.epoch):
                logger.debug("dropping stale %r", task)
                self.cancel(task.kind)
                continue
            if task.periodic:
                task.due_ms += task.period_ms
            else:
                self._tasks.pop(task.kind, None)
            task.callback()
            ran += 1
        self.now_ms = now_ms
        return ran

import time
import platform
import threading


PREFERRED_INDEX = 0
PREFERRED_RESOLUTIONS = [(640, 480), (960, 540), (1280, 720)]
FPS_LIMIT_CAMERA = 45
MIRROR_CAMERA = True

POINTER_SMOOTH = 0.45
JITTER_DEADZONE = 0.004

FIST_ENTER_METRIC = 0.50
FIST_EXIT_METRIC = 0.54
CURL_DY_RATIO = 0.07
REQUIRED_CURLED_COUNT = 3
SHOT_COOLDOWN_S = 0.16


class HandState:
    """Latest hand reading, shared between the camera thread and the game loop."""

    def __init__(self, pointer_x=0.5):
        self.lock = threading.Lock()
        self.pointer_x = pointer_x
        self.shots = 0
        self.cam_ok = False
        self.hand_ok = False
        self.is_fist = False

    def update(self, pointer_x, shot, cam_ok, hand_ok, is_fist):
        with self.lock:
            self.pointer_x = pointer_x
            if shot:
                self.shots += 1
            self.cam_ok = cam_ok
            self.hand_ok = hand_ok
            self.is_fist = is_fist

    def consume_shots(self):
        with self.lock:
            n = self.shots
            self.shots = 0
            return n

    def snapshot(self):
        with self.lock:
            return (self.pointer_x, self.cam_ok, self.hand_ok, self.is_fist)


# Landmarks are mediapipe's normalised (x, y) hand points; 0 is the wrist,
# 5/9/17 the knuckles, 8/12/16/20 the fingertips.

_FINGER_TIP = {'index': 8, 'middle': 12, 'ring': 16, 'pinky': 20}
_FINGER_PIP = {'index': 6, 'middle': 10, 'ring': 14, 'pinky': 18}


def _dist(a, b, w, h):
    dx = (a.x - b.x) * w
    dy = (a.y - b.y) * h
    return (dx*dx + dy*dy) ** 0.5


def _ref_len(land, w, h):
    return _dist(land[0], land[9], w, h) + 1e-6


class _Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y


def palm_center(land):
    return _Point((land[0].x + land[5].x + land[17].x) / 3.0,
                  (land[0].y + land[5].y + land[17].y) / 3.0)


def curled_count(land, w, h):
    ref = _ref_len(land, w, h)
    count = 0
    for finger in ('index', 'middle', 'ring', 'pinky'):
        dy = (land[_FINGER_TIP[finger]].y - land[_FINGER_PIP[finger]].y) * h
        if dy > CURL_DY_RATIO * ref:
            count += 1
    return count


def fist_metric(land, w, h):
    """Largest fingertip-to-palm distance relative to hand size; small means closed."""
    palm = palm_center(land)
    ref = _ref_len(land, w, h)
    tips = max(_dist(land[i], palm, w, h) / ref for i in _FINGER_TIP.values())
    thumb = _dist(land[4], palm, w, h) / ref
    return max(tips, thumb * 0.9)


def is_fist(land, w, h, was_fist=False):
    # hysteresis: a closed hand has to open past FIST_EXIT_METRIC to count as open
    threshold = FIST_EXIT_METRIC if was_fist else FIST_ENTER_METRIC
    return curled_count(land, w, h) >= REQUIRED_CURLED_COUNT or fist_metric(land, w, h) < threshold


class PointerFilter:
    """Exponential smoothing of the normalised pointer x with a small dead zone."""

    def __init__(self, start=0.5, smooth=POINTER_SMOOTH, deadzone=JITTER_DEADZONE):
        self.value = start
        self.smooth = smooth
        self.deadzone = deadzone

    def update(self, x):
        if abs(x - self.value) < self.deadzone:
            return self.value
        self.value = (1 - self.smooth) * self.value + self.smooth * x
        self.value = max(0.0, min(1.0, self.value))
        return self.value


class ShotTrigger:
    """Fires once per hand closing, no faster than SHOT_COOLDOWN_S."""

    def __init__(self, cooldown=SHOT_COOLDOWN_S):
        self.cooldown = cooldown
        self.closed = False
        self.last_shot = None

    def update(self, closed, now):
        shot = False
        if closed and not self.closed:
            if self.last_shot is None or now - self.last_shot >= self.cooldown:
                shot = True
                self.last_shot = now
        self.closed = closed
        return shot


def open_camera():
    import cv2

    if platform.system() == "Windows":
        backends = [cv2.CAP_DSHOW, cv2.CAP_MSMF, cv2.CAP_ANY]
    elif platform.system() == "Darwin":
        backends = [cv2.CAP_AVFOUNDATION, cv2.CAP_ANY]
    else:
        backends = [cv2.CAP_V4L2, cv2.CAP_ANY]

    def try_open(index, backend):
        cap = cv2.VideoCapture(index, backend)
        if not cap.isOpened():
            cap.release()
            return None
        for (rw, rh) in PREFERRED_RESOLUTIONS:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, rw)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, rh)
            cap.set(cv2.CAP_PROP_FPS, FPS_LIMIT_CAMERA)
            ok, frame = cap.read()
            if ok and frame is not None:
                return cap
        cap.release()
        return None

    for b in backends:
        cap = try_open(PREFERRED_INDEX, b)
        if cap:
            return cap
    for b in backends:
        for i in range(6):
            if i == PREFERRED_INDEX:
                continue
            cap = try_open(i, b)
            if cap:
                return cap
    return None


def camera_worker(state, stop_event):
    import cv2
    import mediapipe as mp

    cap = open_camera()
    if cap is None:
        print("ERROR: Could not open camera. Use the mouse instead.")
        state.update(0.5, False, False, False, False)
        return

    hands = mp.solutions.hands.Hands(
        max_num_hands=1,
        model_complexity=1,
        min_detection_confidence=0.5,
        min_tracking_confidence=0.5
    )
    pointer = PointerFilter()
    trigger = ShotTrigger()
    fist = False

    frame_interval = 1.0 / float(FPS_LIMIT_CAMERA)
    last_time = 0.0
    try:
        while not stop_event.is_set():
            now = time.time()
            if now - last_time < frame_interval:
                time.sleep(0.001)
                continue
            last_time = now

            ok, frame = cap.read()
            if not ok or frame is None:
                state.update(pointer.value, False, True, False, False)
                time.sleep(0.01)
                continue
            if MIRROR_CAMERA:
                frame = cv2.flip(frame, 1)

            h, w = frame.shape[:2]
            res = hands.process(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))
            if not res.multi_hand_landmarks:
                fist = False
                trigger.update(False, now)
                state.update(pointer.value, False, True, False, False)
                continue

            land = res.multi_hand_landmarks[0].landmark
            fist = is_fist(land, w, h, was_fist=fist)
            x = pointer.update(palm_center(land).x)
            state.update(x, trigger.update(fist, now), True, True, fist)
    finally:
        cap.release()
        hands.close()


class HandInput:
    """Runs hand tracking on a daemon thread; the game loop polls `poll()`."""

    def __init__(self):
        self.state = HandState()
        self._stop = threading.Event()
        self._thread = None

    def start(self):
        self._thread = threading.Thread(target=camera_worker, args=(self.state, self._stop), daemon=True)
        self._thread.start()

    def stop(self):
        self._stop.set()

    def poll(self, screen_width):
        """Returns (pointer x in screen pixels or None when no hand, shots since last poll)."""
        pointer_x, cam_ok, hand_ok, _ = self.state.snapshot()
        shots = self.state.consume_shots()
        if not (cam_ok and hand_ok):
            return None, shots
        return pointer_x * screen_width, shots

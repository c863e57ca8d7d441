"""Test doubles shared across the suite."""

import json

from PIL import Image

from channel import MessageChannel
from errors import FetchError


MESH_MODEL = {
    "faces": [4, 3],
    "amplitude": [0.5, 0.5, 0.5],
    "colors": ["#ff0000", "#00ff00"],
    "lightSpeed": 500,
}
METABALL_MODEL = {
    "colors": ["#ff0000", "#0000ff"],
    "ranges": {"minGroups": 2, "maxGroups": 2, "minBalls": 3, "maxBalls": 3},
}
FLUID_MODEL = {
    "groups": [{
        "gradient": {
            "stops": [
                {"position": 0.0, "color": "#000000"},
                {"position": 1.0, "color": "#ffffff"},
            ],
            "orientation": "vertical",
        },
    }],
    "variety": 0.3,
    "orbit": 0.2,
}
TEXT_MODEL = {"text": "hello", "size": 12}


def wire_document(*models, product="jetbrains", size=(800, 600)):
    """Scene document as the core sends it: layer models as JSON strings."""
    return {
        "product": product,
        "size": list(size),
        "background": "#000000",
        "layers": [{"model": json.dumps(m), "visible": True} for m in models],
    }


class RecordingChannel(MessageChannel):
    """Channel that remembers every outbound notification."""

    def __init__(self):
        super().__init__()
        self.sent = []

    def send(self, name, payload=None):
        self.sent.append((name, payload))
        super().send(name, payload)

    def sent_to(self, name):
        return [payload for port, payload in self.sent if port == name]


class _Timer:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Virtual clock: timers only fire when the test advances time."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def call_later(self, delay, callback):
        timer = _Timer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [t for t in self.timers if not t.cancelled and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.timers.remove(timer)
            self.now = timer.due
            timer.callback()
        self.now = target


class FakeSurface:
    """Paints a solid red layer and one overlay with a blue top-left pixel."""

    def __init__(self, events=None, layer_color=(255, 0, 0, 255)):
        self.events = events if events is not None else []
        self.layer_color = layer_color

    async def paint_layers(self, size):
        self.events.append("layers")
        return Image.new("RGBA", size, self.layer_color)

    async def paint_overlays(self, size):
        self.events.append("overlays")
        overlay = Image.new("RGBA", size, (0, 0, 0, 0))
        overlay.putpixel((0, 0), (0, 0, 255, 255))
        return [overlay]


class BrokenSurface(FakeSurface):
    """Fails the way an unavailable browser does."""

    async def paint_layers(self, size):
        self.events.append("layers")
        raise RuntimeError("browser not available")


class FakeFetcher:
    def __init__(self, fail=()):
        self.fail = set(fail)
        self.requested = []

    async def fetch(self, path):
        self.requested.append(path)
        if path in self.fail:
            raise FetchError(f"missing {path}", path=path)
        return f"content of {path}".encode()


async def no_frame():
    return None


async def no_sleep(_seconds):
    return None

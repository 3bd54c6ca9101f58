"""
Sample data fixtures for testing.
"""

import asyncio
from typing import List, Optional, Union

# Far-future and long-past access tokens, URL-encoded JSON {"expires": N}
FAR_FUTURE_TOKEN = "%7B%22expires%22%3A9999999999%7D"
PAST_TOKEN = "%7B%22expires%22%3A1000%7D"

# Wall clock used by tests that depend on expiry
NOW = 1_700_000_000.0

SAMPLE_PLAYLIST = f"""#EXTM3U
#EXTINF:-1,alice [LIVE] - Just Chatting - 120 viewers
https://example.test/alice.m3u8?token={FAR_FUTURE_TOKEN}
#EXTINF:-1,bob - 0 viewers - Offline
https://example.test/bob.m3u8
#EXTINF:-1,carol - 5 viewers
https://example.test/carol.m3u8?token={PAST_TOKEN}
#EXTINF:-1,dave [LIVE] - Minecraft - 3,400 viewers
https://example.test/dave.m3u8
"""

# Same playlist after alice and carol went away
PLAYLIST_WITHOUT_ALICE = f"""#EXTM3U
#EXTINF:-1,bob - 0 viewers - Offline
https://example.test/bob.m3u8
#EXTINF:-1,dave [LIVE] - Minecraft - 3,400 viewers
https://example.test/dave.m3u8
"""

PLAYLIST_URL = "https://example.test/playlist.m3u8"


class FakeClock:
    """Callable wall clock that only moves when told to."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubPlaylistClient:
    """
    Stand-in for PlaylistClient.

    Returns the queued bodies in order (the last one repeats). A queued
    exception instance is raised instead. When ``gate`` is an asyncio.Event
    the fetch waits for it, which keeps a refresh in flight.
    """

    def __init__(self, *bodies: Union[str, Exception]):
        self.bodies: List[Union[str, Exception]] = list(bodies) or [SAMPLE_PLAYLIST]
        self.calls = 0
        self.forced: List[bool] = []
        self.gate: Optional[asyncio.Event] = None

    async def fetch(self, force: bool = False) -> str:
        index = min(self.calls, len(self.bodies) - 1)
        self.calls += 1
        self.forced.append(force)
        if self.gate is not None:
            await self.gate.wait()
        body = self.bodies[index]
        if isinstance(body, Exception):
            raise body
        return body

    async def aclose(self) -> None:
        pass

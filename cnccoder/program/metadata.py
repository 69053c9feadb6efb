"""Program metadata: name, generator identity, host, author, timestamp.

Sampling the environment is isolated in ``sample_metadata`` so programs
receive metadata through an injectable factory; tests pass a fixed
``ProgramMetadata`` instead of touching the host.
"""

from __future__ import annotations

import getpass
import random
import socket
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from cnccoder._version import __version__

GENERATOR = f"cnccoder {__version__}"

_ADJECTIVES = (
    "amber", "brisk", "calm", "dapper", "eager", "fuzzy", "gentle", "hardy",
    "jolly", "keen", "lucid", "mellow", "nimble", "plucky", "quiet", "rustic",
    "steady", "tidy", "vivid", "witty",
)
_NOUNS = (
    "anvil", "bevel", "chisel", "dowel", "flute", "gouge", "jig", "lathe",
    "mortise", "plane", "rasp", "router", "spindle", "tenon", "vise", "wedge",
)


@dataclass(frozen=True)
class ProgramMetadata:
    """Descriptive header attached to a program.

    Parameters
    ----------
    name : str
        Program name; also the base filename used when writing projects.
    generator : str
        Identity of the producing software.
    host : str
        Machine the program was generated on.
    author : str
        User that generated the program.
    created : datetime
        Creation timestamp (UTC).
    """

    name: str
    generator: str = GENERATOR
    host: str = "unknown"
    author: str = "unknown"
    created: datetime = datetime(1970, 1, 1, tzinfo=timezone.utc)

    def renamed(self, name: str) -> ProgramMetadata:
        return replace(self, name=name)

    def header_lines(self) -> list[str]:
        """Lines emitted as comments at the top of generated G-code."""
        created = self.created.astimezone(timezone.utc)
        return [
            f"Name: {self.name}",
            f"Generator: {self.generator}",
            f"Host: {self.host}",
            f"Author: {self.author}",
            f"Created: {created.strftime('%Y-%m-%dT%H:%M:%SZ')}",
        ]


def generate_name(rng: random.Random | None = None) -> str:
    """Random ``adjective_noun`` program name."""
    rng = rng or random.Random()
    return f"{rng.choice(_ADJECTIVES)}_{rng.choice(_NOUNS)}"


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        # No login name in containers without a passwd entry
        return "unknown"


def sample_metadata(name: str | None = None) -> ProgramMetadata:
    """Collect metadata from the running environment."""
    return ProgramMetadata(
        name=name or generate_name(),
        generator=GENERATOR,
        host=socket.gethostname() or "unknown",
        author=_current_user(),
        created=datetime.now(timezone.utc),
    )

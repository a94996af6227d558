# ----------------------------------------------------------------
# Mount Table Records
# ----------------------------------------------------------------
"""
Append-only access to the system mount table.

Duplicate checks search the raw file text: a device or mount path counts as
mapped as soon as it appears anywhere in the file, including inside a comment
or a longer path (``/dev/VG0/data10`` covers ``/dev/VG0/data1``, and
``/home/shared`` covers ``/home``). Such coincidental matches suppress a new
entry; that false-positive risk is accepted behaviour. Existing lines are
never rewritten or removed.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class FstabEntry:
    device: str
    mountpoint: str
    fstype: str = "auto"
    options: str = "defaults"
    dump: int = 0
    passno: int = 2

    def render(self) -> str:
        return (
            f"{self.device} {self.mountpoint} {self.fstype} "
            f"{self.options} {self.dump} {self.passno}"
        )


class FstabTable:
    """The mount table file, re-read on every query."""

    def __init__(self, path: str) -> None:
        self.path = path

    def read(self) -> str:
        if not os.path.exists(self.path):
            return ""
        with open(self.path) as f:
            return f.read()

    def contains(self, text: str) -> bool:
        """
        Check whether text appears anywhere in the table.

        Args:
            text: Device path or mount path to look for

        Returns:
            True on any substring match, coincidental ones included
        """
        return text in self.read()

    def append(self, entry: FstabEntry) -> None:
        """Append one entry, keeping every existing line as it is."""
        content = self.read()
        with open(self.path, "a") as f:
            if content and not content.endswith("\n"):
                f.write("\n")
            f.write(entry.render() + "\n")

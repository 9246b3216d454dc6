"""Queue family flags and selection of graphics, compute and transfer families."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Sequence

QUEUE_FAMILY_IGNORED = 0xFFFFFFFF


class QueueFlags(enum.IntFlag):
    NONE = 0
    GRAPHICS = 0x1
    COMPUTE = 0x2
    TRANSFER = 0x4
    SPARSE_BINDING = 0x8
    PROTECTED = 0x10


_FLAG_NAMES = (
    (QueueFlags.GRAPHICS, "Graphics"),
    (QueueFlags.COMPUTE, "Compute"),
    (QueueFlags.TRANSFER, "Transfer"),
    (QueueFlags.SPARSE_BINDING, "Sparse Binding"),
    (QueueFlags.PROTECTED, "Protected"),
)


@dataclass(frozen=True)
class QueueFamily:
    """Properties of one queue family of a device."""

    queue_count: int
    queue_flags: QueueFlags


def queue_flags_to_string(flags: QueueFlags) -> str:
    """Render flags as ``{ Graphics | Compute }``, or ``{}`` when none are set."""
    names = [name for flag, name in _FLAG_NAMES if flags & flag]
    if not names:
        return "{}"
    return "{ " + " | ".join(names) + " }"


def select_queue_families(
    families: Sequence[QueueFamily], supports_present: Callable[[int], bool]
) -> tuple[int, int, int]:
    """Pick (graphics+present, compute, transfer) family indices.

    Among eligible families the one with the most queues wins; missing
    families are reported as ``QUEUE_FAMILY_IGNORED``.
    """
    best = {"graphics": (QUEUE_FAMILY_IGNORED, 0),
            "compute": (QUEUE_FAMILY_IGNORED, 0),
            "transfer": (QUEUE_FAMILY_IGNORED, 0)}

    for index, family in enumerate(families):
        flags = family.queue_flags
        graphics = bool(flags & QueueFlags.GRAPHICS)
        compute = bool(flags & QueueFlags.COMPUTE)
        transfer = bool(flags & QueueFlags.TRANSFER)
        if graphics and supports_present(index):
            kind = "graphics"
        elif compute and not graphics:
            kind = "compute"
        elif transfer and not graphics and not compute:
            kind = "transfer"
        else:
            continue
        if family.queue_count > best[kind][1]:
            best[kind] = (index, family.queue_count)

    return best["graphics"][0], best["compute"][0], best["transfer"][0]
from __future__ import annotations

from dataclasses import dataclass

from demo_parser.services.replay_events import ReplayHeader, Side

# Round durations are measured against the nominal 128-tick simulation rate,
# not the header's frame rate.
ROUND_TICK_RATE = 128

# Reserved output fields (ADR, HS%, KAST, rating); not computed.
RESERVED_METRIC_VALUE = 0.0

TEAM_LABELS = {
    Side.T: "T",
    Side.CT: "CT",
    Side.SPECTATOR: "spectator",
}


@dataclass(frozen=True)
class Metadata:
    map_name: str
    duration: int
    tick_rate: int


def team_label(side: Side) -> str:
    return TEAM_LABELS.get(side, TEAM_LABELS[Side.SPECTATOR])


def round_duration_seconds(start_tick: int, end_tick: int) -> int:
    """Whole seconds between two ticks, truncated toward zero."""
    delta = end_tick - start_tick
    seconds = abs(delta) // ROUND_TICK_RATE
    return seconds if delta >= 0 else -seconds


def metadata_from_header(header: ReplayHeader) -> Metadata:
    return Metadata(
        map_name=header.map_name,
        duration=int(header.playback_seconds),
        tick_rate=int(round(header.frame_rate)),
    )

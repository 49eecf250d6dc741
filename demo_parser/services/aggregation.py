from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from demo_parser.services.metrics import round_duration_seconds, team_label
from demo_parser.services.replay_events import (
    UNKNOWN_NAME,
    DemoEventSource,
    Kill,
    PlayerRef,
    ReplayEvent,
    RoundEnd,
    RoundStart,
)
from demo_parser.services.result import (
    KILL_EVENT,
    DemoResult,
    EventRecord,
    KillPayload,
    PlayerStats,
    RoundRecord,
    assemble_result,
)

logger = logging.getLogger(__name__)


@dataclass
class PlayerAccumulator:
    steam_id: int
    name: str
    team: str
    kills: int = 0
    deaths: int = 0
    assists: int = 0

    def freeze(self) -> PlayerStats:
        return PlayerStats(
            steam_id=self.steam_id,
            name=self.name,
            team=self.team,
            kills=self.kills,
            deaths=self.deaths,
            assists=self.assists,
        )


@dataclass
class AggregationState:
    current_round: int = 0
    round_start_tick: int = 0
    players: dict[int, PlayerAccumulator] = field(default_factory=dict)
    rounds: list[RoundRecord] = field(default_factory=list)
    events: list[EventRecord] = field(default_factory=list)

    def player(self, ref: PlayerRef) -> PlayerAccumulator:
        # Name and team are fixed by the first sighting, even if the player swaps sides later.
        accumulator = self.players.get(ref.steam_id)
        if accumulator is None:
            accumulator = PlayerAccumulator(
                steam_id=ref.steam_id,
                name=ref.name,
                team=team_label(ref.side),
            )
            self.players[ref.steam_id] = accumulator
        return accumulator


def _display_name(ref: PlayerRef | None) -> str:
    if ref is None:
        return UNKNOWN_NAME
    return ref.name


def _on_round_start(state: AggregationState, event: RoundStart) -> None:
    state.current_round += 1
    state.round_start_tick = event.tick


def _on_round_end(state: AggregationState, event: RoundEnd) -> None:
    state.rounds.append(
        RoundRecord(
            round_number=state.current_round,
            winner_side=team_label(event.winner),
            win_reason=event.reason,
            ct_score=event.ct_score,
            t_score=event.t_score,
            duration_seconds=round_duration_seconds(state.round_start_tick, event.tick),
        )
    )


def _on_kill(state: AggregationState, event: Kill) -> None:
    if event.killer is not None:
        state.player(event.killer).kills += 1
    if event.victim is not None:
        state.player(event.victim).deaths += 1
    if event.assister is not None:
        state.player(event.assister).assists += 1

    state.events.append(
        EventRecord(
            event_type=KILL_EVENT,
            tick=event.tick,
            round_number=state.current_round,
            data=KillPayload(
                killer=_display_name(event.killer),
                victim=_display_name(event.victim),
                weapon=event.weapon,
                is_headshot=event.is_headshot,
                penetrated=event.penetrated,
                assister=event.assister.name if event.assister is not None else None,
            ),
        )
    )


def apply_event(state: AggregationState, event: ReplayEvent) -> None:
    """Fold one replay event into ``state`` in place."""
    if isinstance(event, Kill):
        _on_kill(state, event)
    elif isinstance(event, RoundStart):
        _on_round_start(state, event)
    elif isinstance(event, RoundEnd):
        _on_round_end(state, event)
    else:
        raise TypeError(f"Unsupported replay event: {type(event).__name__}")


def aggregate_events(events: Iterable[ReplayEvent]) -> AggregationState:
    state = AggregationState()
    for event in events:
        apply_event(state, event)
    return state


def parse_demo(demo_id: str, source: DemoEventSource) -> DemoResult:
    """Consume the source's event stream once and build the demo result.

    A DemoDecodeError raised by the source at any point propagates; no
    partial result is built.
    """
    state = aggregate_events(source.iter_events())
    result = assemble_result(demo_id, source.header(), state)
    logger.debug(
        "Aggregated demo=%s rounds=%s events=%s players=%s last_round=%s",
        demo_id,
        len(result.rounds),
        len(result.events),
        len(result.players),
        state.current_round,
    )
    return result

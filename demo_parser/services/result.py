from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from demo_parser.services.metrics import RESERVED_METRIC_VALUE, Metadata, metadata_from_header
from demo_parser.services.replay_events import ReplayHeader
from demo_parser.utils import to_jsonable

if TYPE_CHECKING:
    from demo_parser.services.aggregation import AggregationState

KILL_EVENT = "kill"


@dataclass(frozen=True)
class PlayerStats:
    steam_id: int
    name: str
    team: str
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    adr: float = RESERVED_METRIC_VALUE
    hsp: float = RESERVED_METRIC_VALUE
    kast: float = RESERVED_METRIC_VALUE
    rating: float = RESERVED_METRIC_VALUE

    def to_payload(self) -> dict[str, Any]:
        return {
            "steamId": str(self.steam_id),
            "name": self.name,
            "team": self.team,
            "kills": self.kills,
            "deaths": self.deaths,
            "assists": self.assists,
            "adr": self.adr,
            "hsp": self.hsp,
            "kast": self.kast,
            "rating": self.rating,
            "stats": {},
        }


@dataclass(frozen=True)
class RoundRecord:
    round_number: int
    winner_side: str
    win_reason: str
    ct_score: int
    t_score: int
    duration_seconds: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "roundNumber": self.round_number,
            "winnerSide": self.winner_side,
            "winReason": self.win_reason,
            "ctScore": self.ct_score,
            "tScore": self.t_score,
            "durationSeconds": self.duration_seconds,
            "roundData": {},
        }


@dataclass(frozen=True)
class KillPayload:
    killer: str
    victim: str
    weapon: str
    is_headshot: bool
    penetrated: int
    assister: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = {
            "killer": self.killer,
            "victim": self.victim,
            "weapon": self.weapon,
            "isHeadshot": self.is_headshot,
            "penetrated": self.penetrated,
        }
        if self.assister is not None:
            payload["assister"] = self.assister
        return payload


@dataclass(frozen=True)
class EventRecord:
    event_type: str
    tick: int
    round_number: int
    data: KillPayload

    def to_payload(self) -> dict[str, Any]:
        return {
            "eventType": self.event_type,
            "tick": self.tick,
            "roundNumber": self.round_number,
            "eventData": self.data.to_payload(),
        }


@dataclass(frozen=True)
class DemoResult:
    """Everything parsed out of one demo; the unit posted to the webhook."""

    demo_id: str
    players: tuple[PlayerStats, ...]
    rounds: tuple[RoundRecord, ...]
    events: tuple[EventRecord, ...]
    metadata: Metadata

    def to_payload(self) -> dict[str, Any]:
        return to_jsonable(
            {
                "demoId": self.demo_id,
                "players": [player.to_payload() for player in self.players],
                "rounds": [round_.to_payload() for round_ in self.rounds],
                "events": [event.to_payload() for event in self.events],
                "metadata": {
                    "mapName": self.metadata.map_name,
                    "duration": self.metadata.duration,
                    "tickRate": self.metadata.tick_rate,
                },
            }
        )


def assemble_result(demo_id: str, header: ReplayHeader, state: AggregationState) -> DemoResult:
    players = tuple(accumulator.freeze() for accumulator in state.players.values())
    return DemoResult(
        demo_id=demo_id,
        players=players,
        rounds=tuple(state.rounds),
        events=tuple(state.events),
        metadata=metadata_from_header(header),
    )

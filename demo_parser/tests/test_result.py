import json

import numpy as np

from demo_parser.services.aggregation import AggregationState, aggregate_events
from demo_parser.services.metrics import round_duration_seconds, team_label
from demo_parser.services.replay_events import Kill, PlayerRef, ReplayHeader, RoundEnd, RoundStart, Side
from demo_parser.services.result import assemble_result
from demo_parser.utils import to_jsonable

HEADER = ReplayHeader(map_name="de_inferno", playback_seconds=2400.9, frame_rate=63.9)


def _state() -> AggregationState:
    killer = PlayerRef(steam_id=76561198016259349, name="s1mple", side=Side.CT)
    victim = PlayerRef(steam_id=76561198000000002, name="Victim", side=Side.T)
    return aggregate_events(
        [
            RoundStart(tick=64),
            Kill(
                tick=900,
                killer=killer,
                victim=victim,
                assister=None,
                weapon="awp",
                is_headshot=False,
                penetrated=1,
            ),
            RoundEnd(tick=64 + 128 * 45, winner=Side.CT, reason="ct_killed", ct_score=1, t_score=0),
        ]
    )


def test_payload_shape():
    result = assemble_result("demo-42", HEADER, _state())
    payload = result.to_payload()

    assert payload["demoId"] == "demo-42"
    assert payload["metadata"] == {"mapName": "de_inferno", "duration": 2400, "tickRate": 64}

    players = {player["name"]: player for player in payload["players"]}
    assert players["s1mple"]["steamId"] == "76561198016259349"
    assert players["s1mple"]["team"] == "CT"
    assert players["s1mple"]["kills"] == 1
    assert players["s1mple"]["adr"] == 0.0
    assert players["s1mple"]["rating"] == 0.0
    assert players["s1mple"]["stats"] == {}
    assert players["Victim"]["deaths"] == 1

    assert payload["rounds"] == [
        {
            "roundNumber": 1,
            "winnerSide": "CT",
            "winReason": "ct_killed",
            "ctScore": 1,
            "tScore": 0,
            "durationSeconds": 45,
            "roundData": {},
        }
    ]
    assert payload["events"] == [
        {
            "eventType": "kill",
            "tick": 900,
            "roundNumber": 1,
            "eventData": {
                "killer": "s1mple",
                "victim": "Victim",
                "weapon": "awp",
                "isHeadshot": False,
                "penetrated": 1,
            },
        }
    ]
    json.dumps(payload)


def test_assemble_copies_state():
    state = _state()
    result = assemble_result("demo", HEADER, state)

    state.rounds.clear()
    state.players.clear()

    assert len(result.rounds) == 1
    assert len(result.players) == 2


def test_team_labels():
    assert team_label(Side.T) == "T"
    assert team_label(Side.CT) == "CT"
    assert team_label(Side.SPECTATOR) == "spectator"


def test_round_duration_truncates_toward_zero():
    assert round_duration_seconds(0, 1280) == 10
    assert round_duration_seconds(0, 1279) == 9
    assert round_duration_seconds(200, 100) == 0
    assert round_duration_seconds(300, 0) == -2


def test_to_jsonable_converts_numpy_scalars():
    payload = {"steamid": np.uint64(76561198016259349), "ratio": np.float32(1.25), "nan": float("nan")}
    result = to_jsonable(payload)
    assert result["steamid"] == 76561198016259349
    assert result["ratio"] == 1.25
    assert result["nan"] is None

from __future__ import annotations

import enum
import gzip
import io
import logging
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Protocol

import pandas as pd
import polars as pl
from awpy import Demo

from demo_parser.errors import DemoDecodeError
from demo_parser.utils import (
    is_missing,
    normalize_steamid64,
    safe_bool,
    safe_float,
    safe_int,
    safe_str,
)

DEFAULT_FRAME_RATE = 64.0
UNKNOWN_NAME = "unknown"
GZIP_MAGIC = b"\x1f\x8b"

ROUND_COL_CANDIDATES = ["round_num", "round", "round_number", "roundNum", "roundNumber"]
TICK_COL_CANDIDATES = ["tick", "ticks", "tick_num"]
START_TICK_CANDIDATES = ["start", "start_tick", "round_start_tick", "startTick", "roundStartTick"]
END_TICK_CANDIDATES = ["end", "end_tick", "round_end_tick", "endTick", "roundEndTick", "official_end"]
# The demo keeps recording after a round is decided, up to its official end.
LAST_TICK_CANDIDATES = ["official_end", "officialEnd"] + END_TICK_CANDIDATES
WINNER_CANDIDATES = ["winner", "winning_side", "round_winner", "winner_side", "winnerSide"]
REASON_CANDIDATES = ["reason", "round_end_reason", "win_reason", "end_reason", "winReason"]
CT_SCORE_CANDIDATES = ["ct_score", "ctScore", "ct_team_score", "ct_rounds"]
T_SCORE_CANDIDATES = ["t_score", "tScore", "t_team_score", "t_rounds"]
PLAYBACK_KEYS = ("playback_time", "playback_seconds", "playbackTime", "duration")

KILLS_STEAMID_COLUMNS = ["attacker_steamid", "victim_steamid", "assister_steamid"]
ROLE_COLUMNS = {
    "attacker": {
        "steamid": ["attacker_steamid", "killer_steamid", "attackerSteamID64", "attackerSteamID"],
        "name": ["attacker_name", "killer_name", "attackerName"],
        "side": ["attacker_side", "attacker_team", "attacker_team_num", "attackerTeam"],
    },
    "victim": {
        "steamid": ["victim_steamid", "victimSteamID64", "victimSteamID"],
        "name": ["victim_name", "victimName"],
        "side": ["victim_side", "victim_team", "victim_team_num", "victimTeam"],
    },
    "assister": {
        "steamid": ["assister_steamid", "assistant_steamid", "assisterSteamID64", "assisterSteamID"],
        "name": ["assister_name", "assistant_name", "assisterName"],
        "side": ["assister_side", "assister_team", "assister_team_num", "assisterTeam"],
    },
}

# Same-tick ordering: a kill on the last tick still belongs to the round that is ending,
# and the next round can only start after the previous one ended.
_KILL_PRIORITY = 0
_ROUND_END_PRIORITY = 1
_ROUND_START_PRIORITY = 2

logger = logging.getLogger(__name__)


class Side(enum.Enum):
    SPECTATOR = "spectator"
    T = "T"
    CT = "CT"


@dataclass(frozen=True)
class PlayerRef:
    steam_id: int
    name: str
    side: Side


@dataclass(frozen=True)
class RoundStart:
    tick: int


@dataclass(frozen=True)
class RoundEnd:
    tick: int
    winner: Side
    reason: str
    ct_score: int
    t_score: int


@dataclass(frozen=True)
class Kill:
    tick: int
    killer: PlayerRef | None
    victim: PlayerRef | None
    assister: PlayerRef | None
    weapon: str
    is_headshot: bool
    penetrated: int


ReplayEvent = RoundStart | RoundEnd | Kill


@dataclass(frozen=True)
class ReplayHeader:
    map_name: str
    playback_seconds: float
    frame_rate: float


class DemoEventSource(Protocol):
    def header(self) -> ReplayHeader:
        ...

    def iter_events(self) -> Iterator[ReplayEvent]:
        ...


def normalize_side(value: Any) -> Side:
    if is_missing(value):
        return Side.SPECTATOR
    if isinstance(value, Side):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        val = int(value)
        if val == 2:
            return Side.T
        if val == 3:
            return Side.CT
        return Side.SPECTATOR
    value_str = str(value).strip().lower()
    if value_str in {"t", "terrorist", "terrorists", "2"}:
        return Side.T
    if value_str in {"ct", "counterterrorist", "counterterrorists", "counter-terrorist", "counter_terrorist", "3"}:
        return Side.CT
    return Side.SPECTATOR


def unpack_demo_bytes(data: bytes) -> bytes:
    """Return raw .dem bytes, unwrapping gzip and zip uploads."""
    if data[:2] == GZIP_MAGIC:
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError) as exc:
            raise DemoDecodeError(f"Corrupt gzip demo: {exc}") from exc
    buffer = io.BytesIO(data)
    if zipfile.is_zipfile(buffer):
        try:
            with zipfile.ZipFile(buffer, "r") as zf:
                dem_names = [n for n in zf.namelist() if n.lower().endswith(".dem")]
                if not dem_names:
                    raise DemoDecodeError("No .dem in zip")
                return zf.read(dem_names[0])
        except zipfile.BadZipFile as exc:
            raise DemoDecodeError(f"Corrupt zip demo: {exc}") from exc
    return data


def _parse_demo_bytes(data: bytes) -> Demo:
    if not data:
        raise DemoDecodeError("Demo buffer is empty")
    raw = unpack_demo_bytes(data)
    with tempfile.TemporaryDirectory(prefix="demo_parser_") as tmp_dir:
        dem_path = Path(tmp_dir) / "match.dem"
        dem_path.write_bytes(raw)
        try:
            demo = Demo(str(dem_path), verbose=False)
            demo.parse()
        except Exception as exc:
            raise DemoDecodeError(f"Failed to decode demo: {exc}") from exc
    return demo


def _ensure_steamid_string_cols(df: pd.DataFrame, steam_cols: Iterable[str]) -> pd.DataFrame:
    for col in steam_cols:
        if col in df.columns:
            df[col] = df[col].astype("string")
    return df


def _load_table(value: Any, steam_cols: Iterable[str] = ()) -> pd.DataFrame | None:
    """Load an awpy table into pandas without losing SteamID64 precision.

    awpy stores steamid columns as u64; a plain conversion may go through
    float64, so they are cast to Int64 in polars and carried as strings.
    """
    if value is None:
        return None
    if isinstance(value, pd.DataFrame):
        return _ensure_steamid_string_cols(value, steam_cols)
    if isinstance(value, pl.DataFrame):
        cols = [pl.col(c).cast(pl.Int64, strict=False) for c in steam_cols if c in value.columns]
        if cols:
            value = value.with_columns(cols)
        return _ensure_steamid_string_cols(value.to_pandas(use_pyarrow_extension_array=True), steam_cols)
    if hasattr(value, "to_pandas"):
        return _ensure_steamid_string_cols(value.to_pandas(), steam_cols)
    return None


def _pick_column(df: pd.DataFrame | None, candidates: Iterable[str]) -> str | None:
    if df is None or df.empty:
        return None
    lower = {str(col).lower(): col for col in df.columns}
    for candidate in candidates:
        if candidate.lower() in lower:
            return lower[candidate.lower()]
    return None


def _cell(row: pd.Series, col: str | None) -> Any | None:
    if not col:
        return None
    value = row.get(col)
    if is_missing(value):
        return None
    return value


def _tick_rate_from_demo(demo: Demo) -> float:
    for attr in ("tickrate", "tick_rate", "tickRate"):
        value = safe_float(getattr(demo, attr, None))
        if value:
            return value
    header = getattr(demo, "header", None) or {}
    for key in ("tickrate", "tick_rate", "tickRate", "frame_rate"):
        value = safe_float(header.get(key))
        if value:
            return value
    return DEFAULT_FRAME_RATE


class AwpyEventSource:
    """Replay event source backed by awpy's CS2 demo parser.

    The demo is decoded lazily on first use; decode faults surface as
    DemoDecodeError from either ``iter_events`` or ``header``.
    """

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._demo: Demo | None = None
        self._rounds_df: pd.DataFrame | None = None
        self._kills_df: pd.DataFrame | None = None

    def _load(self) -> Demo:
        if self._demo is None:
            demo = _parse_demo_bytes(self._data)
            self._rounds_df = _load_table(getattr(demo, "rounds", None))
            self._kills_df = _load_table(getattr(demo, "kills", None), KILLS_STEAMID_COLUMNS)
            self._demo = demo
        return self._demo

    def header(self) -> ReplayHeader:
        demo = self._load()
        header = getattr(demo, "header", None) or {}
        frame_rate = _tick_rate_from_demo(demo)
        playback_seconds = None
        for key in PLAYBACK_KEYS:
            playback_seconds = safe_float(header.get(key))
            if playback_seconds is not None:
                break
        if playback_seconds is None:
            playback_seconds = self._last_tick() / frame_rate
        return ReplayHeader(
            map_name=safe_str(header.get("map_name")) or UNKNOWN_NAME,
            playback_seconds=playback_seconds,
            frame_rate=frame_rate,
        )

    def iter_events(self) -> Iterator[ReplayEvent]:
        self._load()
        keyed: list[tuple[int, int, int, ReplayEvent]] = []
        for event, priority in self._round_events():
            keyed.append((event.tick, priority, len(keyed), event))
        for event in self._kill_events():
            keyed.append((event.tick, _KILL_PRIORITY, len(keyed), event))
        keyed.sort(key=lambda item: item[:3])
        logger.debug("Decoded demo stream events=%s", len(keyed))
        for _, _, _, event in keyed:
            yield event

    def _last_tick(self) -> int:
        last = 0
        for df, candidates in (
            (self._rounds_df, LAST_TICK_CANDIDATES),
            (self._kills_df, TICK_COL_CANDIDATES),
        ):
            for name in candidates:
                col = _pick_column(df, [name])
                if not col:
                    continue
                value = safe_int(pd.to_numeric(df[col], errors="coerce").max())
                if value is not None:
                    last = max(last, value)
        return last

    def _round_events(self) -> Iterator[tuple[RoundStart | RoundEnd, int]]:
        rounds_df = self._rounds_df
        if rounds_df is None or rounds_df.empty:
            return
        round_col = _pick_column(rounds_df, ROUND_COL_CANDIDATES)
        start_col = _pick_column(rounds_df, START_TICK_CANDIDATES)
        end_col = _pick_column(rounds_df, END_TICK_CANDIDATES)
        winner_col = _pick_column(rounds_df, WINNER_CANDIDATES)
        reason_col = _pick_column(rounds_df, REASON_CANDIDATES)
        ct_score_col = _pick_column(rounds_df, CT_SCORE_CANDIDATES)
        t_score_col = _pick_column(rounds_df, T_SCORE_CANDIDATES)
        if round_col:
            rounds_df = rounds_df.sort_values(round_col, kind="stable")

        ct_wins = 0
        t_wins = 0
        for _, row in rounds_df.iterrows():
            start_tick = safe_int(_cell(row, start_col))
            if start_tick is not None:
                yield RoundStart(tick=start_tick), _ROUND_START_PRIORITY

            winner = normalize_side(_cell(row, winner_col))
            if winner is Side.CT:
                ct_wins += 1
            elif winner is Side.T:
                t_wins += 1
            end_tick = safe_int(_cell(row, end_col))
            if end_tick is None:
                continue
            ct_score = safe_int(_cell(row, ct_score_col))
            t_score = safe_int(_cell(row, t_score_col))
            yield (
                RoundEnd(
                    tick=end_tick,
                    winner=winner,
                    reason=safe_str(_cell(row, reason_col)) or UNKNOWN_NAME,
                    ct_score=ct_wins if ct_score is None else ct_score,
                    t_score=t_wins if t_score is None else t_score,
                ),
                _ROUND_END_PRIORITY,
            )

    def _kill_events(self) -> Iterator[Kill]:
        kills_df = self._kills_df
        if kills_df is None or kills_df.empty:
            return
        tick_col = _pick_column(kills_df, TICK_COL_CANDIDATES)
        weapon_col = _pick_column(kills_df, ["weapon", "weapon_name", "weaponName"])
        headshot_col = _pick_column(kills_df, ["headshot", "is_headshot", "isHeadshot"])
        penetrated_col = _pick_column(kills_df, ["penetrated", "penetrated_objects", "penetratedObjects"])
        role_cols = {
            role: {key: _pick_column(kills_df, names) for key, names in columns.items()}
            for role, columns in ROLE_COLUMNS.items()
        }

        missing_tick = 0
        for _, row in kills_df.iterrows():
            tick = safe_int(_cell(row, tick_col))
            if tick is None:
                missing_tick += 1
                continue
            yield Kill(
                tick=tick,
                killer=_player_ref(row, role_cols["attacker"]),
                victim=_player_ref(row, role_cols["victim"]),
                assister=_player_ref(row, role_cols["assister"]),
                weapon=safe_str(_cell(row, weapon_col)) or UNKNOWN_NAME,
                is_headshot=safe_bool(_cell(row, headshot_col)),
                penetrated=safe_int(_cell(row, penetrated_col)) or 0,
            )
        if missing_tick:
            logger.warning("Skipped %s kill rows without a tick", missing_tick)


def _player_ref(row: pd.Series, cols: dict[str, str | None]) -> PlayerRef | None:
    steam_id = normalize_steamid64(_cell(row, cols["steamid"]))
    if steam_id is None:
        return None
    return PlayerRef(
        steam_id=steam_id,
        name=safe_str(_cell(row, cols["name"])) or UNKNOWN_NAME,
        side=normalize_side(_cell(row, cols["side"])),
    )

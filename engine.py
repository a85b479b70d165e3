import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from itertools import combinations
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import pandas as pd

from config import (
    BYE_SLOTS,
    COURTS_FIELD,
    EMPTY_SLOT,
    PLAYERS_FIELD,
    ROUND_FIELD,
    SCHEDULE_CSV,
    SEATS,
)

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]

# "<court><seat>", e.g. 1a, 1b, 12d
_COURT_COLUMN = re.compile(r"(\d+)([" + "".join(SEATS) + r"])")


# ============================================================
# CSV LOADER
# ============================================================
def load_schedule_csv(path=SCHEDULE_CSV) -> pd.DataFrame:
    """
    Loads schedule CSV. Expected columns:
      Round, Players, Courts, court seats (1a, 1b, 1c, 1d, 2a, ...), byes (b1..b12)
    Every cell is read as text; blank cells stay "".
    """
    base = Path(__file__).resolve().parent
    full_path = base / path

    df = pd.read_csv(full_path, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]

    required = {ROUND_FIELD, PLAYERS_FIELD, COURTS_FIELD}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"schedule csv missing columns: {sorted(missing)}")

    # rows without a round label are padding
    df = df[df[ROUND_FIELD].str.strip() != ""].reset_index(drop=True)

    logger.info("Loaded %d schedule rows from %s", len(df), full_path)
    return df


def records_from_frame(df: pd.DataFrame) -> List[Dict[str, str]]:
    records = []
    for row in df.to_dict(orient="records"):
        records.append({
            str(k): "" if v is None or (not isinstance(v, str) and pd.isna(v)) else str(v)
            for k, v in row.items()
        })
    return records


# ============================================================
# MODELS
# ============================================================
@dataclass(frozen=True)
class Match:
    """
    One court in one round.
    team1 = seats a, b; team2 = seats c, d. Seat order is kept for display.
    """
    court: str
    team1: Tuple[str, str]
    team2: Tuple[str, str]

    @property
    def players(self) -> Tuple[str, ...]:
        return self.team1 + self.team2


@dataclass(frozen=True)
class Round:
    label: str
    matches: Tuple[Match, ...] = ()
    byes: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.matches and not self.byes

    @property
    def players(self) -> List[str]:
        out = []
        for m in self.matches:
            out.extend(m.players)
        out.extend(self.byes)
        return out


@dataclass(frozen=True)
class Selection:
    """
    Which slice of the schedule is in play.
    Values may be given as int or numeric text; anything that is not a
    positive integer raises ValueError.
    """
    player_count: int
    court_count: int
    round_budget: int

    def __post_init__(self):
        for name in ("player_count", "court_count", "round_budget"):
            object.__setattr__(self, name, _positive(getattr(self, name), name))


def _positive(value, what: str) -> int:
    try:
        n = int(str(value).strip())
    except ValueError:
        raise ValueError(f"{what} must be a positive integer, got {value!r}") from None
    if n <= 0:
        raise ValueError(f"{what} must be a positive integer, got {value!r}")
    return n


# ============================================================
# COLUMN SCHEMA
# ============================================================
def court_ids(record: Record) -> Set[str]:
    """Court numbers that have at least one seat column in this record."""
    ids = set()
    for key in record:
        m = _COURT_COLUMN.fullmatch(str(key))
        if m:
            ids.add(m.group(1))
    return ids


def sort_courts(ids: Iterable[str]) -> List[str]:
    # numeric, so "10" lands after "9"
    return sorted(ids, key=lambda c: (int(c), c))


def bye_keys() -> List[str]:
    return [f"b{i}" for i in range(1, BYE_SLOTS + 1)]


def _slot_value(record: Record, key: str) -> Optional[str]:
    """Stripped value of a seat/bye slot, or None when the slot is unused."""
    value = record.get(key)
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == EMPTY_SLOT:
        return None
    return text


# ============================================================
# ROUND EXTRACTION
# ============================================================
def extract_round(record: Record) -> Round:
    """
    Converts one schedule row into a Round.
    A court only becomes a Match when all four seats are filled; partial
    courts are dropped for that round. Byes are read from b1..b12 in order.
    """
    raw = record.get(ROUND_FIELD)
    label = "" if raw is None else str(raw)

    matches = []
    for court in sort_courts(court_ids(record)):
        seats = [_slot_value(record, f"{court}{s}") for s in SEATS]
        if any(v is None for v in seats):
            logger.debug("Round %s: court %s incomplete, skipped", label, court)
            continue
        a, b, c, d = seats
        matches.append(Match(court=court, team1=(a, b), team2=(c, d)))

    byes = []
    for key in bye_keys():
        v = _slot_value(record, key)
        if v is not None:
            byes.append(v)

    return Round(label=label, matches=tuple(matches), byes=tuple(byes))


# ============================================================
# FILTER + OPTIONS
# ============================================================
def _tag(value) -> Optional[str]:
    """Canonical text for a count tag ("04" -> "4"), None when unparsable."""
    if value is None:
        return None
    try:
        return str(int(str(value).strip()))
    except ValueError:
        return None


def _well_formed(record: Record) -> bool:
    return (
        bool(str(record.get(ROUND_FIELD) or "").strip())
        and _tag(record.get(PLAYERS_FIELD)) is not None
        and _tag(record.get(COURTS_FIELD)) is not None
    )


def _valid_records(table: Iterable[Record]) -> List[Record]:
    rows = []
    skipped = 0
    for record in table:
        if _well_formed(record):
            rows.append(record)
        else:
            skipped += 1
    if skipped:
        logger.debug("Skipped %d malformed schedule rows", skipped)
    return rows


def matching_records(table: Iterable[Record], player_count, court_count) -> List[Record]:
    """Rows tagged with this player/court count, in source order."""
    players = str(_positive(player_count, "player_count"))
    courts = str(_positive(court_count, "court_count"))
    return [
        r for r in _valid_records(table)
        if _tag(r.get(PLAYERS_FIELD)) == players and _tag(r.get(COURTS_FIELD)) == courts
    ]


def filter_rounds(table: Iterable[Record], player_count, court_count, round_budget) -> List[Round]:
    """
    Selects the rounds for one (players, courts) setup and keeps the first
    round_budget of them. Asking for more rounds than exist returns all of them.
    """
    sel = Selection(player_count, court_count, round_budget)
    rows = matching_records(table, sel.player_count, sel.court_count)
    if sel.round_budget > len(rows):
        logger.debug(
            "Requested %d rounds for %d players / %d courts, only %d available",
            sel.round_budget, sel.player_count, sel.court_count, len(rows),
        )
    return [extract_round(r) for r in rows[:sel.round_budget]]


def available_options(table: Iterable[Record], player_count=None, court_count=None) -> Dict[str, List[int]]:
    """
    Choices for the selection dropdowns:
      player_counts: every player count in the table
      court_counts:  court counts offered for player_count
      round_counts:  1..N where N = rows for (player_count, court_count)
    """
    rows = _valid_records(table)
    player_counts = sorted({int(_tag(r.get(PLAYERS_FIELD))) for r in rows})

    court_counts: List[int] = []
    round_counts: List[int] = []

    players = _tag(player_count)
    if players is not None:
        for_players = [r for r in rows if _tag(r.get(PLAYERS_FIELD)) == players]
        court_counts = sorted({int(_tag(r.get(COURTS_FIELD))) for r in for_players})

        courts = _tag(court_count)
        if courts is not None:
            available = sum(1 for r in for_players if _tag(r.get(COURTS_FIELD)) == courts)
            round_counts = list(range(1, available + 1))

    return {
        "player_counts": player_counts,
        "court_counts": court_counts,
        "round_counts": round_counts,
    }


# ============================================================
# INTERACTION MATRIX
# ============================================================
@dataclass
class InteractionMatrix:
    """
    Pairwise counts over a set of rounds, 0-indexed (row i = player i+1).
      court_counts[i][j]:    rounds i and j shared a court (teammates or opponents)
      teammate_counts[i][j]: rounds i and j were on the same team
      bye_counts[i]:         rounds player i sat out
    Both grids are symmetric; the diagonal is unused and stays 0.
    """
    player_count: int

    court_counts: List[List[int]] = field(init=False)
    teammate_counts: List[List[int]] = field(init=False)
    bye_counts: List[int] = field(init=False)

    def __post_init__(self):
        n = self.player_count
        self.court_counts = [[0] * n for _ in range(n)]
        self.teammate_counts = [[0] * n for _ in range(n)]
        self.bye_counts = [0] * n

    def not_played_with(self, i: int) -> List[int]:
        """Indices of the other players i never shared a court with."""
        return [j for j in range(self.player_count) if j != i and self.court_counts[i][j] == 0]

    def not_played_with_counts(self) -> List[int]:
        return [len(self.not_played_with(i)) for i in range(self.player_count)]


def _player_index(value, player_count: int) -> Optional[int]:
    try:
        idx = int(str(value).strip())
    except ValueError:
        return None
    if 1 <= idx <= player_count:
        return idx - 1
    return None


def _bump(grid: List[List[int]], i: Optional[int], j: Optional[int]):
    if i is None or j is None or i == j:
        return
    grid[i][j] += 1
    grid[j][i] += 1


def build_matrix(rounds: Iterable[Round], player_count) -> InteractionMatrix:
    """
    Folds rounds into a fresh InteractionMatrix.
    Per match: the two partnerships count as teammates, and all 6 pairs on
    the court (partnerships included) count as court-mates.
    Seat or bye values outside 1..player_count are ignored.
    """
    n = _positive(player_count, "player_count")
    matrix = InteractionMatrix(n)

    for rnd in rounds:
        for b in rnd.byes:
            i = _player_index(b, n)
            if i is not None:
                matrix.bye_counts[i] += 1

        for m in rnd.matches:
            p1, p2 = (_player_index(p, n) for p in m.team1)
            p3, p4 = (_player_index(p, n) for p in m.team2)

            _bump(matrix.teammate_counts, p1, p2)
            _bump(matrix.teammate_counts, p3, p4)

            for i, j in combinations((p1, p2, p3, p4), 2):
                _bump(matrix.court_counts, i, j)

    return matrix


# ============================================================
# NAMES
# ============================================================
def resolve_name(index, names: Optional[Sequence[str]] = None) -> str:
    """
    Display name for a 1-based player number: names[index-1] when it is
    non-blank, otherwise the number itself. Non-numeric values pass through.
    """
    text = str(index).strip()
    try:
        idx = int(text)
    except ValueError:
        return text

    if names and 1 <= idx <= len(names):
        name = names[idx - 1]
        if name is not None and str(name).strip():
            return str(name).strip()
    return str(idx)


def player_labels(player_count: int, names: Optional[Sequence[str]] = None) -> List[str]:
    return [resolve_name(i, names) for i in range(1, player_count + 1)]


# ============================================================
# TABLES (for the viewer)
# ============================================================
def round_table(rnd: Round, names: Optional[Sequence[str]] = None) -> pd.DataFrame:
    rows = []
    for m in rnd.matches:
        rows.append({
            "Court": m.court,
            "Team 1": " / ".join(resolve_name(p, names) for p in m.team1),
            "Team 2": " / ".join(resolve_name(p, names) for p in m.team2),
        })
    return pd.DataFrame(rows, columns=["Court", "Team 1", "Team 2"])


def _unique_labels(labels: List[str], reserved: Set[str]) -> List[str]:
    # two players with the same name would collide as DataFrame labels
    counts = Counter(labels)
    clashes = [counts[label] > 1 or label in reserved for label in labels]
    taken = set(reserved) | {label for label, clash in zip(labels, clashes) if not clash}

    out = []
    for i, (label, clash) in enumerate(zip(labels, clashes), start=1):
        if clash:
            n = i
            while f"{label} ({n})" in taken:
                n += 1
            label = f"{label} ({n})"
            taken.add(label)
        out.append(label)
    return out


def matrix_table(matrix: InteractionMatrix, names: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Court-mate counts as a player x player table plus Byes and
    Not played with columns. Diagonal cells are empty (<NA>).
    """
    extra = ["Byes", "Not played with"]
    labels = _unique_labels(player_labels(matrix.player_count, names), set(extra))
    not_played = matrix.not_played_with_counts()

    data = []
    for i in range(matrix.player_count):
        cells = [None if i == j else matrix.court_counts[i][j] for j in range(matrix.player_count)]
        data.append(cells + [matrix.bye_counts[i], not_played[i]])

    df = pd.DataFrame(data, columns=labels + extra, index=pd.Index(labels, name="Player"))
    return df.astype("Int64")


def teammate_mask(matrix: InteractionMatrix) -> List[List[bool]]:
    """True where the pair were ever teammates (the viewer highlights these)."""
    n = matrix.player_count
    return [[i != j and matrix.teammate_counts[i][j] > 0 for j in range(n)] for i in range(n)]


def duplicate_players(rnd: Round, names: Optional[Sequence[str]] = None) -> List[str]:
    """Players listed more than once in the same round (dirty source data), by display name."""
    counts = Counter(rnd.players)
    return [resolve_name(p, names) for p in counts if counts[p] > 1]

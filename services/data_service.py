"""
Data Service - reads and writes volunteer, event and match records.

Storage is one CSV file per record type in the data directory
(`MATCHING_DATA_DIR`, default `data/`). Every value is read as a string and
parsed by the model's `from_dict`.
"""
from __future__ import annotations
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd

from config import settings
from models.event import Event
from models.match import Match
from models.volunteer import Volunteer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Path configuration
# ---------------------------------------------------------------------------
VOLUNTEER_CSV = "volunteers.csv"
EVENT_CSV = "events.csv"
MATCH_CSV = "matches.csv"
DECISION_LOG = "decision_log.txt"

VOLUNTEER_COLUMNS = [
    "volunteer_id", "name", "email", "skills", "availability",
    "city", "state_code", "preferences", "status",
]
EVENT_COLUMNS = [
    "event_id", "name", "required_skills", "urgency", "capacity", "current_registrants",
    "start_at", "end_at", "status", "city", "state_code", "description",
]
MATCH_COLUMNS = ["match_id", "volunteer_id", "event_id", "status", "score", "created_at"]


def _data_dir(data_dir: Optional[Path]) -> Path:
    return Path(data_dir) if data_dir is not None else settings.DATA_DIR


# ---------------------------------------------------------------------------
# READ operations
# ---------------------------------------------------------------------------

def _load_df(path: Path, columns: List[str]) -> pd.DataFrame:
    """Load a CSV as all-string columns; a missing file is an empty table."""
    if not path.exists():
        logger.info(f"{path.name} not found - starting with an empty table.")
        return pd.DataFrame(columns=columns)
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = [c for c in columns if c not in df.columns]
    for col in missing:
        df[col] = ""
    if missing:
        logger.warning(f"{path.name} is missing columns {missing}; filled with blanks.")
    return df


def load_volunteers_df(data_dir: Optional[Path] = None) -> pd.DataFrame:
    return _load_df(_data_dir(data_dir) / VOLUNTEER_CSV, VOLUNTEER_COLUMNS)


def load_events_df(data_dir: Optional[Path] = None) -> pd.DataFrame:
    return _load_df(_data_dir(data_dir) / EVENT_CSV, EVENT_COLUMNS)


def load_matches_df(data_dir: Optional[Path] = None) -> pd.DataFrame:
    return _load_df(_data_dir(data_dir) / MATCH_CSV, MATCH_COLUMNS)


# ---------------------------------------------------------------------------
#  Model-level loaders (returns list of dataclass instances)
# ---------------------------------------------------------------------------

def load_volunteers(data_dir: Optional[Path] = None) -> List[Volunteer]:
    df = load_volunteers_df(data_dir)
    return [Volunteer.from_dict(row) for _, row in df.iterrows()]


def load_events(data_dir: Optional[Path] = None) -> List[Event]:
    df = load_events_df(data_dir)
    return [Event.from_dict(row) for _, row in df.iterrows()]


def load_matches(data_dir: Optional[Path] = None) -> List[Match]:
    df = load_matches_df(data_dir)
    return [Match.from_dict(row) for _, row in df.iterrows()]


# ---------------------------------------------------------------------------
# WRITE operations
# ---------------------------------------------------------------------------

def _save_df_to_csv(df: pd.DataFrame, path: Path) -> None:
    """Persist a DataFrame to its CSV file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    logger.info(f"Saved {len(df)} rows to {path.name}")


def _records_df(records: List[dict], columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(records, columns=columns)


def save_volunteers(volunteers: List[Volunteer], data_dir: Optional[Path] = None) -> None:
    df = _records_df([v.to_dict() for v in volunteers], VOLUNTEER_COLUMNS)
    _save_df_to_csv(df, _data_dir(data_dir) / VOLUNTEER_CSV)


def save_events(events: List[Event], data_dir: Optional[Path] = None) -> None:
    df = _records_df([e.to_dict() for e in events], EVENT_COLUMNS)
    _save_df_to_csv(df, _data_dir(data_dir) / EVENT_CSV)


def save_matches(matches: List[Match], data_dir: Optional[Path] = None) -> None:
    df = _records_df([m.to_dict() for m in matches], MATCH_COLUMNS)
    _save_df_to_csv(df, _data_dir(data_dir) / MATCH_CSV)


# ---------------------------------------------------------------------------
# Decision log append
# ---------------------------------------------------------------------------

def append_decision_log(entry: str, data_dir: Optional[Path] = None) -> None:
    """Append a decision entry to the running decision log."""
    path = _data_dir(data_dir) / DECISION_LOG
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"\n[{datetime.now().isoformat()}] {entry}\n")
    logger.info(f"Decision logged: {entry[:80]}...")

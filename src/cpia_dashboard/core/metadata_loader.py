from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional

import logging

import pandas as pd

from cpia_dashboard.config import CPIA_DEFNS_PATH

logger = logging.getLogger(__name__)

GOVERNANCE_CATEGORY = "Governance"

# In-memory cache of the raw definitions file, keyed by resolved path
_DEFNS_CACHE: Dict[Path, pd.DataFrame] = {}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _read_defns(path: Path, refresh: bool = False) -> pd.DataFrame:
    """
    Read the question definitions CSV, cached in memory.

    Expected columns:
      - 'variable'     (question code, e.g. 'q12a')
      - 'subquestion'  (question text)
    """
    key = path.resolve()
    if key in _DEFNS_CACHE and not refresh:
        return _DEFNS_CACHE[key]

    if not path.exists():
        raise FileNotFoundError(
            f"Cannot find question definitions at {path}. "
            "Set CPIA_DEFNS_PATH or place cpia_defns.csv under data/metadata."
        )

    logger.info("Loading question definitions: %s", path)
    df = pd.read_csv(path, dtype=str)

    missing = [c for c in ("variable", "subquestion") if c not in df.columns]
    if missing:
        raise ValueError(
            f"Question definitions file is missing columns {missing}. "
            f"Found: {list(df.columns)}"
        )

    _DEFNS_CACHE[key] = df
    return df


# ---------------------------------------------------------------------------
# Questions metadata
# ---------------------------------------------------------------------------

def load_questions_meta(
    path: Optional[str | Path] = None,
    available: Optional[Iterable[str]] = None,
    refresh: bool = False,
) -> pd.DataFrame:
    """
    Load question metadata.

    Normalized columns returned:
      - question_code   (e.g., 'q12a')
      - question_label  (full question text)
      - category        (always 'Governance' for the current questions)
      - subcategory     (e.g., 'Q12', derived from the code)

    If `available` is given (typically the question columns found in the
    loaded data), only those codes are kept, so questions without data never
    reach the selector.
    """
    df = _read_defns(Path(path or CPIA_DEFNS_PATH), refresh=refresh)

    out = pd.DataFrame()
    out["question_code"] = df["variable"].astype(str).str.strip().str.lower()
    out["question_label"] = df["subquestion"].fillna("").astype(str).str.strip()
    out["category"] = GOVERNANCE_CATEGORY
    # 'q12a' -> 'Q12'
    out["subcategory"] = "Q" + out["question_code"].str.extract(r"^[a-z]+(\d+)", expand=False)

    if available is not None:
        keep = {str(c) for c in available}
        dropped = sorted(set(out["question_code"]) - keep)
        if dropped:
            logger.info("Questions without data columns left out: %s", dropped)
        out = out[out["question_code"].isin(keep)]

    return out.reset_index(drop=True)


def load_governance_questions(
    path: Optional[str | Path] = None,
    available: Optional[Iterable[str]] = None,
    refresh: bool = False,
) -> pd.DataFrame:
    questions = load_questions_meta(path=path, available=available, refresh=refresh)
    return questions[questions["category"] == GOVERNANCE_CATEGORY].reset_index(drop=True)


def format_question_choices(questions: pd.DataFrame, include_question_code: bool = True) -> Dict[str, str]:
    """
    Map question codes to selector labels, preserving row order.

    Labels look like 'Q12A - Property rights and rule-based governance', or
    just the question text when include_question_code is False.
    """
    if not {"question_code", "question_label"}.issubset(questions.columns):
        raise ValueError("questions must contain 'question_code' and 'question_label' columns")

    choices: Dict[str, str] = {}
    for code, label in zip(questions["question_code"], questions["question_label"]):
        choices[code] = f"{str(code).upper()} - {label}" if include_question_code else label
    return choices


def lookup_question_label(questions: Optional[pd.DataFrame], question_code: str) -> str:
    code = str(question_code).strip().lower()
    if questions is None or questions.empty:
        return code.upper()

    row = questions[questions["question_code"] == code]
    if row.empty:
        logger.warning("Question %s not found in question metadata.", question_code)
        return code.upper()
    return str(row.iloc[0]["question_label"])

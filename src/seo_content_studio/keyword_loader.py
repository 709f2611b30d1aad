"""
Keyword list loading and density reporting.

This module handles ingestion of keyword research exports from:
- CSV files
- Excel files (.xlsx, .xls)

and scores the loaded keywords against a piece of content.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from .keyword_metrics import DEFAULT_CAUTION_THRESHOLD, analyze_keywords, density_status
from .models import Keyword

logger = logging.getLogger(__name__)


class KeywordLoadError(Exception):
    """Raised when keyword loading fails."""
    pass


# Common column name variations for keyword data
KEYWORD_COLUMN_VARIANTS = ["keyword", "keywords", "term", "terms", "query", "queries", "phrase"]
VOLUME_COLUMN_VARIANTS = ["search_volume", "volume", "searchvolume", "sv", "avg_monthly_searches"]
DIFFICULTY_COLUMN_VARIANTS = ["difficulty", "kd", "keyword_difficulty", "seo_difficulty"]
INTENT_COLUMN_VARIANTS = ["intent", "search_intent", "keyword_intent"]

REPORT_COLUMNS = ["keyword", "search_volume", "occurrences", "density_percent", "status"]


def _normalize_column_name(name: str) -> str:
    return str(name).lower().strip().replace(" ", "_").replace("-", "_")


def _find_column(df: pd.DataFrame, variants: list[str]) -> Optional[str]:
    """
    Find a column in the DataFrame matching one of the variant names.

    Args:
        df: The DataFrame to search.
        variants: List of possible column name variants.

    Returns:
        The actual column name if found, None otherwise.
    """
    normalized_columns = {_normalize_column_name(col): col for col in df.columns}

    for variant in variants:
        normalized = _normalize_column_name(variant)
        if normalized in normalized_columns:
            return normalized_columns[normalized]

    return None


def load_keywords_from_csv(file_path: Union[str, Path]) -> list[Keyword]:
    """
    Load keywords from a CSV file.

    Raises:
        KeywordLoadError: If the file cannot be read or parsed.
    """
    path = Path(file_path)

    if not path.exists():
        raise KeywordLoadError(f"File not found: {file_path}")

    try:
        df = pd.read_csv(path, encoding="utf-8")
    except UnicodeDecodeError:
        try:
            df = pd.read_csv(path, encoding="latin-1")
        except Exception as e:
            raise KeywordLoadError(f"Failed to read CSV file: {e}") from e
    except Exception as e:
        raise KeywordLoadError(f"Failed to read CSV file: {e}") from e

    return _parse_keyword_dataframe(df)


def load_keywords_from_excel(
    file_path: Union[str, Path],
    sheet_name: Optional[str] = None,
) -> list[Keyword]:
    """
    Load keywords from an Excel file.

    Args:
        file_path: Path to the Excel file (.xlsx or .xls).
        sheet_name: Optional sheet name to read from. Defaults to first sheet.

    Raises:
        KeywordLoadError: If the file cannot be read or parsed.
    """
    path = Path(file_path)

    if not path.exists():
        raise KeywordLoadError(f"File not found: {file_path}")

    try:
        df = pd.read_excel(path, sheet_name=sheet_name or 0)
    except Exception as e:
        raise KeywordLoadError(f"Failed to read Excel file: {e}") from e

    return _parse_keyword_dataframe(df)


def _parse_keyword_dataframe(df: pd.DataFrame) -> list[Keyword]:
    if df.empty:
        raise KeywordLoadError("Keyword file is empty")

    keyword_col = _find_column(df, KEYWORD_COLUMN_VARIANTS)
    if keyword_col is None:
        raise KeywordLoadError(
            f"No keyword column found. Expected one of: {', '.join(KEYWORD_COLUMN_VARIANTS)}. "
            f"Found columns: {', '.join(str(c) for c in df.columns)}"
        )

    volume_col = _find_column(df, VOLUME_COLUMN_VARIANTS)
    difficulty_col = _find_column(df, DIFFICULTY_COLUMN_VARIANTS)
    intent_col = _find_column(df, INTENT_COLUMN_VARIANTS)

    keywords: list[Keyword] = []

    for _, row in df.iterrows():
        phrase = row[keyword_col]
        if pd.isna(phrase) or not str(phrase).strip():
            continue

        search_volume: Optional[int] = None
        if volume_col and not pd.isna(row[volume_col]):
            try:
                search_volume = int(float(str(row[volume_col]).replace(",", "")))
            except (ValueError, TypeError):
                logger.debug(f"Ignoring search volume {row[volume_col]!r} for '{phrase}'")

        difficulty: Optional[float] = None
        if difficulty_col and not pd.isna(row[difficulty_col]):
            try:
                difficulty = float(row[difficulty_col])
                # Some exports use 0-1
                if 0 < difficulty < 1:
                    difficulty *= 100
            except (ValueError, TypeError):
                logger.debug(f"Ignoring difficulty {row[difficulty_col]!r} for '{phrase}'")

        intent: Optional[str] = None
        if intent_col and not pd.isna(row[intent_col]):
            intent = _normalize_intent(str(row[intent_col]))

        keywords.append(
            Keyword(
                phrase=str(phrase),
                search_volume=search_volume,
                difficulty=difficulty,
                intent=intent,
            )
        )

    if not keywords:
        raise KeywordLoadError("No valid keywords found in file")

    return keywords


def _normalize_intent(value: str) -> str:
    value = value.strip().lower()
    if value in ("info", "informational", "i"):
        return "informational"
    if value in ("commercial", "comm", "c"):
        return "commercial"
    if value in ("transactional", "trans", "t"):
        return "transactional"
    if value in ("nav", "navigational", "n"):
        return "navigational"
    return value


def load_keywords(file_path: Union[str, Path], sheet_name: Optional[str] = None) -> list[Keyword]:
    """
    Load keywords from a CSV or Excel file.

    Automatically detects file type based on extension.

    Args:
        file_path: Path to the keyword file.
        sheet_name: Optional sheet name for Excel files.

    Returns:
        List of Keyword objects.

    Raises:
        KeywordLoadError: If the file cannot be read or is invalid.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".csv":
        return load_keywords_from_csv(path)
    elif suffix in (".xlsx", ".xls"):
        return load_keywords_from_excel(path, sheet_name)
    else:
        raise KeywordLoadError(
            f"Unsupported file format: {suffix}. Supported formats: .csv, .xlsx, .xls"
        )


def deduplicate_keywords(keywords: list[Keyword]) -> list[Keyword]:
    """
    Remove duplicate keywords based on phrase (case-insensitive).

    Keeps the first occurrence of each keyword.
    """
    seen: set[str] = set()
    unique: list[Keyword] = []

    for kw in keywords:
        key = kw.phrase.lower()
        if key not in seen:
            seen.add(key)
            unique.append(kw)

    return unique


def sort_keywords_by_priority(keywords: list[Keyword]) -> list[Keyword]:
    """
    Sort keywords by priority (search volume descending, difficulty ascending).

    Keywords with no volume sort last; missing difficulty counts as medium.
    """
    def priority_key(kw: Keyword) -> tuple[int, float]:
        volume_score = -(kw.search_volume or 0)
        difficulty_score = kw.difficulty if kw.difficulty is not None else 50.0
        return (volume_score, difficulty_score)

    return sorted(keywords, key=priority_key)


def build_keyword_report(
    text: str,
    keywords: list[Keyword],
    caution_threshold: float = DEFAULT_CAUTION_THRESHOLD,
) -> pd.DataFrame:
    """
    Score each keyword against text.

    Args:
        text: Content to score.
        keywords: Keywords to look for. Duplicates are dropped.
        caution_threshold: Density above which a keyword is flagged.

    Returns:
        DataFrame with REPORT_COLUMNS, one row per keyword, in priority order.
    """
    ordered = sort_keywords_by_priority(deduplicate_keywords(keywords))
    metrics = analyze_keywords(text, [kw.phrase for kw in ordered])

    rows = []
    for kw in ordered:
        result = metrics.get(kw.phrase)
        if result is None:
            continue
        rows.append({
            "keyword": kw.phrase,
            "search_volume": kw.search_volume,
            "occurrences": result.occurrence_count,
            "density_percent": result.density_percent,
            "status": density_status(result.density_percent, caution_threshold).value,
        })

    logger.info(f"Scored {len(rows)} keywords")
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)

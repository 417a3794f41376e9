import logging
import pandas as pd
from typing import Any, List, Optional
from pathlib import Path

from macrobius_vocab.schemas import VocabularyItem

logger = logging.getLogger(__name__)

# Accepted header names per field, first match wins
COLUMN_ALIASES = {
    "item_id": ["item_id", "id", "word_id"],
    "text": ["latin", "text", "word", "lemma"],
    "gloss": ["gloss", "meaning", "translation", "english", "german"],
    "source": ["source", "passage", "reference"],
}


class VocabularyParser:
    """
    Parse vocabulary lists exported from spreadsheets.
    Expected columns: ID, Latin, optional Gloss and Source.
    """

    @staticmethod
    def parse_csv_table(file_path: str) -> List[VocabularyItem]:
        df = pd.read_csv(file_path, dtype=str)
        return VocabularyParser._parse_frame(df)

    @staticmethod
    def parse_excel_table(file_path: str) -> List[VocabularyItem]:
        df = pd.read_excel(file_path, dtype=str)
        return VocabularyParser._parse_frame(df)

    @staticmethod
    def _parse_frame(df: pd.DataFrame) -> List[VocabularyItem]:
        # Normalize column names
        df.columns = df.columns.str.strip().str.lower()

        columns = {field: VocabularyParser._find_column(df, names) for field, names in COLUMN_ALIASES.items()}
        if columns["item_id"] is None or columns["text"] is None:
            raise ValueError(
                f"Vocabulary table needs an id and a Latin column, found: {', '.join(df.columns)}"
            )

        items = []
        skipped = 0
        for _, row in df.iterrows():
            values = {field: VocabularyParser._clean(row[column]) if column else None
                      for field, column in columns.items()}

            # Skip rows with missing essential data
            if not values["item_id"] or not values["text"]:
                skipped += 1
                continue
            items.append(VocabularyItem(**values))

        if skipped:
            logger.warning("Skipped %d vocabulary rows without id or Latin text", skipped)
        return items

    @staticmethod
    def _find_column(df: pd.DataFrame, names: List[str]) -> Optional[str]:
        for name in names:
            if name in df.columns:
                return name
        return None

    @staticmethod
    def _clean(value: Any) -> Optional[str]:
        if pd.isna(value):
            return None
        value = str(value).strip()
        return value or None

    @staticmethod
    def auto_parse(file_path: str) -> List[VocabularyItem]:
        """
        Automatically detect file type and parse accordingly.
        Supports: CSV, Excel (xlsx, xls)
        """
        file_ext = Path(file_path).suffix.lower()

        if file_ext == ".csv":
            return VocabularyParser.parse_csv_table(file_path)
        elif file_ext in [".xlsx", ".xls"]:
            return VocabularyParser.parse_excel_table(file_path)
        else:
            raise ValueError(f"Unsupported file format: {file_ext}. Use .csv or .xlsx")

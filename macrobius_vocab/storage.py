"""
Persistence for per-learner review records.

A store maps a learner id to the learner's whole review blob
({item_id: ReviewRecord}). Saving always replaces the blob atomically.
"""
import abc
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Protocol, Union

from macrobius_vocab.config import settings
from macrobius_vocab.crud import get_review_payloads, save_review_records
from macrobius_vocab.errors import InvalidRecordError
from macrobius_vocab.schemas import ReviewRecord, records_from_blob, records_to_blob

logger = logging.getLogger(__name__)

RecordsArg = Union[Mapping[str, ReviewRecord], Iterable[ReviewRecord]]

_LEARNER_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


def _as_record_list(records: RecordsArg):
    if isinstance(records, Mapping):
        return list(records.values())
    return list(records)


class ReviewStore(Protocol):
    def load(self, learner_id: str) -> Dict[str, ReviewRecord]:
        ...

    def load_raw(self, learner_id: str) -> Dict[str, Any]:
        ...

    def save(self, learner_id: str, records: RecordsArg) -> None:
        ...


class BaseReviewStore(abc.ABC):
    """Validating `load` on top of a subclass's `load_raw`."""

    @abc.abstractmethod
    def load_raw(self, learner_id: str) -> Dict[str, Any]:
        """The stored blob for a learner, unvalidated; {} when there is none."""

    @abc.abstractmethod
    def save(self, learner_id: str, records: RecordsArg) -> None:
        """Replace the learner's whole blob."""

    def load(self, learner_id: str) -> Dict[str, ReviewRecord]:
        return records_from_blob(self.load_raw(learner_id))


class InMemoryReviewStore(BaseReviewStore):
    """Keeps serialized blobs in a dict; loads go through the same validation as real storage."""

    def __init__(self, blobs: Dict[str, Dict[str, Any]] = None):
        self._blobs: Dict[str, Dict[str, Any]] = dict(blobs or {})

    def load_raw(self, learner_id: str) -> Dict[str, Any]:
        return dict(self._blobs.get(learner_id) or {})

    def save(self, learner_id: str, records: RecordsArg) -> None:
        self._blobs[learner_id] = records_to_blob(_as_record_list(records))


class JsonFileReviewStore(BaseReviewStore):
    """
    One JSON file per learner under `directory`.

    Files are named `<learner_id>.<storage_key>.json` and written through a
    temporary file plus rename so a crash never leaves a partial blob.
    """

    def __init__(self, directory: Union[str, Path] = None, storage_key: str = None):
        self.directory = Path(directory or settings.data_dir)
        self.storage_key = storage_key or settings.srs_storage_key

    def path_for(self, learner_id: str) -> Path:
        if not _LEARNER_ID.match(learner_id or ""):
            raise ValueError(f"Invalid learner id: {learner_id!r}")
        return self.directory / f"{learner_id}.{self.storage_key}.json"

    def load_raw(self, learner_id: str) -> Dict[str, Any]:
        path = self.path_for(learner_id)
        if not path.exists():
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                blob = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidRecordError(f"{path.name} is not valid JSON: {exc}") from exc
        if not isinstance(blob, dict):
            raise InvalidRecordError(f"{path.name} must hold a JSON object")
        return blob

    def save(self, learner_id: str, records: RecordsArg) -> None:
        path = self.path_for(learner_id)
        self.directory.mkdir(parents=True, exist_ok=True)
        blob = records_to_blob(_as_record_list(records))

        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(blob, f, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug("Saved %d review records for %s to %s", len(blob), learner_id, path)


class SqlReviewStore(BaseReviewStore):
    """Review records in the SQL database, one transaction per save."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def load_raw(self, learner_id: str) -> Dict[str, Any]:
        db = self.session_factory()
        try:
            return get_review_payloads(db, learner_id)
        finally:
            db.close()

    def save(self, learner_id: str, records: RecordsArg) -> None:
        db = self.session_factory()
        try:
            save_review_records(db, learner_id, _as_record_list(records))
        finally:
            db.close()

"""
In-memory store of historical records.

Lifecycle::

    store = RecordStore()            # empty — every query sees no data
    ok = store.load(config.data)     # parse all dataset files
    predictor = build_predictor(store, config)

A store that has not been loaded (or whose load is still running on another
thread) is logically empty: queries against it fall through to the
hard-coded defaults instead of blocking. Each table is a tuple assigned in a
single statement once its file is fully parsed, so a reader sees either the
old table or the complete new one, never a partial list. Nothing mutates a
table after assignment, so concurrent readers need no locking.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from crop_advisor.config import DataConfig
from crop_advisor.ingestion.csv_loader import parse_records
from crop_advisor.models.records import (
    AgriculturalRecord,
    CropTrialRecord,
    FertilizerRecord,
    RainfallRecord,
)

logger = logging.getLogger(__name__)


@dataclass
class LoadSummary:
    """Per-table counts from the most recent ``RecordStore.load`` call.

    ``failed`` lists the tables whose file could not be read at all.
    """

    loaded: dict[str, int] = field(default_factory=dict)
    dropped: dict[str, int] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class RecordStore:
    """Read-only tables of historical records.

    Attributes:
        agricultural: Village crop outcomes (tolerance-ladder matcher).
        crop_trials: Labelled crop trials (strict matcher).
        fertilizers: Fertilizer usage rows.
        rainfall: Station-year rainfall rows.
    """

    _TABLES: dict[str, type] = {
        "agricultural": AgriculturalRecord,
        "crop_trials": CropTrialRecord,
        "fertilizers": FertilizerRecord,
        "rainfall": RainfallRecord,
    }

    def __init__(
        self,
        agricultural: tuple[AgriculturalRecord, ...] = (),
        crop_trials: tuple[CropTrialRecord, ...] = (),
        fertilizers: tuple[FertilizerRecord, ...] = (),
        rainfall: tuple[RainfallRecord, ...] = (),
    ) -> None:
        self.agricultural = tuple(agricultural)
        self.crop_trials = tuple(crop_trials)
        self.fertilizers = tuple(fertilizers)
        self.rainfall = tuple(rainfall)
        self.last_load: Optional[LoadSummary] = None

    @property
    def is_empty(self) -> bool:
        return not (self.agricultural or self.crop_trials or self.fertilizers or self.rainfall)

    def load(self, data_config: DataConfig) -> bool:
        """Parse every configured dataset file into the store.

        A missing or unreadable file leaves that table empty and is
        reported as a failure; the other tables still load.

        Returns:
            ``True`` if every configured file was read, ``False`` otherwise.
        """
        paths = {
            "agricultural": data_config.agricultural_file,
            "crop_trials": data_config.crop_trials_file,
            "fertilizers": data_config.fertilizer_file,
            "rainfall": data_config.rainfall_file,
        }
        summary = LoadSummary()

        for table, raw_path in paths.items():
            if not raw_path:
                logger.debug("No file configured for %s; table left empty", table)
                continue
            record_cls = self._TABLES[table]
            try:
                result = parse_records(Path(raw_path), record_cls)
            except (OSError, UnicodeDecodeError) as exc:
                logger.error("Could not load %s from %s: %s", table, raw_path, exc)
                summary.failed.append(table)
                setattr(self, table, ())
                continue
            setattr(self, table, tuple(result.records))
            summary.loaded[table] = len(result.records)
            summary.dropped[table] = result.dropped

        self.last_load = summary
        logger.info(
            "Record store loaded | agricultural=%d crop_trials=%d fertilizers=%d rainfall=%d",
            len(self.agricultural), len(self.crop_trials),
            len(self.fertilizers), len(self.rainfall),
        )
        return summary.ok

    def find_similar_locations(
        self,
        latitude: float,
        longitude: float,
        max_distance: float = 2.0,
    ) -> list[RainfallRecord]:
        """Return rainfall rows within ``max_distance`` degrees of a point.

        Distance is plain Euclidean distance in (lat, lon) degrees.
        """
        return [
            r for r in self.rainfall
            if math.hypot(r.latitude - latitude, r.longitude - longitude) <= max_distance
        ]

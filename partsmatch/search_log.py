import glob
import json
import logging
import logging.handlers
import os
import threading
from datetime import datetime
from typing import Any, Dict

import pandas as pd

from partsmatch.search import SearchEvent
from utils.logger import get_logger

logger = get_logger(__name__)

LOG_FILE_NAME = "searches.jsonl"
COLUMNS = ["time", "part", "model", "category", "result_count", "exact_count"]


class SearchLog:
    """
    Observer for completed searches: one JSON line per search, rotated daily.

    Files live in `log_dir` as searches.jsonl (today) and
    searches.jsonl.YYYY-MM-DD (previous days, `retention_days` kept).
    """

    def __init__(self, log_dir: str = "logs", retention_days: int = 30):
        self.log_dir = log_dir
        self.retention_days = retention_days
        self.path = os.path.join(log_dir, LOG_FILE_NAME)
        self._lock = threading.Lock()
        self._total = 0
        self._zero_results = 0

        os.makedirs(log_dir, exist_ok=True)
        self._handler = logging.handlers.TimedRotatingFileHandler(
            self.path, when="midnight", backupCount=retention_days, encoding="utf-8"
        )
        self._handler.setFormatter(logging.Formatter("%(message)s"))

        # Dedicated logger per file so several logs can coexist (tests, reloads)
        self._logger = logging.getLogger(f"partsmatch.searches.{os.path.abspath(self.path)}")
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()
        self._logger.addHandler(self._handler)
        logger.info(f"Search log writing to {self.path} (keeping {retention_days} days)")

    def __call__(self, event: SearchEvent):
        self.record(event)

    def record(self, event: SearchEvent):
        row = {
            "time": datetime.now().isoformat(timespec="seconds"),
            "part": event.part,
            "model": event.model,
            "category": event.category,
            "result_count": event.result_count,
            "exact_count": event.exact_count,
        }
        self._logger.info(json.dumps(row, ensure_ascii=False))
        with self._lock:
            self._total += 1
            if event.result_count == 0:
                self._zero_results += 1

    def counters(self) -> Dict[str, Any]:
        """In-process totals since this log was opened; per-model counts come from summary()."""
        with self._lock:
            return {
                "searches": self._total,
                "zero_results": self._zero_results,
            }

    def load_frame(self) -> pd.DataFrame:
        """All retained search records (today plus rotated days) as a DataFrame."""
        self._handler.flush()
        frames = []
        for path in sorted(glob.glob(self.path + "*")):
            if os.path.getsize(path) == 0:
                continue
            try:
                frames.append(pd.read_json(path, lines=True, dtype=False))
            except ValueError as e:
                logger.warning(f"Skipping unreadable search log {path}: {e}")
        if not frames:
            return pd.DataFrame(columns=COLUMNS)
        df = pd.concat(frames, ignore_index=True)
        df["time"] = pd.to_datetime(df["time"], errors="coerce")
        return df

    def summary(self, top_n: int = 10) -> Dict[str, Any]:
        df = self.load_frame()
        if df.empty:
            return {
                "total_searches": 0,
                "zero_result_searches": 0,
                "top_models": [],
                "top_categories": [],
                "searches_per_day": {},
            }

        models = df["model"].astype(str).str.strip().str.lower()
        dated = df.dropna(subset=["time"])
        per_day = dated.groupby(dated["time"].dt.strftime("%Y-%m-%d")).size()
        return {
            "total_searches": int(len(df)),
            "zero_result_searches": int((df["result_count"] == 0).sum()),
            "top_models": [
                {"model": model, "count": int(count)}
                for model, count in models.value_counts().head(top_n).items()
            ],
            "top_categories": [
                {"category": category, "count": int(count)}
                for category, count in df["category"].value_counts().head(top_n).items()
            ],
            "searches_per_day": {day: int(count) for day, count in per_day.items()},
        }

    def close(self):
        self._logger.removeHandler(self._handler)
        self._handler.close()

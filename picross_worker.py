import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from picross_catalog import list_puzzle_files, load_puzzles
from picross_model import Puzzle

logger = logging.getLogger(__name__)


@dataclass
class CatalogRequest:
    directories: List[str]


@dataclass
class CatalogResult:
    puzzles: List[Puzzle] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CatalogWorker:
    """Scans puzzle directories on a background thread.

    Every result holds newly parsed Puzzle objects. The UI thread picks them
    up with poll() between ticks and installs them into the Catalog, so the
    puzzle bound to the running session is never shared with this thread.
    """

    def __init__(self) -> None:
        self._requests: "queue.Queue[Optional[CatalogRequest]]" = queue.Queue()
        self._results: "queue.Queue[CatalogResult]" = queue.Queue()
        self._thread = threading.Thread(target=self._loop, name="CatalogWorker", daemon=True)

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        # None tells the loop to exit after the pending requests
        self._requests.put(None)
        self._thread.join(timeout=timeout)

    def request_refresh(self, directories: List[str]) -> None:
        self._requests.put(CatalogRequest(directories=list(directories)))

    def poll(self) -> List[CatalogResult]:
        """Every result finished since the last call, oldest first."""
        out: List[CatalogResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except queue.Empty:
                return out

    def _loop(self) -> None:
        while True:
            req = self._requests.get()
            if req is None:
                return
            self._results.put(self._scan(req))

    def _scan(self, req: CatalogRequest) -> CatalogResult:
        paths: List[str] = []
        try:
            for directory in req.directories:
                paths.extend(list_puzzle_files(directory))
            puzzles, skipped = load_puzzles(paths)
        except Exception as e:
            logger.exception("Catalog scan failed")
            return CatalogResult(error=f"Refresh failed: {e}")
        logger.debug("Scanned %d files in %d directories", len(paths), len(req.directories))
        return CatalogResult(puzzles=puzzles, skipped=skipped)

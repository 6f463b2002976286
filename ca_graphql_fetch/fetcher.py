"""
Paginated Fetcher — Drives the count → page → flatten → write loop.

States:

  COUNTING   One search with limit=1 to learn the total. Errors propagate to
             the caller (the run fails). A total of 0 ends the run here.
  FETCHING   Pages of min(page_size, target - fetched) records are requested
             at increasing offsets. Each record is flattened and written.
  EXHAUSTED  The remote returned an empty page before the target was reached.
             Normal termination.
  ERROR      A page failed with RequestError or ProtocolError. A warning is
             printed and the loop stops; records already written are kept.
  DONE       fetched reached the target.

AuthenticationError is never caught here: a login failure mid-fetch aborts
the whole run. The output file is closed on every path.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from tqdm import tqdm

from .ca_client import CollectiveAccessClient, SearchRequest
from .credentials import Credentials
from .errors import FetchError, ProtocolError, RequestError
from .jsonl_writer import JsonlWriter
from .record_flattener import RecordFlattener
from .settings import DEFAULT_SETTINGS


class FetchState(Enum):
    COUNTING = "counting"
    FETCHING = "fetching"
    EXHAUSTED = "exhausted"
    ERROR = "error"
    DONE = "done"


@dataclass
class FetchResult:
    """What a fetch run produced.

    state is the terminal state: DONE, EXHAUSTED or ERROR.
    fetched may be lower than target when the run stopped early.
    """

    total_count: int = 0
    target: int = 0
    fetched: int = 0
    state: FetchState = FetchState.COUNTING
    error: Optional[str] = None
    error_offset: Optional[int] = None
    output_path: Optional[str] = None


class PaginatedFetcher:
    """Fetches every matching record, one page at a time.

    Attributes:
        client: CollectiveAccessClient used for count and search calls.
        credentials: Connection the fetch runs against.
        flattener: RecordFlattener applied to each raw result.
        page_size: Maximum records per search call.
        max_records: Upper bound on records fetched (0 = no bound).
        show_progress: Whether to draw a tqdm progress bar.
        state: Current FetchState.
    """

    def __init__(
        self,
        client: CollectiveAccessClient,
        credentials: Credentials,
        flattener: Optional[RecordFlattener] = None,
        page_size: int = DEFAULT_SETTINGS["PAGE_SIZE"],
        max_records: int = DEFAULT_SETTINGS["MAX_RECORDS"],
        writer_factory: Callable[[str], JsonlWriter] = JsonlWriter.open,
        show_progress: bool = True,
        debug: bool = False,
    ):
        if page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {page_size}")
        self.client = client
        self.credentials = credentials
        self.flattener = flattener if flattener is not None else RecordFlattener()
        self.page_size = page_size
        self.max_records = max_records
        self.writer_factory = writer_factory
        self.show_progress = show_progress
        self.debug = debug
        self.state = FetchState.COUNTING

    def target_for(self, total_count: int) -> int:
        """Number of records to fetch given the remote total."""
        if self.max_records > 0:
            return min(total_count, self.max_records)
        return total_count

    def run(self, search: str, bundles: Sequence[str], output_path: str) -> FetchResult:
        """Fetch all matching records and append them to output_path.

        Raises:
            FetchError: If the count search fails, or AuthenticationError at any point.
        """
        result = FetchResult(output_path=output_path)

        self.state = FetchState.COUNTING
        try:
            result.total_count = self.client.count(self.credentials, search, bundles)
        except FetchError:
            self.state = FetchState.ERROR
            result.state = self.state
            raise

        if result.total_count == 0:
            print("  No objects found")
            self.state = FetchState.DONE
            result.state = self.state
            return result

        result.target = self.target_for(result.total_count)
        print(f"  Found {result.total_count} objects")
        print(f"  Will fetch {result.target} objects")

        self.state = FetchState.FETCHING
        with self.writer_factory(output_path) as writer, tqdm(
            total=result.target,
            desc="Fetching",
            unit="rec",
            disable=not self.show_progress,
        ) as progress:
            self._fetch_pages(search, bundles, writer, progress, result)

        if self.state == FetchState.FETCHING:
            self.state = FetchState.DONE
        result.state = self.state
        return result

    def _fetch_pages(self, search, bundles, writer, progress, result: FetchResult) -> None:
        start = 0

        while result.fetched < result.target:
            limit = min(self.page_size, result.target - result.fetched)

            try:
                response = self.client.search(
                    self.credentials, SearchRequest(search, bundles, start=start, limit=limit)
                )
            except (RequestError, ProtocolError) as e:
                # Partial output stays on disk; no retry
                progress.write(f"  Warning: Request failed at offset {start}: {e}")
                result.error = str(e)
                result.error_offset = start
                self.state = FetchState.ERROR
                return

            if not response.results:
                if self.debug:
                    progress.write(f"  No more results at offset {start}")
                self.state = FetchState.EXHAUSTED
                return

            for record in response.results:
                writer.write(self.flattener.flatten(record))
                result.fetched += 1
                progress.update(1)

                if result.fetched >= result.target:
                    break

            start += limit

"""
Shared fan-out and slot handling for the aggregators.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, Iterable, List, Optional

from config.settings import settings
from gateway.cache.core import Aggregate, CachePolicy
from gateway.clients.result import FetchResult
from gateway.errors import ErrorKind

Task = Callable[[], FetchResult]


class BaseAggregator:
    """
    Runs independent upstream calls in parallel and merges them per slot.

    Calls whose input depends on an earlier result (the status plan, player
    statistics for a fetched squad) are issued as a separate stage.
    """

    name = "base"

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers or settings.max_fanout_workers
        self.logger = logging.getLogger(f"aggregators.{self.name}")

    def fan_out(self, tasks: Dict[Any, Task]) -> Dict[Any, FetchResult]:
        """
        Run every task and wait for all of them.

        A task that raises is reported as an INTERNAL error for its key only.
        """
        if not tasks:
            return {}
        if len(tasks) == 1:
            key, task = next(iter(tasks.items()))
            return {key: self._run(key, task)}

        results: Dict[Any, FetchResult] = {}
        workers = min(len(tasks), self.max_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fan-out") as executor:
            futures = {executor.submit(self._run, key, task): key for key, task in tasks.items()}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return results

    def _run(self, key: Any, task: Task) -> FetchResult:
        try:
            return task()
        except Exception as e:
            self.logger.warning(f"Slot {key} raised {type(e).__name__}: {e}")
            return FetchResult.err(ErrorKind.INTERNAL, str(e))

    def fetch_slots(self, plan: Dict[str, Task], context: str) -> Dict[str, Any]:
        """
        Fan out `plan` and turn each result into a slot value.

        Failed slots become None and are logged; they never fail the
        aggregation.
        """
        slots: Dict[str, Any] = {}
        for name, result in self.fan_out(plan).items():
            if result.is_ok:
                slots[name] = result.value
            else:
                self.logger.warning(
                    f"Degraded {context}: slot '{name}' unavailable "
                    f"({result.error.value}: {result.message})"
                )
                slots[name] = None
        return slots

    def lookup_many(
        self, ids: Iterable[Any], fetch: Callable[[Any], FetchResult]
    ) -> Dict[Any, Any]:
        """
        Fetch each distinct id once. Failed lookups map to None.
        """
        unique: List[Any] = []
        for entity_id in ids:
            if entity_id is not None and entity_id not in unique:
                unique.append(entity_id)
        results = self.fan_out({entity_id: (lambda i=entity_id: fetch(i)) for entity_id in unique})
        return {entity_id: result.value_or(None) for entity_id, result in results.items()}

    @staticmethod
    def passthrough(result: FetchResult, policy: CachePolicy) -> FetchResult:
        """Wrap a single upstream call as an aggregate."""
        return result.map(lambda value: Aggregate(document=value, policy=policy))

    @staticmethod
    def primary_failed(result: FetchResult) -> bool:
        """
        True when the primary entity is missing or malformed.

        A failed primary means the composite is meaningless: the caller
        returns the error and issues no secondary calls.
        """
        return not result.is_ok or not isinstance(result.value, dict)

    @staticmethod
    def primary_error(result: FetchResult, what: str) -> FetchResult:
        if result.error is ErrorKind.NOT_FOUND:
            return FetchResult.err(ErrorKind.NOT_FOUND, f"{what.capitalize()} not found", status=404)
        if not result.is_ok:
            return result
        return FetchResult.err(ErrorKind.BAD_RESPONSE, f"Malformed {what} payload")

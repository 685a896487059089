# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Use case: re-apply counter mutations left over by a partial failure.

Purpose:
    Take the ``failed`` list of a ``PartialFailureError`` and push it through
    the counter pipeline again. The ledger is not touched.

Layer:
    application
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from workledger.application.services.batch_executor import CounterApplyResult
from workledger.application.services.counter_sync import CounterSynchronizer
from workledger.domain.entities.delta_set import CounterMutation, DeltaSet

logger = logging.getLogger(__name__)


class RetryCounterMutationsUseCase:
    """Re-apply unconfirmed counter mutations.

    Mutations for the same entity are summed first, so passing the ``failed``
    lists of several errors at once still writes each entity once.

    Raises:
        PartialFailureError: If some mutations still do not apply.
    """

    operation = "retry_counters"

    def __init__(self, counters: CounterSynchronizer) -> None:
        self._counters = counters
        self._observer = counters.observer

    async def execute(self, mutations: Iterable[CounterMutation]) -> CounterApplyResult:
        delta = DeltaSet.from_mutations(mutations)
        with self._observer.operation(self.operation):
            logger.info("ledger.retry_counters.start", extra={"counter_mutations": len(delta)})
            return await self._counters.apply(delta, operation=self.operation)

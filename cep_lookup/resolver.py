"""Race coordinator — query every provider at once and keep the first answer."""

import asyncio
import logging
import time
from typing import Coroutine, List, Optional, Set

from .config import Config, RacePolicy
from .errors import DeadlineExceeded, UpstreamError
from .models import Outcome, Success, TimedOut, UpstreamFailure
from .providers import AddressProvider

logger = logging.getLogger(__name__)


class RaceContext:
    """
    Cancellation scope for one race.

    Holds the absolute deadline shared by every provider call and the tasks
    spawned under it. ``cancel`` stops whatever is still running and may be
    called any number of times.
    """

    def __init__(self, timeout_s: float):
        self.timeout_s = timeout_s
        self._loop = asyncio.get_running_loop()
        self.deadline = self._loop.time() + timeout_s
        self._tasks: Set[asyncio.Task] = set()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def remaining(self) -> float:
        """Seconds left before the deadline (0.0 once it has passed)."""
        return max(0.0, self.deadline - self._loop.time())

    def deadline_scope(self) -> asyncio.Timeout:
        return asyncio.timeout_at(self.deadline)

    def spawn(self, coro: Coroutine) -> asyncio.Task:
        if self._cancelled:
            coro.close()
            raise RuntimeError("race context is already cancelled")
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        for task in list(self._tasks):
            task.cancel()

    async def drain(self) -> None:
        """Wait for cancelled tasks to unwind so none outlive the request."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


class CepResolver:
    """
    Resolve a CEP by racing all providers against a shared deadline.

    Every provider task delivers exactly one message (a ``Success`` or an
    ``UpstreamFailure``) into a queue sized for all of them, so a loser that
    finishes late never blocks. Under ``RacePolicy.FIRST_ARRIVAL`` the first
    message decides the race even when it is a failure; a slower provider
    that would have succeeded is cancelled. ``RacePolicy.FIRST_SUCCESS`` keeps
    listening until a success arrives or every provider has failed.

    A failure caused by the race deadline becomes ``TimedOut``; any other
    failure becomes the ``UpstreamFailure`` itself. No retries.
    """

    def __init__(self, providers: List[AddressProvider], config: Optional[Config] = None):
        if not providers:
            raise ValueError("CepResolver needs at least one provider")
        self.providers = providers
        self.config = config or Config()
        self.policy = self.config.race_policy

    async def resolve(self, cep: str) -> Outcome:
        t0 = time.monotonic()
        ctx = RaceContext(self.config.race_timeout_s)
        queue: asyncio.Queue = asyncio.Queue(maxsize=len(self.providers))
        try:
            for provider in self.providers:
                ctx.spawn(self._race_one(ctx, provider, cep, queue))
            message = await self._select(queue)
            ctx.cancel()
        finally:
            ctx.cancel()
            await ctx.drain()

        outcome = self._to_outcome(message)
        elapsed_ms = int((time.monotonic() - t0) * 1000)
        if isinstance(outcome, Success):
            logger.info(f"CEP {cep}: {outcome.origin} won ({elapsed_ms}ms)")
        elif isinstance(outcome, TimedOut):
            logger.warning(f"CEP {cep}: no provider answered within {ctx.timeout_s:g}s")
        else:
            logger.warning(f"CEP {cep}: {outcome.origin} failed first: {outcome.error} ({elapsed_ms}ms)")
        return outcome

    async def _race_one(
        self, ctx: RaceContext, provider: AddressProvider, cep: str, queue: asyncio.Queue
    ) -> None:
        try:
            async with ctx.deadline_scope():
                address = await provider.lookup(cep)
        except TimeoutError:
            message = UpstreamFailure(provider.origin, DeadlineExceeded(provider.origin, ctx.timeout_s))
        except UpstreamError as e:
            message = UpstreamFailure(provider.origin, e)
        except Exception as e:
            logger.exception(f"{provider.label}: unexpected error looking up {cep}")
            message = UpstreamFailure(provider.origin, UpstreamError(provider.origin, f"unexpected error: {e}"))
        else:
            message = Success(provider.origin, address)
        queue.put_nowait(message)

    async def _select(self, queue: asyncio.Queue):
        first = await queue.get()
        if self.policy is RacePolicy.FIRST_ARRIVAL or isinstance(first, Success):
            return first

        for _ in range(len(self.providers) - 1):
            message = await queue.get()
            if isinstance(message, Success):
                return message
        return first

    @staticmethod
    def _to_outcome(message) -> Outcome:
        if isinstance(message, UpstreamFailure) and isinstance(message.error, DeadlineExceeded):
            return TimedOut(timeout_s=message.error.timeout_s or 0.0)
        return message

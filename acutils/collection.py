# ################################################################################################ #
# Collection building blocks                                                                       #
#                                                                                                  #
# Every AccuRev collection (depots, streams, users, ...) is a list that is filled once by an       #
# init_async() coroutine and then only read. Records may be appended from several concurrently     #
# running sub-commands so appends go through a lock.                                               #
# ################################################################################################ #

import asyncio
import logging
import threading

from acutils import command
from acutils.errors import AcUtilsError, CommandError, ToolDomainError, DuplicateKeyError

logger = logging.getLogger(__name__)

def AsAcUtilsError(error):
    """Returns `error` as an AcUtilsError so that it can be kept on a collection."""
    if isinstance(error, AcUtilsError):
        return error
    if isinstance(error, OSError):
        return CommandError("{0}: {1}".format(type(error).__name__, error))
    return AcUtilsError("Unexpected {0}: {1}".format(type(error).__name__, error))

class SingleFlight(object):
    """Computes a value once and hands the same result to every concurrent caller.

    The first caller of get() starts the factory coroutine, callers arriving before it completes
    await the same future. A factory that returns None or raises leaves the cell empty so that a
    later call tries again.
    """
    def __init__(self, factory):
        self._factory = factory
        self._future = None
        self._value = None
        self._done = False

    @property
    def done(self):
        return self._done

    async def get(self):
        if self._done:
            return self._value
        if self._future is None:
            self._future = asyncio.ensure_future(self._compute())
        # A cancelled caller must not cancel the computation the others are waiting on.
        return await asyncio.shield(self._future)

    async def _compute(self):
        try:
            value = await self._factory()
        except BaseException:
            self._future = None
            raise
        if value is None:
            self._future = None
        else:
            self._value = value
            self._done = True
        return value

class AcCollection(list):
    """Append-only list of records filled by an init_async() coroutine.

    init_async() returns True on success. On failure it returns False, logs the reason and keeps
    the typed error in `error`. Records appended before the failure stay in the list but the list
    as a whole is incomplete and should be discarded. Calling init_async() twice concurrently on
    the same instance is not supported.
    """
    def __init__(self, timeout=None):
        super().__init__()
        self._locker = threading.Lock()
        self.timeout = timeout
        self.error = None

    def _add(self, item):
        with self._locker:
            self.append(item)

    def _extend(self, items):
        with self._locker:
            self.extend(items)

    async def _run_async(self, cmd, validator=None):
        result = await command.run(cmd, validator=validator, timeout=self.timeout)
        if not result.valid:
            raise ToolDomainError(result)
        return result

    def _failed(self, operation, error):
        self.error = error
        logger.error("{0} failed: {1}".format(operation, error))
        return False

    async def _gather_async(self, coroutines, progress=None):
        """Awaits all sub-builds and returns True only if every one of them succeeded.

        `progress`, if given, is called with a running count each time a sub-build completes, in
        completion order. A sub-build that raises counts as a failed one, its error is logged and
        kept in `error`.
        """
        completed = 0

        async def _Track(coroutine):
            nonlocal completed
            try:
                return await coroutine
            finally:
                completed += 1
                if progress is not None:
                    progress(completed)

        results = await asyncio.gather(*[_Track(c) for c in coroutines], return_exceptions=True)
        ok = True
        for result in results:
            if isinstance(result, Exception):
                ok = self._failed("{0} sub-build".format(type(self).__name__), AsAcUtilsError(result))
            elif isinstance(result, BaseException):
                raise result
            elif not result:
                ok = False
        return ok

    def _single(self, what, key, predicate):
        matches = [item for item in self if predicate(item)]
        if len(matches) > 1:
            raise DuplicateKeyError(what, key, len(matches))
        if len(matches) == 1:
            return matches[0]
        return None

    def __str__(self):
        return '\n'.join(str(item) for item in self)

async def GuardAsync(operation, coroutine, onError=None):
    """Runs one standalone query and converts an AcUtilsError or OSError into None (logged)."""
    try:
        return await coroutine
    except (AcUtilsError, OSError) as e:
        error = AsAcUtilsError(e)
        logger.error("{0} failed: {1}".format(operation, error))
        if onError is not None:
            onError(error)
        return None

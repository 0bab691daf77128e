import asyncio
import random

import pytest

from acutils import command
from acutils import acdatetime
from acutils.command import AcResult, CmdValidate, split_command

from acdata import DEPOTS_XML, NEPTUNE_STREAMS_XML, JUPITER_STREAMS_XML


class FakeAccuRev:
    """Stands in for `acutils.command.run`.

    Responses are registered against an argv prefix, the longest matching prefix wins. A command
    nothing matches fails the way accurev does for an unknown command (exit code 1).
    """

    def __init__(self):
        self.responses = {}
        self.calls = []
        self.delay = None

    def add(self, prefix, stdout='', retval=0, stderr='', error=None):
        self.responses[split_command(prefix)] = (stdout, retval, stderr, error)

    def random_delay(self, low=0.0, high=0.02):
        self.delay = (low, high)

    def count(self, prefix):
        prefix = split_command(prefix)
        return sum(1 for args in self.calls if args[:len(prefix)] == prefix)

    def _match(self, args):
        best = None
        for prefix in self.responses:
            if args[:len(prefix)] == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        return best

    async def run(self, cmd, validator=None, timeout=None, executable=None, input=None):
        args = split_command(cmd)
        self.calls.append(args)
        if self.delay is not None:
            await asyncio.sleep(random.uniform(*self.delay))
        else:
            await asyncio.sleep(0)

        prefix = self._match(args)
        if prefix is None:
            return AcResult(retval=1, stdout='', stderr='Unknown command: {0}'.format(' '.join(args)), command=args, valid=False)

        stdout, retval, stderr, error = self.responses[prefix]
        if error is not None:
            raise error
        if validator is None:
            validator = CmdValidate()
        return AcResult(retval=retval, stdout=stdout, stderr=stderr, command=args, valid=validator.is_valid(args, retval))


@pytest.fixture
def fake_accurev(mocker):
    fake = FakeAccuRev()
    mocker.patch.object(command, 'run', fake.run)
    return fake


@pytest.fixture(autouse=True)
def utc_display():
    acdatetime.set_timezone(None)
    yield
    acdatetime.set_timezone(None)


@pytest.fixture
def depots_accurev(fake_accurev):
    fake_accurev.add(["show", "-fx", "depots"], DEPOTS_XML)
    fake_accurev.add(["show", "-fxg", "-p", "NEPTUNE"], NEPTUNE_STREAMS_XML)
    fake_accurev.add(["show", "-fxg", "-p", "JUPITER"], JUPITER_STREAMS_XML)
    fake_accurev.add(["show", "-p", "NEPTUNE", "-fx", "-s", "1", "-r", "streams"], NEPTUNE_STREAMS_XML)
    fake_accurev.add(["show", "-p", "JUPITER", "-fx", "-s", "1", "-r", "streams"], JUPITER_STREAMS_XML)
    return fake_accurev

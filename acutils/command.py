# ################################################################################################ #
# AccuRev command runner                                                                           #
#                                                                                                  #
# Runs one accurev command as a child process without blocking the event loop and captures its     #
# standard output, standard error and return code. A non-zero return code is not an error at this  #
# level, it is returned to the caller who decides (via a validator) whether the command succeeded. #
# ################################################################################################ #

import os
import shlex
import asyncio
import logging
import weakref
from dataclasses import dataclass

from acutils.errors import CommandError, ToolInvocationError, CommandTimeoutError

logger = logging.getLogger(__name__)

# ################################################################################################ #
# Script Globals                                                                                   #
# ################################################################################################ #
DEFAULT_MAX_CONCURRENT = 8
NOT_IN_WORKSPACE = "You are not in a directory associated with a workspace"

def _MaxConcurrentFromEnvironment():
    value = os.environ.get('ACUTILS_MAXCONCURRENT')
    if value is None:
        return DEFAULT_MAX_CONCURRENT
    try:
        value = int(value)
    except ValueError:
        logger.warning("Ignoring ACUTILS_MAXCONCURRENT={0!r}, expected a positive integer.".format(value))
        return DEFAULT_MAX_CONCURRENT
    if value < 1:
        logger.warning("Ignoring ACUTILS_MAXCONCURRENT={0}, expected a positive integer.".format(value))
        return DEFAULT_MAX_CONCURRENT
    return value

_accurevCmd = os.environ.get('ACUTILS_ACCUREV', 'accurev')
_maxConcurrent = _MaxConcurrentFromEnvironment()
# One limiter per event loop, asyncio primitives can't be shared between loops.
_limiters = weakref.WeakKeyDictionary()

_defaultTimeout = None

def get_default_timeout():
    return _defaultTimeout

def set_default_timeout(seconds):
    global _defaultTimeout
    _defaultTimeout = seconds

def get_executable():
    return _accurevCmd

def set_executable(path):
    global _accurevCmd
    _accurevCmd = path

def get_max_concurrent():
    return _maxConcurrent

def set_max_concurrent(value):
    global _maxConcurrent
    value = int(value)
    if value < 1:
        raise ValueError("The number of concurrent accurev processes must be at least 1, got {0}".format(value))
    _maxConcurrent = value
    _limiters.clear()

def _GetLimiter():
    loop = asyncio.get_running_loop()
    limiter = _limiters.get(loop)
    if limiter is None:
        limiter = asyncio.Semaphore(_maxConcurrent)
        _limiters[loop] = limiter
    return limiter

# ################################################################################################ #
# Script Classes                                                                                   #
# ################################################################################################ #
@dataclass(frozen=True)
class AcResult:
    retval: int
    stdout: str
    stderr: str
    command: tuple
    valid: bool

    def commandline(self):
        return shlex.join(self.command)

    def __str__(self):
        return "{0} ({1})".format(self.commandline(), self.retval)

class CmdValidate(object):
    """Decides whether a return code means the command did its job.

    Zero is always accepted. `diff` reports differences with 1 and a diff program error with 2,
    both of which carry meaning for the caller. `merge` returns 1 when there are conflicts.
    """
    acceptable = {
        'diff':  (0, 1, 2),
        'merge': (0, 1),
    }

    def is_valid(self, command, retval):
        verb = command[0] if len(command) > 0 else None
        return retval in self.acceptable.get(verb, (0,))

_defaultValidator = CmdValidate()

def split_command(command):
    if isinstance(command, str):
        return tuple(shlex.split(command))
    return tuple(str(arg) for arg in command)

def _Kill(process):
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass

async def run(command, validator=None, timeout=None, executable=None, input=None):
    """Runs `accurev <command>` and returns an AcResult.

    `command` is either a list of arguments (preferred, no quoting required) or a command line
    string which is split the way a POSIX shell would. Raises ToolInvocationError if the process
    can't be started, CommandTimeoutError if it does not finish within `timeout` seconds and
    CommandError for any other failure while talking to it.
    """
    args = split_command(command)
    if validator is None:
        validator = _defaultValidator
    if executable is None:
        executable = _accurevCmd
    if timeout is None:
        timeout = _defaultTimeout
    if input is None:
        input = b''
    elif isinstance(input, str):
        input = input.encode('utf-8')

    async with _GetLimiter():
        try:
            process = await asyncio.create_subprocess_exec(executable, *args,
                                                           stdin=asyncio.subprocess.PIPE,
                                                           stdout=asyncio.subprocess.PIPE,
                                                           stderr=asyncio.subprocess.PIPE)
        except OSError as e:
            raise ToolInvocationError("Failed to start '{0}': {1}".format(executable, e), args) from e

        try:
            stdoutData, stderrData = await asyncio.wait_for(process.communicate(input), timeout)
        except asyncio.TimeoutError:
            _Kill(process)
            await process.wait()
            raise CommandTimeoutError("accurev {0} did not finish within {1} seconds".format(shlex.join(args), timeout), args, timeout)
        except asyncio.CancelledError:
            _Kill(process)
            raise
        except Exception as e:
            _Kill(process)
            raise CommandError("Failed while running accurev {0}: {1}".format(shlex.join(args), e), args) from e

    stdout = stdoutData.decode('utf-8', errors='replace')
    stderr = stderrData.decode('utf-8', errors='replace')
    retval = process.returncode

    result = AcResult(retval=retval, stdout=stdout, stderr=stderr, command=args, valid=validator.is_valid(args, retval))

    message = stderr.strip()
    if len(message) > 0 and message != NOT_IN_WORKSPACE:
        logger.warning("accurev {0}: {1}".format(result.commandline(), message))
    logger.debug("accurev {0} returned {1}".format(result.commandline(), retval))

    return result

def run_sync(command, validator=None, timeout=None, executable=None, input=None):
    return asyncio.run(run(command, validator=validator, timeout=timeout, executable=executable, input=input))

# ################################################################################################ #
# Session helpers                                                                                  #
# ################################################################################################ #
async def login(username=None, password=None, timeout=None):
    if username is not None and password is not None:
        # Credentials go through stdin so that they don't show up in the process list.
        result = await run([ "login" ], timeout=timeout, input=username + '\n' + password + '\n')
        return result.valid
    return False

async def logout(timeout=None):
    result = await run([ "logout" ], timeout=timeout)
    return result.valid

def get_ac_sync():
    # AC_SYNC controls what happens when the client clock is out of sync with the server.
    #   * Not set or set to ERROR   ->   an error occurs and a message appears.
    #   * Set to WARN               ->   a warning is displayed but the command executes.
    #   * Set to IGNORE             ->   no error/warning, command executes.
    return os.environ.get('AC_SYNC')

def set_ac_sync(value):
    os.environ['AC_SYNC'] = value

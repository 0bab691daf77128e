# ################################################################################################ #
# AccuRev user preferences, `getpref`                                                              #
#                                                                                                  #
# The preferences are the settings of the AccuRev GUI client stored in the user's AccuRev home     #
# folder. Each query runs getpref once; only the home folder is remembered, per event loop.        #
# ################################################################################################ #

import os
import asyncio
import weakref

from acutils import command
from acutils.obj import Bool, parse_response
from acutils.collection import SingleFlight, GuardAsync
from acutils.errors import ToolDomainError, ParseError

_homeFolders = weakref.WeakKeyDictionary()

async def _GetPreferencesAsync(timeout=None):
    result = await command.run([ "getpref" ], timeout=timeout)
    if not result.valid:
        raise ToolDomainError(result)
    return parse_response(result.stdout)

def _Setting(xmlRoot, tag):
    element = xmlRoot.find(tag)
    if element is None or element.text is None:
        raise ParseError("The preferences have no {0} setting".format(tag))
    return element.text.strip()

async def get_ignore_options_async(timeout=None):
    """(ignoreWhitespace, ignoreWhitespaceChanges, ignoreCase) as set for diff, None on failure.

    merge doesn't use these settings and always shows every conflict.
    """
    async def _Query():
        xmlRoot = await _GetPreferencesAsync(timeout)
        return (Bool(_Setting(xmlRoot, 'diffIgnoreWhitespace')),
                Bool(_Setting(xmlRoot, 'diffIgnoreWhitespaceChanges')),
                Bool(_Setting(xmlRoot, 'diffIgnoreCase')))
    return await GuardAsync("get_ignore_options_async()", _Query())

async def get_use_ignore_elems_optimization_async(timeout=None):
    async def _Query():
        xmlRoot = await _GetPreferencesAsync(timeout)
        return Bool(_Setting(xmlRoot, 'USE_IGNORE_ELEMS_OPTIMIZATION'))
    return await GuardAsync("get_use_ignore_elems_optimization_async()", _Query())

async def _LoadAcHomeFolder(timeout=None):
    async def _Query():
        xmlRoot = await _GetPreferencesAsync(timeout)
        return os.path.join(_Setting(xmlRoot, 'HOME'), '.accurev')
    return await GuardAsync("get_ac_home_folder_async()", _Query())

async def get_ac_home_folder_async(timeout=None):
    """The AccuRev home folder (<HOME>/.accurev) or None on failure. Fetched once per event loop."""
    loop = asyncio.get_running_loop()
    cache = _homeFolders.get(loop)
    if cache is None:
        cache = SingleFlight(lambda: _LoadAcHomeFolder(timeout))
        _homeFolders[loop] = cache
    return await cache.get()

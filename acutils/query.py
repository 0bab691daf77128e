# ################################################################################################ #
# One-shot AccuRev queries                                                                         #
#                                                                                                  #
# Each query runs one command and returns a plain value. Failures are logged and reported with a   #
# sentinel (None, or -1 for the counts) so that a report can carry on without the value.           #
# ################################################################################################ #

import os
import re
import shutil
import logging
import tempfile

from acutils import command
from acutils.obj import IntOrNone, Version, parse_response
from acutils.collection import GuardAsync
from acutils.errors import ToolDomainError, ParseError

logger = logging.getLogger(__name__)

NOT_LOGGED_IN = "(not logged in)"
ACCLIENT_CNF = "acclient.cnf"

class Info(object):
    """The `accurev info` listing. Only the lines that are always printed are required."""
    lineMatcher = re.compile(r'^(.+?):[\s]+(.+)$')

    def __init__(self, principal, host=None, serverName=None, port=None, clientVer=None, serverVer=None, depot=None, workspaceRef=None, basis=None, top=None):
        self.principal    = principal
        self.host         = host
        self.serverName   = serverName
        self.port         = IntOrNone(port)
        self.clientVer    = clientVer
        self.serverVer    = serverVer
        self.depot        = depot
        self.workspaceRef = workspaceRef
        self.basis        = basis
        self.top          = top

    def __str__(self):
        return "{0}@{1}:{2}".format(self.principal, self.serverName, self.port)

    @classmethod
    def fromstring(cls, string):
        itemMap = {}
        for line in string.splitlines():
            match = cls.lineMatcher.search(line)
            if match:
                itemMap[match.group(1).strip()] = match.group(2).strip()

        if "Principal" not in itemMap:
            raise ParseError("The info output has no 'Principal:' line")

        return cls(principal=itemMap["Principal"]
                   , host=itemMap.get("Host")
                   , serverName=itemMap.get("Server name")
                   , port=itemMap.get("Port")
                   , clientVer=itemMap.get("client_ver")
                   , serverVer=itemMap.get("server_ver")
                   , depot=itemMap.get("Depot")
                   , workspaceRef=itemMap.get("Workspace/ref")
                   , basis=itemMap.get("Basis")
                   , top=itemMap.get("Top"))

async def _RunAsync(cmd, timeout=None):
    result = await command.run(cmd, timeout=timeout)
    if not result.valid:
        raise ToolDomainError(result)
    return result

# ################################################################################################ #
# Session and server                                                                               #
# ################################################################################################ #
async def get_info_async(timeout=None):
    async def _Query():
        result = await _RunAsync([ "info" ], timeout)
        return Info.fromstring(result.stdout)
    return await GuardAsync("get_info_async()", _Query())

async def get_principal_async(timeout=None):
    """The name of the logged in principal, None when not logged in or on failure."""
    info = await get_info_async(timeout)
    if info is None or info.principal == NOT_LOGGED_IN:
        return None
    return info.principal

async def get_accurev_version_async(timeout=None):
    """The (major, minor, patch) version of the AccuRev server or None on failure."""
    async def _Query():
        # the xml command only reads its query from a file
        fd, queryFile = tempfile.mkstemp(suffix='.xml', prefix='acutils-')
        try:
            with os.fdopen(fd, 'w') as f:
                f.write("<serverInfo/>")
            result = await _RunAsync([ "xml", "-l", queryFile ], timeout)
        finally:
            os.remove(queryFile)
        xmlRoot = parse_response(result.stdout)
        serverVersion = xmlRoot.find('serverVersion')
        if serverVersion is None:
            raise ParseError("The serverInfo response has no serverVersion element")
        return (IntOrNone(serverVersion.attrib.get('major')), IntOrNone(serverVersion.attrib.get('minor')), IntOrNone(serverVersion.attrib.get('patch')))
    return await GuardAsync("get_accurev_version_async()", _Query())

def acclient_cnf_path():
    """The acclient.cnf next to the accurev executable, None when the executable isn't found."""
    executable = shutil.which(command.get_executable())
    if executable is None:
        return None
    return os.path.join(os.path.dirname(os.path.realpath(executable)), ACCLIENT_CNF)

def get_server_from_acclient_cnf(path=None):
    """The server the client is configured for (e.g. accurev.corp.com:5050), or None on failure.

    Only the first line of acclient.cnf is read, it has the form SERVERS = <host>:<port>.
    """
    if path is None:
        path = acclient_cnf_path()
        if path is None:
            logger.error("get_server_from_acclient_cnf() failed: {0!r} not found".format(command.get_executable()))
            return None
    try:
        with open(path, encoding='utf-8') as f:
            line = f.readline()
    except OSError as e:
        logger.error("get_server_from_acclient_cnf() failed: {0}".format(e))
        return None

    _, sep, value = line.partition('=')
    value = value.strip()
    if not sep or not value:
        logger.error("get_server_from_acclient_cnf() failed: no server in {0!r}".format(line.strip()))
        return None
    return value

# ################################################################################################ #
# Elements                                                                                         #
# ################################################################################################ #
async def get_element_name_async(stream, eid, timeout=None):
    """The (depot relative path, parent folder eid) of element `eid` in `stream`, or None.

    The answer is only reliable when the command is issued outside of a workspace or from a
    workspace in the same depot as `stream`.
    """
    async def _Query():
        result = await _RunAsync([ "name", "-v", str(stream), "-fx", "-e", str(eid) ], timeout)
        xmlRoot = parse_response(result.stdout, "name")
        element = xmlRoot.find('element')
        if element is None:
            return None
        return (element.attrib.get('location'), IntOrNone(element.attrib.get('parent_id')))
    return await GuardAsync("get_element_name_async(stream={0!r}, eid={1})".format(str(stream), eid), _Query())

async def get_backed_version_async(realVerSpec, depot, depotRelPath, timeout=None):
    """The real version in the backing stream of the version `realVerSpec` (e.g. MARS_DEV_thomas/4)."""
    async def _Query():
        # -i only reports the versions that would be compared
        result = await command.run([ "diff", "-i", "-b", "-fx", "-v", str(realVerSpec), "-p", str(depot), depotRelPath ], timeout=timeout)
        if result.retval >= 2:
            raise ToolDomainError(result)
        xmlRoot = parse_response(result.stdout, "diff")
        backed = None
        for stream2 in xmlRoot.findall('Element/Change/Stream2'):
            backed = Version.fromstring(stream2.attrib.get('Version'))
        return backed
    return await GuardAsync("get_backed_version_async(verSpec={0!r}, path={1!r})".format(str(realVerSpec), depotRelPath), _Query())

async def get_cat_file_async(eid, depot, verSpec, timeout=None):
    """Writes the content of version `verSpec` of element `eid` to a temporary file and returns its
    name, or None on failure. The caller deletes the file."""
    async def _Query():
        result = await _RunAsync([ "cat", "-v", str(verSpec), "-p", str(depot), "-e", str(eid) ], timeout)
        fd, catFile = tempfile.mkstemp(prefix='acutils-cat-')
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(result.stdout)
        return catFile
    return await GuardAsync("get_cat_file_async(eid={0}, verSpec={1!r})".format(eid, str(verSpec)), _Query())

# ################################################################################################ #
# Counts, -1 on failure                                                                            #
# ################################################################################################ #
async def _CountAsync(operation, cmd, tag, predicate=None, timeout=None):
    async def _Query():
        result = await _RunAsync(cmd, timeout)
        xmlRoot = parse_response(result.stdout)
        return sum(1 for e in xmlRoot.findall(tag) if predicate is None or predicate(e))
    count = await GuardAsync(operation, _Query())
    return -1 if count is None else count

async def get_users_count_async(includeDeactivated=False, timeout=None):
    return await _CountAsync("get_users_count_async()", [ "show", "-fix" if includeDeactivated else "-fx", "users" ], 'Element', timeout=timeout)

async def get_depots_count_async(timeout=None):
    return await _CountAsync("get_depots_count_async()", [ "show", "-fx", "depots" ], 'Element', timeout=timeout)

async def get_dyn_streams_count_async(timeout=None):
    return await _CountAsync("get_dyn_streams_count_async()", [ "show", "-fx", "-d", "streams" ], 'stream',
                             predicate=lambda e: e.attrib.get('isDynamic') == 'true', timeout=timeout)

async def get_total_streams_count_async(timeout=None):
    return await _CountAsync("get_total_streams_count_async()", [ "show", "-fix", "streams" ], 'stream', timeout=timeout)

async def get_streams_with_default_group_count_async(timeout=None):
    # -d lists only the streams that have a default group
    return await _CountAsync("get_streams_with_default_group_count_async()", [ "show", "-fx", "-d", "streams" ], 'stream', timeout=timeout)

async def get_total_workspace_count_async(timeout=None):
    return await _CountAsync("get_total_workspace_count_async()", [ "show", "-fix", "-a", "wspaces" ], 'Element', timeout=timeout)

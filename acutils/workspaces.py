# ################################################################################################ #
# AccuRev workspaces and reference trees, `show -fvx wspaces` and `show -fvx refs`                 #
# ################################################################################################ #

import enum
import asyncio
import functools
from dataclasses import dataclass

from acutils.obj import IntOrNone, IntOrDefault, Required, parse_response
from acutils.acdatetime import acdate_to_datetime
from acutils.principals import Principal
from acutils.collection import AcCollection
from acutils.errors import AcUtilsError, ParseError

class WsType(enum.IntEnum):
    Workspace = 1
    RefTree   = 3
    Exclusive = 9
    Anchor    = 17

class WsEOL(enum.IntEnum):
    Platform = 0
    Unix     = 1
    Windows  = 2

def _IntEnumOf(enumType, value):
    try:
        return enumType(value)
    except ValueError:
        raise ParseError("Unrecognized {0} value {1!r}".format(enumType.__name__, value))

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Workspace:
    name: str
    streamNumber: int
    depot: object
    location: str = None
    storage: str = None
    host: str = None
    targetTransaction: int = None
    updateTransaction: int = None
    fileModTime: object = None
    Type: WsType = WsType.Workspace
    EOL: WsEOL = WsEOL.Platform
    hidden: bool = False
    owner: Principal = None

    def _key(self):
        return (self.streamNumber, self.depot)

    def __eq__(self, other):
        if not isinstance(other, Workspace):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        if not isinstance(other, Workspace):
            return NotImplemented
        return (self.depot.name, self.name) < (other.depot.name, other.name)

    def __str__(self):
        return "{0} ({1}) {{{2}}} {3}:{4}".format(self.name, self.streamNumber, self.Type.name, self.host, self.storage)

    @classmethod
    def fromxmlelement(cls, xmlElement, depot):
        if xmlElement is not None and xmlElement.tag == 'Element':
            name              = Required(xmlElement, 'Name')
            # the attribute is only emitted for deactivated workspaces
            hidden            = xmlElement.attrib.get('hidden') is not None
            location          = xmlElement.attrib.get('Loc')
            storage           = xmlElement.attrib.get('Storage')
            host              = xmlElement.attrib.get('Host')
            streamNumber      = IntOrNone(Required(xmlElement, 'Stream'))
            targetTransaction = IntOrNone(xmlElement.attrib.get('Target_trans'))
            updateTransaction = IntOrNone(xmlElement.attrib.get('Trans'))
            fileModTime       = acdate_to_datetime(xmlElement.attrib.get('fileModTime'))
            Type              = _IntEnumOf(WsType, IntOrDefault(xmlElement.attrib.get('Type'), WsType.Workspace))
            EOL               = _IntEnumOf(WsEOL, IntOrDefault(xmlElement.attrib.get('EOL'), WsEOL.Platform))
            owner = None
            if xmlElement.attrib.get('user_name') is not None:
                owner = Principal(number=IntOrNone(xmlElement.attrib.get('user_id')), name=xmlElement.attrib.get('user_name'))

            return cls(name=name, streamNumber=streamNumber, depot=depot, location=location, storage=storage, host=host,
                       targetTransaction=targetTransaction, updateTransaction=updateTransaction, fileModTime=fileModTime,
                       Type=Type, EOL=EOL, hidden=hidden, owner=owner)

        return None

class Workspaces(AcCollection):
    """Workspaces (and optionally reference trees) located in one of `depots`.

    allWSpaces lists the workspaces of every principal instead of only the current one's.
    """
    def __init__(self, depots, allWSpaces=False, includeHidden=False, includeRefTrees=False, timeout=None):
        super().__init__(timeout=timeout)
        self.depots = depots
        self.allWSpaces = allWSpaces
        self.includeHidden = includeHidden
        self.includeRefTrees = includeRefTrees

    def project(self, xmlText, depot=None):
        xmlRoot = parse_response(xmlText)
        workspaces = []
        for element in xmlRoot.iter('Element'):
            depotName = element.attrib.get('depot')
            if depot is not None and depotName != depot.name:
                continue
            owningDepot = self.depots.get_depot(depotName) if depotName is not None else None
            if owningDepot is None:
                continue
            workspaces.append(Workspace.fromxmlelement(element, owningDepot))
        return workspaces

    def _flags(self):
        # -v adds the workspace location
        return "-fvix" if self.includeHidden else "-fvx"

    async def init_async(self, depot=None):
        cmds = [ [ "show", self._flags() ] + ([ "-a" ] if self.allWSpaces else []) + [ "wspaces" ] ]
        if self.includeRefTrees:
            cmds.append([ "show", self._flags(), "refs" ])
        try:
            results = await asyncio.gather(*[ self._run_async(cmd) for cmd in cmds ], return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    raise result
                self._extend(self.project(result.stdout, depot))
        except AcUtilsError as e:
            return self._failed("Workspaces.init_async(depot={0!r})".format(depot.name if depot is not None else None), e)
        return True

    def get_workspace(self, key, number=None):
        """get_workspace(name) or get_workspace(depot, number)."""
        if number is not None:
            return self._single("Workspace", (key, number), lambda w: (w.depot == key or w.depot.name == key) and w.streamNumber == number)
        return self._single("Workspace", key, lambda w: w.name == key)

    def get_depot(self, wsname):
        workspace = self.get_workspace(wsname)
        if workspace is None:
            return None
        return workspace.depot

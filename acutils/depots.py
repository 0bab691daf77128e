# ################################################################################################ #
# AccuRev depots, `show -fx depots`                                                                #
#                                                                                                  #
# A depot owns the list of its streams. The parent/child relation between streams is not stored    #
# in the records, it is resolved on demand from a stream hierarchy listing that is fetched once    #
# per depot.                                                                                       #
# ################################################################################################ #

import os
import sys
import logging
import functools
from dataclasses import dataclass, field, InitVar

from acutils import command
from acutils.obj import IntOrNone, IntOrDefault, Bool, Required, TokenEnum, parse_response
from acutils.streams import Streams, StreamType, ROOT_STREAM_NUMBER
from acutils.permissions import Permissions, PermKind, PermType, PermRights
from acutils.collection import AcCollection, SingleFlight
from acutils.errors import AcUtilsError, ToolDomainError, DuplicateKeyError

logger = logging.getLogger(__name__)

class CaseSensitivity(TokenEnum):
    insensitive = 1
    sensitive   = 2

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Depot:
    number: int
    name: str
    slice: int = None
    exclusiveLocking: bool = False
    case: CaseSensitivity = CaseSensitivity.insensitive
    streams: Streams = field(init=False, repr=False)
    dynamicOnly: InitVar[bool] = False
    includeHidden: InitVar[bool] = False
    timeout: InitVar[float] = None

    def __post_init__(self, dynamicOnly, includeHidden, timeout):
        object.__setattr__(self, 'streams', Streams(self, dynamicOnly=dynamicOnly, includeHidden=includeHidden, timeout=timeout))
        object.__setattr__(self, '_hierarchy', {
            False: SingleFlight(functools.partial(self._get_hierarchy_async, False)),
            True:  SingleFlight(functools.partial(self._get_hierarchy_async, True)),
        })

    def __eq__(self, other):
        if not isinstance(other, Depot):
            return NotImplemented
        return self.number == other.number

    def __hash__(self):
        return hash(self.number)

    def __lt__(self, other):
        if not isinstance(other, Depot):
            return NotImplemented
        return self.name < other.name

    def __str__(self):
        return self.name

    @classmethod
    def fromxmlelement(cls, xmlElement, dynamicOnly=False, includeHidden=False, timeout=None):
        if xmlElement is not None and xmlElement.tag == 'Element':
            number           = IntOrNone(Required(xmlElement, 'Number'))
            name             = Required(xmlElement, 'Name')
            slice            = IntOrNone(xmlElement.attrib.get('Slice'))
            exclusiveLocking = Bool(xmlElement.attrib.get('exclusiveLocking'))
            case             = CaseSensitivity.parse(xmlElement.attrib.get('case', 'insensitive'))

            return cls(number=number, name=name, slice=slice, exclusiveLocking=exclusiveLocking, case=case,
                       dynamicOnly=dynamicOnly, includeHidden=includeHidden, timeout=timeout)

        return None

    def list_file(self):
        """Returns <appdata>/AcTools/<program>/<depot>.streams if it exists, None otherwise.

        The file holds one stream name per line and limits which streams are fetched for the depot.
        """
        appdata = os.environ.get('APPDATA')
        if appdata is None:
            appdata = os.path.join(os.path.expanduser('~'), '.config')
        program = os.path.splitext(os.path.basename(sys.argv[0]))[0]
        listfile = os.path.join(appdata, 'AcTools', program, self.name + '.streams')
        if os.path.isfile(listfile):
            return listfile
        return None

    async def init_async(self, listfile=None):
        if listfile is None:
            listfile = self.list_file()
        return await self.streams.init_async(listfile)

    def get_stream(self, key):
        return self.streams.get_stream(key)

    def get_basis(self, key):
        stream = self.get_stream(key)
        if stream is None or stream.streamNumber == ROOT_STREAM_NUMBER or stream.basisStreamNumber < 0:
            return None
        return self.get_stream(stream.basisStreamNumber)

    async def _get_hierarchy_async(self, includeWSpaces):
        cmd = [ "show", "-p", self.name, "-fix" if self.streams.includeHidden else "-fx", "-s", str(ROOT_STREAM_NUMBER), "-r", "streams" ]
        try:
            result = await command.run(cmd, timeout=self.streams.timeout)
            if not result.valid:
                raise ToolDomainError(result)
            xmlRoot = parse_response(result.stdout)
            hierarchy = {}
            for streamElement in xmlRoot.findall('stream'):
                if not includeWSpaces and streamElement.attrib.get('type') == StreamType.workspace.name:
                    continue
                # root streams have no basisStreamNumber
                parent = IntOrDefault(streamElement.attrib.get('basisStreamNumber'), -1)
                child = IntOrNone(Required(streamElement, 'streamNumber'))
                hierarchy.setdefault(parent, []).append(child)
            return hierarchy
        except AcUtilsError as e:
            logger.error("Depot.get_hierarchy_async(depot={0!r}) failed: {1}".format(self.name, e))
            return None

    async def get_children_async(self, stream, includeWSpaces=False):
        """Returns (found, children) for `stream`.

        found is True when the stream has children, False when it has none (workspaces never do)
        and None when the stream hierarchy could not be fetched, in which case children is None.
        Workspaces are only listed with includeWSpaces and when the depot's streams include them.
        """
        if stream.Type == StreamType.workspace:
            return (False, [])
        hierarchy = await self._hierarchy[bool(includeWSpaces)].get()
        if hierarchy is None:
            return (None, None)
        childNumbers = hierarchy.get(stream.streamNumber)
        if childNumbers is None:
            return (False, [])
        children = [ self.get_stream(n) for n in childNumbers ]
        return (True, [ c for c in children if c is not None ])

    async def for_stream_and_all_children_async(self, stream, callback, includeWSpaces=False):
        callback(stream)
        found, children = await self.get_children_async(stream, includeWSpaces)
        if found is None:
            return False
        for child in children:
            if not await self.for_stream_and_all_children_async(child, callback, includeWSpaces):
                return False
        return True

class Depots(AcCollection):
    def __init__(self, dynamicOnly=False, includeHidden=False, timeout=None):
        super().__init__(timeout=timeout)
        self.dynamicOnly = dynamicOnly
        self.includeHidden = includeHidden
        self._permissions = SingleFlight(self._init_permissions_async)

    def project(self, xmlText):
        xmlRoot = parse_response(xmlText, "show depots")
        return [ Depot.fromxmlelement(e, dynamicOnly=self.dynamicOnly, includeHidden=self.includeHidden, timeout=self.timeout)
                 for e in xmlRoot.findall('Element') ]

    async def init_async(self, depots=None, progress=None):
        """Lists the depots, limited to the names in `depots` when given, and then the streams of
        each depot concurrently. `progress` is called once per depot whose streams were fetched."""
        try:
            result = await self._run_async([ "show", "-fx", "depots" ])
            items = self.project(result.stdout)
        except AcUtilsError as e:
            return self._failed("Depots.init_async()", e)

        if depots is not None:
            wanted = set(depots)
            items = [ d for d in items if d.name in wanted ]
        self._extend(items)

        ok = await self._gather_async([ d.init_async() for d in items ], progress)
        if not ok and self.error is None:
            self.error = next((d.streams.error for d in items if d.streams.error is not None), None)
        return ok

    def get_depot(self, key):
        if isinstance(key, int):
            return self._single("Depot", key, lambda d: d.number == key)
        return self._single("Depot", key, lambda d: d.name == key)

    def get_depot_for_stream(self, name):
        matches = [ d for d in self if d.get_stream(name) is not None ]
        if len(matches) > 1:
            raise DuplicateKeyError("Depot for stream", name, len(matches))
        return matches[0] if matches else None

    def get_stream(self, name):
        depot = self.get_depot_for_stream(name)
        if depot is None:
            return None
        return depot.get_stream(name)

    async def _init_permissions_async(self):
        permissions = Permissions(PermKind.depot, timeout=self.timeout)
        if await permissions.init_async():
            return permissions
        return None

    async def can_view_async(self, user):
        """Returns the comma separated, sorted names of the depots `user` may see or None on failure.

        A name is followed by '+' when the permission that grants access is inheritable. An
        explicit permission for the user wins over the permissions of the groups the user belongs
        to. Without any applicable permission everybody has access.
        """
        permissions = await self._permissions.get()
        if permissions is None:
            return None

        memberOf = set(user.groups or ())
        canView = []
        for depot in self:
            perms = permissions.for_name(depot.name)
            userAll = [ p for p in perms if p.Type == PermType.user and p.appliesTo == user.name and p.rights == PermRights.all ]
            if len(userAll) > 0:
                canView.append(depot.name + ("+" if any(p.inheritable for p in userAll) else ""))
                continue
            if any(p.Type == PermType.user and p.appliesTo == user.name and p.rights == PermRights.none for p in perms):
                continue

            groupPerms = [ p for p in perms if p.Type == PermType.group and p.appliesTo in memberOf ]
            denied = any(p.rights == PermRights.none for p in groupPerms)
            granted = any(p.rights == PermRights.all for p in groupPerms)
            if denied and not granted:
                continue
            canView.append(depot.name + ("+" if any(p.inheritable for p in groupPerms) else ""))

        return ', '.join(sorted(canView))

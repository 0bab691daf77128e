# ################################################################################################ #
# AccuRev transaction history, `hist -p <depot> ... -fex`                                          #
#                                                                                                  #
# A transaction is spread over several child elements (comment, version, move, comp_rule, stream)  #
# which are gathered into one Transaction record. Transaction numbers are only unique within a     #
# depot so transactions are identified by (time, id, user, type).                                  #
# ################################################################################################ #

import asyncio
import datetime
import functools
import logging
import weakref
from dataclasses import dataclass, replace

from acutils.obj import IntOrNone, IntOrDefault, Required, Version, NamedStream, ElementType, GetXmlContents, parse_response
from acutils.acdatetime import acdate_to_datetime, datetime_to_acdate
from acutils.streams import Stream, StreamType
from acutils.workspaces import Workspace, WsType, WsEOL, _IntEnumOf
from acutils.rules import RuleKind
from acutils.depots import Depots
from acutils.collection import AcCollection, SingleFlight
from acutils.errors import AcUtilsError

logger = logging.getLogger(__name__)

# ################################################################################################ #
# Records                                                                                          #
# ################################################################################################ #
@dataclass(frozen=True)
class HistVersion:
    path: str
    eid: int = None
    virtual: Version = None
    real: Version = None
    virtualNamedStream: str = None
    realNamedStream: str = None
    ancestor: Version = None
    ancestorNamedStream: str = None
    mergedAgainst: Version = None
    mergedAgainstNamedStream: str = None
    elemType: ElementType = ElementType.unknown
    dir: bool = False
    mtime: datetime.datetime = None
    cksum: int = None
    size: int = None

    def __str__(self):
        return "{0} {1} ({2})".format(self.path, self.virtualNamedStream, self.real)

    @classmethod
    def fromxmlelement(cls, xmlElement):
        if xmlElement is not None and xmlElement.tag == 'version':
            path                     = Required(xmlElement, 'path')
            eid                      = IntOrNone(xmlElement.attrib.get('eid'))
            virtual                  = Version.fromstring(xmlElement.attrib.get('virtual'))
            real                     = Version.fromstring(xmlElement.attrib.get('real'))
            virtualNamedStream       = NamedStream(xmlElement.attrib.get('virtualNamedVersion'))
            realNamedStream          = NamedStream(xmlElement.attrib.get('realNamedVersion'))
            ancestor                 = Version.fromstring(xmlElement.attrib.get('ancestor'))
            ancestorNamedStream      = NamedStream(xmlElement.attrib.get('ancestorNamedVersion'))
            mergedAgainst            = Version.fromstring(xmlElement.attrib.get('merged_against'))
            mergedAgainstNamedStream = NamedStream(xmlElement.attrib.get('mergedAgainstNamedVersion'))
            elemType                 = ElementType.parse(xmlElement.attrib.get('elem_type', 'unknown'))
            dir                      = xmlElement.attrib.get('dir') == 'yes'
            mtime                    = acdate_to_datetime(xmlElement.attrib.get('mtime'))
            cksum                    = IntOrNone(xmlElement.attrib.get('cksum'))
            size                     = IntOrNone(xmlElement.attrib.get('sz'))

            return cls(path=path, eid=eid, virtual=virtual, real=real, virtualNamedStream=virtualNamedStream,
                       realNamedStream=realNamedStream, ancestor=ancestor, ancestorNamedStream=ancestorNamedStream,
                       mergedAgainst=mergedAgainst, mergedAgainstNamedStream=mergedAgainstNamedStream, elemType=elemType,
                       dir=dir, mtime=mtime, cksum=cksum, size=size)

        return None

@dataclass(frozen=True)
class Move:
    dest: str
    source: str

    def __str__(self):
        return "{0} -> {1}".format(self.source, self.dest)

    @classmethod
    def fromxmlelement(cls, xmlElement):
        if xmlElement is not None and xmlElement.tag == 'move':
            return cls(dest=xmlElement.attrib.get('dest'), source=xmlElement.attrib.get('source'))
        return None

@dataclass(frozen=True)
class CompRule:
    kind: RuleKind
    location: str = None
    xlinkStreamNumber: int = None
    xlinkStreamName: str = None
    prevXlinkStreamNumber: int = None
    prevXlinkStreamName: str = None

    def __str__(self):
        return "{0} {1}".format(self.kind.name, self.location)

    @classmethod
    def fromxmlelement(cls, xmlElement):
        if xmlElement is not None and xmlElement.tag == 'comp_rule':
            kind                  = RuleKind.parse(xmlElement.attrib.get('kind'))
            location              = xmlElement.attrib.get('location')
            xlinkStreamNumber     = IntOrNone(xmlElement.attrib.get('xlinkStreamNum'))
            xlinkStreamName       = xmlElement.attrib.get('xlinkStreamName')
            prevXlinkStreamNumber = IntOrNone(xmlElement.attrib.get('prevXlinkStreamNum'))
            prevXlinkStreamName   = xmlElement.attrib.get('prevXlinkStreamName')

            return cls(kind=kind, location=location, xlinkStreamNumber=xlinkStreamNumber, xlinkStreamName=xlinkStreamName,
                       prevXlinkStreamNumber=prevXlinkStreamNumber, prevXlinkStreamName=prevXlinkStreamName)

        return None

@dataclass(frozen=True)
class HistStream:
    stream: Stream
    workspace: Workspace = None

    def __str__(self):
        return str(self.stream)

    @classmethod
    def fromxmlelement(cls, xmlElement, depot):
        if xmlElement is not None and xmlElement.tag == 'stream':
            stream = Stream.fromxmlelement(xmlElement, depot)
            workspace = None
            wspaceElement = xmlElement.find('wspace')
            if stream.Type == StreamType.workspace and wspaceElement is not None:
                workspace = Workspace(name=stream.name, streamNumber=stream.streamNumber, depot=depot,
                                      storage=wspaceElement.attrib.get('Storage'),
                                      host=wspaceElement.attrib.get('Host'),
                                      targetTransaction=IntOrNone(wspaceElement.attrib.get('Target_trans')),
                                      fileModTime=acdate_to_datetime(wspaceElement.attrib.get('fileModTime')),
                                      Type=_IntEnumOf(WsType, IntOrDefault(wspaceElement.attrib.get('Type'), WsType.Workspace)),
                                      EOL=_IntEnumOf(WsEOL, IntOrDefault(wspaceElement.attrib.get('EOL'), WsEOL.Platform)))
            return cls(stream=stream, workspace=workspace)

        return None

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Transaction:
    id: int
    Type: str
    time: datetime.datetime
    user: str
    streamName: str = None
    streamNumber: int = None
    fromStreamName: str = None
    fromStreamNumber: int = None
    comment: str = None
    versions: tuple = ()
    moves: tuple = ()
    compRules: tuple = ()
    streams: tuple = ()

    def _key(self):
        return (self.time, self.id, self.user, self.Type)

    def __eq__(self, other):
        if not isinstance(other, Transaction):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        if not isinstance(other, Transaction):
            return NotImplemented
        # most recent first
        if self.time != other.time:
            return self.time > other.time
        return self.id < other.id

    def __str__(self):
        if self.fromStreamNumber is not None and self.fromStreamNumber > 0:
            return "Transaction: {0} {{{1}}} User: {2} {3}, To: {4} ({5}), From: {6} ({7}), Comment: {8}".format(
                self.id, self.Type, self.user, self.time, self.streamName, self.streamNumber, self.fromStreamName, self.fromStreamNumber, self.comment)
        return "Transaction: {0} {{{1}}} User: {2} {3}, Comment: {4}".format(self.id, self.Type, self.user, self.time, self.comment)

    def merged(self, other):
        return replace(self,
                       comment=other.comment if other.comment is not None else self.comment,
                       versions=self.versions + other.versions,
                       moves=self.moves + other.moves,
                       compRules=self.compRules + other.compRules,
                       streams=self.streams + other.streams)

    @classmethod
    def fromxmlelement(cls, xmlElement, mergedOnly=False, depotLookup=None):
        if xmlElement is not None and xmlElement.tag == 'transaction':
            id               = IntOrNone(Required(xmlElement, 'id'))
            Type             = Required(xmlElement, 'type')
            time             = acdate_to_datetime(Required(xmlElement, 'time'))
            user             = xmlElement.attrib.get('user', '')
            streamName       = xmlElement.attrib.get('streamName')
            streamNumber     = IntOrNone(xmlElement.attrib.get('streamNumber'))
            fromStreamName   = xmlElement.attrib.get('fromStreamName')
            fromStreamNumber = IntOrNone(xmlElement.attrib.get('fromStreamNumber'))

            comment = None
            versions, moves, compRules, streams = [], [], [], []
            for child in xmlElement:
                if child.tag == 'comment':
                    comment = GetXmlContents(child)
                elif child.tag == 'version':
                    # with mergedOnly keep only the versions that were merged
                    if not mergedOnly or child.attrib.get('merged_against') is not None:
                        versions.append(HistVersion.fromxmlelement(child))
                elif child.tag == 'move':
                    moves.append(Move.fromxmlelement(child))
                elif child.tag == 'comp_rule':
                    compRules.append(CompRule.fromxmlelement(child))
                elif child.tag == 'stream':
                    depot = depotLookup(child.attrib.get('depotName')) if depotLookup is not None else None
                    streams.append(HistStream.fromxmlelement(child, depot))
                else:
                    logger.debug("Unknown element {0} in transaction {1}".format(child.tag, id))

            return cls(id=id, Type=Type, time=time, user=user, streamName=streamName, streamNumber=streamNumber,
                       fromStreamName=fromStreamName, fromStreamNumber=fromStreamNumber, comment=comment,
                       versions=tuple(versions), moves=tuple(moves), compRules=tuple(compRules), streams=tuple(streams))

        return None

# ################################################################################################ #
# Depot list shared by every history that lists streams                                            #
# ################################################################################################ #
_depotCaches = weakref.WeakKeyDictionary()

async def _LoadDepots():
    depots = Depots(dynamicOnly=True)
    if await depots.init_async():
        return depots
    return None

async def get_depot_list_async():
    """The list of depots (dynamic streams only), fetched once per event loop."""
    loop = asyncio.get_running_loop()
    cache = _depotCaches.get(loop)
    if cache is None:
        cache = SingleFlight(_LoadDepots)
        _depotCaches[loop] = cache
    return await cache.get()

# ################################################################################################ #
# Collection                                                                                       #
# ################################################################################################ #
class Hist(AcCollection):
    """Transactions of one or more hist commands, with records of the same transaction merged."""
    def __init__(self, depot=None, depots=None, timeout=None):
        super().__init__(timeout=timeout)
        self.depot = depot
        self.depots = depots

    def _merge(self, transaction):
        with self._locker:
            for index, existing in enumerate(self):
                if existing == transaction:
                    self[index] = existing.merged(transaction)
                    return
            self.append(transaction)

    def project(self, xmlText, eid=False, mergedOnly=False, depotLookup=None):
        xmlRoot = parse_response(xmlText, "hist")
        path = 'element/transaction' if eid else 'transaction'
        return [ Transaction.fromxmlelement(e, mergedOnly=mergedOnly, depotLookup=depotLookup) for e in xmlRoot.findall(path) ]

    async def parse_async(self, xmlText, eid=False, mergedOnly=False):
        """Adds the transactions of a hist response. With eid the response is the one of `hist -e`,
        where transactions are nested in an element."""
        try:
            depotLookup = None
            if '<stream' in xmlText:
                depots = self.depots
                if depots is None:
                    depots = await get_depot_list_async()
                    if depots is None:
                        raise AcUtilsError("The depot list needed to resolve the streams of a transaction is not available")
                depotLookup = depots.get_depot
            for transaction in self.project(xmlText, eid=eid, mergedOnly=mergedOnly, depotLookup=depotLookup):
                self._merge(transaction)
        except AcUtilsError as e:
            return self._failed("Hist.parse_async()", e)
        return True

    async def init_async(self, stream=None, timeSpec=None, transKind=None, eid=None, username=None, mergedOnly=False):
        cmd = [ "hist" ]
        if self.depot is not None:
            cmd.extend([ "-p", str(self.depot) ])
        if stream is not None:
            cmd.extend([ "-s", str(stream) ])
        if timeSpec is not None:
            if isinstance(timeSpec, datetime.datetime):
                timeSpec = datetime_to_acdate(timeSpec)
            cmd.extend([ "-t", str(timeSpec) ])
        if eid is not None:
            cmd.extend([ "-e", str(eid) ])
        if transKind is not None:
            cmd.extend([ "-k", transKind ])
        if username is not None:
            cmd.extend([ "-u", username ])
        cmd.append("-fex")

        try:
            result = await self._run_async(cmd)
        except AcUtilsError as e:
            return self._failed("Hist.init_async(depot={0!r}, stream={1!r}, timeSpec={2!r})".format(str(self.depot), stream, timeSpec), e)
        return await self.parse_async(result.stdout, eid=eid is not None, mergedOnly=mergedOnly)

    def get_transaction(self, id):
        return self._single("Transaction", id, lambda t: t.id == id)

# ################################################################################################ #
# AccuRev streams                                                                                  #
# ################################################################################################ #

import functools
from dataclasses import dataclass, field

from acutils.obj import IntOrNone, IntOrDefault, Bool, Required, TokenEnum, parse_response
from acutils.acdatetime import acdate_to_datetime
from acutils.collection import AcCollection
from acutils.errors import AcUtilsError

class StreamType(TokenEnum):
    unknown     = 0
    dynamic     = 1
    normal      = 2
    regular     = 3
    workspace   = 4
    snapshot    = 5
    passthru    = 6
    passthrough = 7
    gated       = 8
    staging     = 9

ROOT_STREAM_NUMBER = 1

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Stream:
    name: str
    streamNumber: int
    depot: object = field(repr=False)
    basis: str = ''
    basisStreamNumber: int = -1
    isDynamic: bool = False
    Type: StreamType = StreamType.unknown
    time: object = None
    startTime: object = None
    hidden: bool = False
    hasDefaultGroup: bool = False

    @property
    def depotName(self):
        return self.depot.name if self.depot is not None else None

    def _key(self):
        return (self.streamNumber, self.depot)

    def __eq__(self, other):
        if not isinstance(other, Stream):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        if not isinstance(other, Stream):
            return NotImplemented
        return self.name < other.name

    def __str__(self):
        return self.name

    @classmethod
    def fromxmlelement(cls, xmlElement, depot):
        if xmlElement is not None and xmlElement.tag == 'stream':
            name              = Required(xmlElement, 'name')
            streamNumber      = IntOrNone(Required(xmlElement, 'streamNumber'))
            basis             = xmlElement.attrib.get('basis', '')
            basisStreamNumber = IntOrDefault(xmlElement.attrib.get('basisStreamNumber'), -1)
            isDynamic         = Bool(xmlElement.attrib.get('isDynamic'))
            Type              = StreamType.parse(Required(xmlElement, 'type'))
            time              = acdate_to_datetime(xmlElement.attrib.get('time'))
            startTime         = acdate_to_datetime(xmlElement.attrib.get('startTime'))
            # the attribute is only emitted for hidden streams
            hidden            = xmlElement.attrib.get('hidden') is not None
            hasDefaultGroup   = Bool(xmlElement.attrib.get('hasDefaultGroup'))

            return cls(name=name, streamNumber=streamNumber, depot=depot, basis=basis, basisStreamNumber=basisStreamNumber,
                       isDynamic=isDynamic, Type=Type, time=time, startTime=startTime, hidden=hidden, hasDefaultGroup=hasDefaultGroup)

        return None

class Streams(AcCollection):
    """The streams of one depot, `show -fxg -p <depot> streams`."""
    def __init__(self, depot, dynamicOnly=False, includeHidden=False, timeout=None):
        super().__init__(timeout=timeout)
        self.depot = depot
        self.dynamicOnly = dynamicOnly
        self.includeHidden = includeHidden

    def project(self, xmlText):
        xmlRoot = parse_response(xmlText)
        streams = []
        for streamElement in xmlRoot.findall('stream'):
            stream = Stream.fromxmlelement(streamElement, self.depot)
            if self.dynamicOnly and not stream.isDynamic:
                continue
            streams.append(stream)
        return streams

    async def init_async(self, listfile=None):
        cmd = [ "show", "-fxig" if self.includeHidden else "-fxg", "-p", self.depot.name ]
        if listfile is not None:
            cmd.extend([ "-l", listfile ])
        cmd.append("streams")
        try:
            result = await self._run_async(cmd)
            self._extend(self.project(result.stdout))
        except AcUtilsError as e:
            return self._failed("Streams.init_async(depot={0!r}, listfile={1!r})".format(self.depot.name, listfile), e)
        return True

    def get_stream(self, key):
        if isinstance(key, int):
            return self._single("Stream", key, lambda s: s.streamNumber == key)
        return self._single("Stream", key, lambda s: s.name == key)

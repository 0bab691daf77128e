# ################################################################################################ #
# AccuRev include/exclude rules, `lsrules -s <stream> [-d] -fx`                                    #
# ################################################################################################ #

import functools
from dataclasses import dataclass

from acutils.obj import Required, TokenEnum, ElementType, parse_response
from acutils.collection import AcCollection
from acutils.errors import AcUtilsError

class RuleKind(TokenEnum):
    unknown = 0
    # removes an include/exclude rule
    clear   = 1
    incl    = 2
    # include a directory but not its contents
    incldo  = 3
    excl    = 4

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Rule:
    kind: RuleKind
    elementType: ElementType
    location: str
    setInStream: str
    xlinkToStream: str = None

    def _key(self):
        return (self.kind, self.location, self.setInStream)

    def __eq__(self, other):
        if not isinstance(other, Rule):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        if not isinstance(other, Rule):
            return NotImplemented
        return (self.setInStream, self.location) < (other.setInStream, other.location)

    def __str__(self):
        text = "{0} {1} {2} in {3}".format(self.kind.name, self.elementType.name, self.location, self.setInStream)
        if self.xlinkToStream is not None:
            text += " -> " + self.xlinkToStream
        return text

    @classmethod
    def fromxmlelement(cls, xmlElement):
        if xmlElement is not None and xmlElement.tag == 'element':
            kind          = RuleKind.parse(xmlElement.attrib.get('kind'))
            elementType   = ElementType.parse(xmlElement.attrib.get('elemType'))
            location      = Required(xmlElement, 'location')
            setInStream   = Required(xmlElement, 'setInStream')
            xlinkToStream = xmlElement.attrib.get('xlinkToStream')

            return cls(kind=kind, elementType=elementType, location=location, setInStream=setInStream, xlinkToStream=xlinkToStream)

        return None

class Rules(AcCollection):
    """Include/exclude rules of one or more streams.

    With explicitOnly only the rules set on the stream itself are listed, not those inherited
    from its basis streams.
    """
    def __init__(self, explicitOnly=False, timeout=None):
        super().__init__(timeout=timeout)
        self.explicitOnly = explicitOnly

    def project(self, xmlText):
        xmlRoot = parse_response(xmlText)
        return [ Rule.fromxmlelement(e) for e in xmlRoot.iter('element') ]

    def _command(self, stream):
        cmd = [ "lsrules", "-s", str(stream) ]
        if self.explicitOnly:
            cmd.append("-d")
        cmd.append("-fx")
        return cmd

    async def init_async(self, stream):
        try:
            result = await self._run_async(self._command(stream))
            self._extend(self.project(result.stdout))
        except AcUtilsError as e:
            return self._failed("Rules.init_async(stream={0!r})".format(str(stream)), e)
        return True

    async def init_for_streams_async(self, streams, progress=None):
        return await self._gather_async([ self.init_async(s) for s in streams ], progress)

    async def init_for_depot_async(self, depot, progress=None):
        return await self.init_for_streams_async(list(depot.streams), progress)

    async def init_for_depots_async(self, depots, progress=None):
        streams = [ s for d in depots for s in d.streams ]
        return await self.init_for_streams_async(streams, progress)

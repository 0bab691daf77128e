# ################################################################################################ #
# AccuRev element status, `stat -p <depot> -s <stream> -fexv ...`                                  #
# ################################################################################################ #

import re
import functools
from dataclasses import dataclass

from acutils.obj import IntOrNone, IntOrDefault, Version, ElementType, parse_response
from acutils.acdatetime import acdate_to_datetime
from acutils.collection import AcCollection
from acutils.errors import AcUtilsError, ParseError

NO_SUCH_ELEMENT = "no such elem"

# Matches the first parenthesised token of a status like "(member)(defunct)".
_reStatusToken = re.compile(r"(\([^\)]+\))")

def ParseStatusIntoList(status):
    if status is None:
        return None
    statusList = []
    matchObj = _reStatusToken.match(status)
    while matchObj and len(status) > 0:
        statusItem = matchObj.group(1)
        statusList.append(statusItem)
        status = status[len(statusItem):]
        matchObj = _reStatusToken.match(status)
    if len(status) != 0:
        raise ParseError("Invalid element status, unparsed text {0!r}".format(status))
    return statusList

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Element:
    location: str
    status: str = ''
    dir: bool = False
    executable: bool = False
    id: int = None
    elemType: ElementType = ElementType.unknown
    size: int = None
    modTime: object = None
    hierType: str = ''
    virtual: Version = None
    real: Version = None
    namedVersion: str = ''
    overlapStream: str = ''
    timeBasisStream: str = ''

    @property
    def statusList(self):
        return ParseStatusIntoList(self.status)

    def _key(self):
        return (self.location, self.id, self.real)

    def __eq__(self, other):
        if not isinstance(other, Element):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        if not isinstance(other, Element):
            return NotImplemented
        return (self.location, self.id or 0) < (other.location, other.id or 0)

    def __str__(self):
        return "{0} {1} {2} ({3}) {4}".format(self.location, self.namedVersion, self.virtual, self.real, self.status)

    @classmethod
    def fromxmlelement(cls, xmlElement):
        if xmlElement is not None and xmlElement.tag == 'element':
            location        = xmlElement.attrib.get('location', '')
            status          = xmlElement.attrib.get('status', '')
            dir             = xmlElement.attrib.get('dir') == 'yes'
            executable      = xmlElement.attrib.get('executable') == 'yes'
            id              = IntOrNone(xmlElement.attrib.get('id'))
            elemType        = xmlElement.attrib.get('elemType', '')
            elemType        = ElementType.unknown if elemType == '' else ElementType.parse(elemType)
            size            = IntOrDefault(xmlElement.attrib.get('size'), 0)
            modTime         = acdate_to_datetime(xmlElement.attrib.get('modTime'))
            hierType        = xmlElement.attrib.get('hierType', '')
            virtual         = Version.fromstring(xmlElement.attrib.get('Virtual'))
            real            = Version.fromstring(xmlElement.attrib.get('Real'))
            namedVersion    = xmlElement.attrib.get('namedVersion', '')
            overlapStream   = xmlElement.attrib.get('overlapStream', '')
            timeBasisStream = xmlElement.attrib.get('timeBasisStream', '')

            return cls(location=location, status=status, dir=dir, executable=executable, id=id, elemType=elemType,
                       size=size, modTime=modTime, hierType=hierType, virtual=virtual, real=real, namedVersion=namedVersion,
                       overlapStream=overlapStream, timeBasisStream=timeBasisStream)

        return None

class Stat(AcCollection):
    """Elements reported by `stat`. Elements AccuRev reports as "no such elem" are left out."""
    def __init__(self, depot=None, timeout=None):
        super().__init__(timeout=timeout)
        self.depot = depot

    def project(self, xmlText):
        xmlRoot = parse_response(xmlText, "stat")
        elements = []
        for element in xmlRoot.iter('element'):
            if NO_SUCH_ELEMENT in element.attrib.get('status', ''):
                continue
            elements.append(Element.fromxmlelement(element))
        return elements

    def parse(self, xmlText):
        """Adds the elements of the XML a caller obtained from a stat command."""
        try:
            self._extend(self.project(xmlText))
        except AcUtilsError as e:
            return self._failed("Stat.parse()", e)
        return True

    async def init_async(self, stream, all=False, dispBackingChain=False, defaultGroupOnly=False, defunctOnly=False,
                         keptOnly=False, modifiedOnly=False, overlapOnly=False, elements=None):
        cmd = [ "stat" ]
        if self.depot is not None:
            cmd.extend([ "-p", str(self.depot) ])
        cmd.extend([ "-s", str(stream) ])
        if all:
            cmd.append('-a')
        if dispBackingChain:
            cmd.append('-B')
        if defaultGroupOnly:
            cmd.append('-d')
        if defunctOnly:
            cmd.append('-D')
        if keptOnly:
            cmd.append('-k')
        if modifiedOnly:
            cmd.append('-m')
        if overlapOnly:
            cmd.append('-o')
        cmd.append("-fexv")
        if elements is not None:
            cmd.extend(elements)

        try:
            result = await self._run_async(cmd)
            self._extend(self.project(result.stdout))
        except AcUtilsError as e:
            return self._failed("Stat.init_async(stream={0!r})".format(str(stream)), e)
        return True

    def get_element(self, location):
        return self._single("Element", location, lambda e: e.location == location)

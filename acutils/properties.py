# ################################################################################################ #
# AccuRev stream and principal properties, `getproperty`                                           #
# ################################################################################################ #

import functools
from dataclasses import dataclass

from acutils.obj import IntOrNone, Required, TokenEnum, parse_response
from acutils.collection import AcCollection
from acutils.errors import AcUtilsError

class PropKind(TokenEnum):
    principal = 1
    stream    = 2

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Property:
    kind: PropKind
    objectNumber: int
    objectName: str
    propertyName: str
    value: str = ''
    # set for stream properties only
    depot: object = None

    def _key(self):
        return (self.kind, self.depot, self.objectNumber, self.propertyName)

    def __eq__(self, other):
        if not isinstance(other, Property):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        if not isinstance(other, Property):
            return NotImplemented
        if self.depot is not None and other.depot is not None and self.depot != other.depot:
            return self.depot < other.depot
        return (self.objectName, self.propertyName) < (other.objectName, other.propertyName)

    def __str__(self):
        if self.depot is None:
            return "{0} ({1}), {2}={3}".format(self.objectName, self.objectNumber, self.propertyName, self.value)
        return "{0}, {1} ({2}), {3}={4}".format(self.depot, self.objectName, self.objectNumber, self.propertyName, self.value)

    @classmethod
    def fromxmlelement(cls, xmlElement, depot=None):
        if xmlElement is not None and xmlElement.tag == 'property':
            kind = PropKind.parse(Required(xmlElement, 'kind'))
            if kind == PropKind.stream:
                objectNumber = IntOrNone(Required(xmlElement, 'streamNumber'))
                objectName   = xmlElement.attrib.get('streamName', '')
            else:
                objectNumber = IntOrNone(Required(xmlElement, 'principalNumber'))
                objectName   = xmlElement.attrib.get('principalName', '')
                depot        = None
            propertyName = Required(xmlElement, 'propertyName')
            value        = xmlElement.text or ''

            return cls(kind=kind, objectNumber=objectNumber, objectName=objectName, propertyName=propertyName, value=value, depot=depot)

        return None

class Properties(AcCollection):
    """Properties set with `setproperty` on streams or principals.

    `depots` is only used to resolve the depot a stream property belongs to when the stream's
    depot isn't passed to init_async().
    """
    def __init__(self, depots=None, timeout=None):
        super().__init__(timeout=timeout)
        self.depots = depots

    def project(self, xmlText, depot=None):
        xmlRoot = parse_response(xmlText)
        return [ Property.fromxmlelement(e, depot) for e in xmlRoot.iter('property') ]

    async def init_async(self, depot=None, stream=None, includeHidden=False):
        """Properties of `stream`, or of every stream in `depot` when no stream is given."""
        if stream is None and depot is None:
            return self._failed("Properties.init_async()", AcUtilsError("A depot or a stream is required"))
        cmd = [ "getproperty", "-fix" if includeHidden else "-fx" ]
        if stream is not None:
            cmd.extend([ "-s", str(stream) ])
        else:
            cmd.extend([ "-ks", "-p", str(depot) ])
        try:
            if depot is None and self.depots is not None:
                depot = self.depots.get_depot_for_stream(str(stream))
            result = await self._run_async(cmd)
            self._extend(self.project(result.stdout, depot))
        except AcUtilsError as e:
            return self._failed("Properties.init_async(depot={0!r}, stream={1!r})".format(str(depot) if depot is not None else None, stream), e)
        return True

    async def init_for_principal_async(self, principal=None, includeHidden=False):
        """Properties of `principal`, or of every principal when none is given."""
        cmd = [ "getproperty", "-fix" if includeHidden else "-fx" ]
        if principal is not None:
            cmd.extend([ "-u", str(principal) ])
        else:
            cmd.append("-ku")
        try:
            result = await self._run_async(cmd)
            self._extend(self.project(result.stdout))
        except AcUtilsError as e:
            return self._failed("Properties.init_for_principal_async(principal={0!r})".format(principal), e)
        return True

    def get_value(self, objectName, propertyName):
        prop = self._single("Property", (objectName, propertyName), lambda p: p.objectName == objectName and p.propertyName == propertyName)
        return prop.value if prop is not None else None

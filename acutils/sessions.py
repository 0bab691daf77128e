# ################################################################################################ #
# AccuRev login sessions, `show -fx sessions`                                                      #
# ################################################################################################ #

import functools
from dataclasses import dataclass

from acutils.obj import Required, parse_response
from acutils.acdatetime import minutes_to_timedelta
from acutils.collection import AcCollection
from acutils.errors import AcUtilsError

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Session:
    name: str
    host: str
    # None when the session timed out
    duration: object = None

    def _key(self):
        return (self.name, self.host)

    def __eq__(self, other):
        if not isinstance(other, Session):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        if not isinstance(other, Session):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self):
        duration = "(timed out)" if self.duration is None else str(self.duration)
        return "{0}, {1}, {2}".format(self.name, self.host, duration)

    @classmethod
    def fromxmlelement(cls, xmlElement):
        if xmlElement is not None and xmlElement.tag == 'Element':
            name     = Required(xmlElement, 'Username')
            host     = xmlElement.attrib.get('Host', '')
            duration = minutes_to_timedelta(xmlElement.attrib.get('Duration'))

            return cls(name=name, host=host, duration=duration)

        return None

class Sessions(AcCollection):
    def project(self, xmlText):
        xmlRoot = parse_response(xmlText)
        return [ Session.fromxmlelement(e) for e in xmlRoot.iter('Element') ]

    async def init_async(self):
        try:
            result = await self._run_async([ "show", "-fx", "sessions" ])
            self._extend(self.project(result.stdout))
        except AcUtilsError as e:
            return self._failed("Sessions.init_async()", e)
        return True

    def active(self):
        return sorted(s for s in self if s.duration is not None)

# ################################################################################################ #
# AccuRev principals (users and groups)                                                            #
# ################################################################################################ #

import enum
import functools
from dataclasses import dataclass, replace

from acutils.obj import IntOrNone, Required

class PrncplStatus(enum.Enum):
    Unknown  = 0
    Inactive = 1
    Active   = 2

    def __str__(self):
        return self.name

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Principal:
    number: int
    name: str
    status: PrncplStatus = PrncplStatus.Unknown
    # sorted, includes memberships inherited through other groups when known
    members: tuple = None

    def __eq__(self, other):
        if not isinstance(other, Principal):
            return NotImplemented
        return self.number == other.number

    def __hash__(self):
        return hash(self.number)

    def __lt__(self, other):
        if not isinstance(other, Principal):
            return NotImplemented
        return self.name < other.name

    def __str__(self):
        return self.name

    def with_members(self, members):
        return replace(self, members=tuple(sorted(set(members))))

    def members_list(self):
        if self.members is None:
            return None
        return ', '.join(self.members)

    @classmethod
    def fromxmlelement(cls, xmlElement):
        if xmlElement is not None and xmlElement.tag == 'Element':
            name   = Required(xmlElement, 'Name')
            number = IntOrNone(Required(xmlElement, 'Number'))
            # isActive="false" is only written for deactivated principals
            status = PrncplStatus.Active if xmlElement.attrib.get('isActive') is None else PrncplStatus.Inactive

            return cls(number=number, name=name, status=status)

        return None

# ################################################################################################ #
# AccuRev access control lists, `lsacl -fx {depot|stream} <name>`                                  #
# ################################################################################################ #

import functools
from dataclasses import dataclass

from acutils.obj import Bool, Required, TokenEnum, parse_response
from acutils.collection import AcCollection
from acutils.errors import AcUtilsError

class PermKind(TokenEnum):
    depot  = 1
    stream = 2

class PermType(TokenEnum):
    group   = 1
    user    = 2
    # authuser or anyuser
    builtin = 3

class PermRights(TokenEnum):
    none = 1
    all  = 2

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Permission:
    kind: PermKind
    name: str
    appliesTo: str
    Type: PermType
    rights: PermRights
    inheritable: bool = False

    def _key(self):
        return (self.kind, self.name, self.appliesTo)

    def __eq__(self, other):
        if not isinstance(other, Permission):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        if not isinstance(other, Permission):
            return NotImplemented
        return (self.name, self.appliesTo) < (other.name, other.appliesTo)

    def __str__(self):
        return "{0} {1}: {2} {3} {4}{5}".format(self.kind, self.name, self.Type, self.appliesTo, self.rights,
                                                " (inheritable)" if self.inheritable else "")

    @classmethod
    def fromxmlelement(cls, xmlElement, kind):
        if xmlElement is not None and xmlElement.tag == 'Element':
            name        = Required(xmlElement, 'Name')
            appliesTo   = Required(xmlElement, 'Group')
            Type        = PermType.parse(xmlElement.attrib.get('Type'))
            rights      = PermRights.parse(xmlElement.attrib.get('Rights'))
            inheritable = Bool(xmlElement.attrib.get('Inheritable'))

            return cls(kind=kind, name=name, appliesTo=appliesTo, Type=Type, rights=rights, inheritable=inheritable)

        return None

class Permissions(AcCollection):
    def __init__(self, kind, timeout=None):
        super().__init__(timeout=timeout)
        self.kind = kind

    def project(self, xmlText):
        xmlRoot = parse_response(xmlText)
        return [ Permission.fromxmlelement(e, self.kind) for e in xmlRoot.findall('Element') ]

    async def init_async(self, name=None):
        """Lists the ACL entries of depot or stream `name`, or of every depot/stream when omitted."""
        cmd = [ "lsacl", "-fx", self.kind.name ]
        if name is not None:
            cmd.append(name)
        try:
            result = await self._run_async(cmd)
            self._extend(self.project(result.stdout))
        except AcUtilsError as e:
            return self._failed("Permissions.init_async(kind={0}, name={1!r})".format(self.kind, name), e)
        return True

    def for_name(self, name):
        return [ p for p in self if p.name == name ]

# ################################################################################################ #
# AccuRev stream locks, `show -fx locks`, `lock` and `unlock`                                      #
# ################################################################################################ #

import enum
import logging
import functools
from dataclasses import dataclass

from acutils import command
from acutils.obj import Required, TokenEnum, parse_response
from acutils.collection import AcCollection
from acutils.errors import AcUtilsError, ToolDomainError

logger = logging.getLogger(__name__)

# 'from' is a keyword so the members are declared functionally.
LockKind = TokenEnum('LockKind', [ ('from', 1), ('to', 2), ('all', 3) ], module=__name__)

class LockTarget(TokenEnum):
    group = 1
    user  = 2
    none  = 3

class OnlyExcept(enum.Enum):
    Only   = '-o'
    Except = '-e'

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Lock:
    name: str
    kind: LockKind
    Type: LockTarget = LockTarget.none
    exceptFor: str = ''
    onlyFor: str = ''
    comment: str = ''

    def _key(self):
        return (self.name, self.kind)

    def __eq__(self, other):
        if not isinstance(other, Lock):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        if not isinstance(other, Lock):
            return NotImplemented
        # 'all' before 'to' before 'from'
        if self.kind != other.kind:
            return self.kind.value > other.kind.value
        return self.name < other.name

    def __str__(self):
        if self.kind == LockKind.all:
            kind = "promotions to and from"
        else:
            kind = "promotions {0}".format(self.kind.name)
        if self.kind == LockKind.all or (self.exceptFor == '' and self.onlyFor == ''):
            howfor = "for all"
        elif self.exceptFor != '':
            howfor = "except for {0} {1}".format(self.Type.name, self.exceptFor)
        else:
            howfor = "only for {0} {1}".format(self.Type.name, self.onlyFor)
        text = "Lock {0} {1} {2}.".format(kind, self.name, howfor)
        if self.comment != '':
            text += " " + self.comment
        return text

    @classmethod
    def fromxmlelement(cls, xmlElement):
        if xmlElement is not None and xmlElement.tag == 'Element':
            # only kind and Name are always present
            kind      = LockKind.parse(xmlElement.attrib.get('kind'))
            name      = Required(xmlElement, 'Name')
            userType  = xmlElement.attrib.get('userType', '')
            Type      = LockTarget.none if userType == '' else LockTarget.parse(userType)
            exceptFor = xmlElement.attrib.get('exceptFor', '')
            onlyFor   = xmlElement.attrib.get('onlyFor', '')
            comment   = xmlElement.attrib.get('comment', '')

            return cls(name=name, kind=kind, Type=Type, exceptFor=exceptFor, onlyFor=onlyFor, comment=comment)

        return None

class Locks(AcCollection):
    """Stream locks, limited to the streams of the given depots or to the given stream names.

    `depots` is a list of Depot objects whose streams have been fetched, `streams` a list of stream
    names. Without either every lock in the repository is kept.
    """
    def __init__(self, depots=None, streams=None, timeout=None):
        super().__init__(timeout=timeout)
        self.depots = depots
        self.streams = streams

    def _wanted(self, lock, depot):
        if depot is not None:
            return depot.get_stream(lock.name) is not None
        if self.depots is not None:
            return any(d.get_stream(lock.name) is not None for d in self.depots)
        if self.streams is not None:
            return lock.name in self.streams
        return True

    def project(self, xmlText, depot=None):
        xmlRoot = parse_response(xmlText)
        locks = [ Lock.fromxmlelement(e) for e in xmlRoot.iter('Element') ]
        return [ lk for lk in locks if self._wanted(lk, depot) ]

    async def init_async(self, depot=None):
        try:
            result = await self._run_async([ "show", "-fx", "locks" ])
            self._extend(self.project(result.stdout, depot))
        except AcUtilsError as e:
            return self._failed("Locks.init_async(depot={0!r})".format(depot.name if depot is not None else None), e)
        return True

    def has_lock(self, stream, kind=None):
        return any(lk.name == stream and (kind is None or lk.kind == kind) for lk in self)

    def get_lock(self, stream, kind):
        return self._single("Lock", (stream, kind), lambda lk: lk.name == stream and lk.kind == kind)

def _LockCommand(stream, comment, kind, principal, onlyExcept):
    cmd = [ "lock", "-c", comment ]
    if kind == LockKind['from']:
        cmd.append("-kf")
    elif kind == LockKind.to:
        cmd.append("-kt")
    if principal is not None and kind != LockKind.all:
        cmd.extend([ onlyExcept.value, str(principal) ])
    cmd.append(stream)
    return cmd

def _UnlockCommand(stream, kind):
    cmd = [ "unlock" ]
    if kind == LockKind['from']:
        cmd.append("-kf")
    elif kind == LockKind.to:
        cmd.append("-kt")
    cmd.append(stream)
    return cmd

async def lock_async(stream, comment='', kind=LockKind.all, principal=None, onlyExcept=OnlyExcept.Except, timeout=None):
    """Locks `stream` against promotions to it, from it or both.

    For a 'to' or 'from' lock `principal` limits the lock to (Only) or lifts it for (Except) a
    user or group. A lock in both directions always applies to everyone.
    """
    cmd = _LockCommand(stream, comment, kind, principal, onlyExcept)
    try:
        result = await command.run(cmd, timeout=timeout)
        if not result.valid:
            raise ToolDomainError(result)
    except AcUtilsError as e:
        logger.error("lock_async(stream={0!r}, kind={1}) failed: {2}".format(stream, kind, e))
        return False
    return True

async def unlock_async(stream, kind=LockKind.all, timeout=None):
    cmd = _UnlockCommand(stream, kind)
    try:
        result = await command.run(cmd, timeout=timeout)
        if not result.valid:
            raise ToolDomainError(result)
    except AcUtilsError as e:
        logger.error("unlock_async(stream={0!r}, kind={1}) failed: {2}".format(stream, kind, e))
        return False
    return True

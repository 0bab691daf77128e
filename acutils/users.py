# ################################################################################################ #
# AccuRev users, `show -fx users`                                                                  #
#                                                                                                  #
# Optionally enriched with the groups each user belongs to and with profile fields from one or     #
# more directory domains.                                                                          #
# ################################################################################################ #

import asyncio
import functools
import logging
from dataclasses import dataclass

from acutils import directory
from acutils.obj import parse_response
from acutils.principals import Principal
from acutils.collection import AcCollection
from acutils.errors import AcUtilsError

logger = logging.getLogger(__name__)

@functools.total_ordering
@dataclass(frozen=True, eq=False)
class User:
    principal: Principal
    profile: directory.DirectoryProfile = None

    @property
    def number(self):
        return self.principal.number

    @property
    def name(self):
        return self.principal.name

    @property
    def status(self):
        return self.principal.status

    @property
    def groups(self):
        return self.principal.members

    @property
    def displayName(self):
        if self.profile is None:
            return None
        return self.profile.displayName

    @property
    def emailAddress(self):
        if self.profile is None:
            return None
        return self.profile.emailAddress

    def get_groups(self):
        return self.principal.members_list()

    def __eq__(self, other):
        if not isinstance(other, User):
            return NotImplemented
        return self.principal == other.principal

    def __hash__(self):
        return hash(self.principal)

    def __lt__(self, other):
        if not isinstance(other, User):
            return NotImplemented
        if self.displayName and other.displayName:
            return self.displayName < other.displayName
        return self.name < other.name

    def __str__(self):
        if self.displayName:
            return "{0} ({1})".format(self.name, self.displayName)
        return self.name

def project_groups_list(xmlText):
    xmlRoot = parse_response(xmlText)
    return [ e.attrib.get('Name') for e in xmlRoot.iter('Element') if e.attrib.get('Name') is not None ]

class Users(AcCollection):
    def __init__(self, domains=None, properties=None, includeGroupsList=False, includeDeactivated=False, timeout=None):
        super().__init__(timeout=timeout)
        self.domains = domains
        self.properties = properties
        self.includeGroupsList = includeGroupsList
        self.includeDeactivated = includeDeactivated

    def project(self, xmlText):
        xmlRoot = parse_response(xmlText, "show users")
        return [ Principal.fromxmlelement(e) for e in xmlRoot.iter('Element') ]

    async def init_async(self, users=None, progress=None):
        """Builds the list of users, limited to the names in `users` when given.

        Group membership and directory lookups are done per user and concurrently. A failed
        directory lookup is logged and leaves the user without a profile, it does not fail the
        build.
        """
        try:
            result = await self._run_async([ "show", "-fix" if self.includeDeactivated else "-fx", "users" ])
            principals = self.project(result.stdout)
        except AcUtilsError as e:
            return self._failed("Users.init_async()", e)

        if users is not None:
            wanted = set(users)
            principals = [ p for p in principals if p.name in wanted ]

        return await self._gather_async([ self._init_user_async(p) for p in principals ], progress)

    async def _init_user_async(self, principal):
        ok = True
        if self.includeGroupsList:
            try:
                result = await self._run_async([ "show", "-fx", "-u", principal.name, "groups" ])
                principal = principal.with_members(project_groups_list(result.stdout))
            except AcUtilsError as e:
                ok = self._failed("Users.init_async() groups of {0!r}".format(principal.name), e)

        profile = None
        if self.domains:
            try:
                profile = await asyncio.to_thread(directory.lookup_user, self.domains, principal.name, self.properties)
            except Exception as e:
                # the ldap3 worker thread may raise anything, a user without a profile is still a user
                logger.error("Users.init_async() directory lookup of {0!r} failed: {1}: {2}".format(principal.name, type(e).__name__, e))

        self._add(User(principal=principal, profile=profile))
        return ok

    def get_user(self, key):
        if isinstance(key, int):
            return self._single("User", key, lambda u: u.number == key)
        return self._single("User", key, lambda u: u.name == key)

    def get_workspace_owner(self, wsname):
        # workspace names end with _<principal name>
        index = wsname.rfind('_')
        if index < 0:
            return None
        return self.get_user(wsname[index + 1:])

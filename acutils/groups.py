# ################################################################################################ #
# AccuRev groups, `show -fx groups`                                                                #
# ################################################################################################ #

import logging

from acutils import command
from acutils.obj import parse_response
from acutils.principals import Principal
from acutils.collection import AcCollection
from acutils.errors import AcUtilsError, ToolDomainError

logger = logging.getLogger(__name__)

def project_members_list(xmlText):
    # Lists explicit members as well as those who belong through another group.
    xmlRoot = parse_response(xmlText)
    return [ e.attrib.get('User') for e in xmlRoot.iter('Element') if e.attrib.get('User') is not None ]

class Groups(AcCollection):
    def __init__(self, includeMembersList=False, includeDeactivated=False, timeout=None):
        super().__init__(timeout=timeout)
        self.includeMembersList = includeMembersList
        self.includeDeactivated = includeDeactivated

    def project(self, xmlText):
        xmlRoot = parse_response(xmlText)
        return [ Principal.fromxmlelement(e) for e in xmlRoot.iter('Element') ]

    async def init_async(self, groups=None, progress=None):
        try:
            result = await self._run_async([ "show", "-fix" if self.includeDeactivated else "-fx", "groups" ])
            principals = self.project(result.stdout)
        except AcUtilsError as e:
            return self._failed("Groups.init_async()", e)

        if groups is not None:
            wanted = set(groups)
            principals = [ p for p in principals if p.name in wanted ]

        if not self.includeMembersList:
            self._extend(principals)
            return True
        return await self._gather_async([ self._init_group_async(p) for p in principals ], progress)

    async def _init_group_async(self, group):
        try:
            result = await self._run_async([ "show", "-fx", "-g", group.name, "members" ])
            group = group.with_members(project_members_list(result.stdout))
        except AcUtilsError as e:
            self._add(group)
            return self._failed("Groups.init_async() members of {0!r}".format(group.name), e)
        self._add(group)
        return True

    def get_principal(self, key):
        if isinstance(key, int):
            return self._single("Group", key, lambda g: g.number == key)
        return self._single("Group", key, lambda g: g.name == key)

    def get_members(self, group):
        principal = self.get_principal(group)
        if principal is None:
            return None
        return principal.members_list()

async def is_member_async(user, group, timeout=None):
    """True if `user` belongs to `group` (directly or through another group), None on failure."""
    try:
        result = await command.run([ "ismember", user, group ], timeout=timeout)
        if not result.valid:
            raise ToolDomainError(result)
    except AcUtilsError as e:
        logger.error("is_member_async(user={0!r}, group={1!r}) failed: {2}".format(user, group, e))
        return None
    return result.stdout.startswith('1')

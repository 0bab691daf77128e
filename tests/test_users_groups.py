import pytest

from acutils import directory
from acutils.users import User, Users
from acutils.groups import Groups, is_member_async
from acutils.principals import Principal, PrncplStatus
from acutils.directory import DirectoryProfile
from acutils.errors import EnrichmentError, ToolDomainError


USERS_XML = """<?xml version="1.0" encoding="utf-8"?>
<AcResponse Command="show users" TaskId="40">
  <Element Number="7" Name="thomas" Kind="full"/>
  <Element Number="8" Name="mary" Kind="full"/>
  <Element Number="9" Name="jim" Kind="full" isActive="false"/>
</AcResponse>
"""

GROUPS_XML = """<?xml version="1.0" encoding="utf-8"?>
<AcResponse Command="show groups" TaskId="41">
  <Element Number="2" Name="DEV"/>
  <Element Number="3" Name="CONTRACTORS"/>
</AcResponse>
"""


def groups_of(*names):
    elements = ''.join('<Element Number="{0}" Name="{1}"/>'.format(n, name) for n, name in enumerate(names, 1))
    return '<AcResponse Command="show groups">{0}</AcResponse>'.format(elements)


def members_of(*names):
    elements = ''.join('<Element User="{0}"/>'.format(name) for name in names)
    return '<AcResponse Command="show members">{0}</AcResponse>'.format(elements)


@pytest.mark.asyncio
async def test_users_with_groups(fake_accurev):
    fake_accurev.add([ "show", "-fix", "users" ], USERS_XML)
    fake_accurev.add([ "show", "-fx", "-u", "thomas", "groups" ], groups_of("DEV", "CONTRACTORS"))
    fake_accurev.add([ "show", "-fx", "-u", "mary", "groups" ], groups_of("CONTRACTORS"))
    fake_accurev.add([ "show", "-fx", "-u", "jim", "groups" ], groups_of())
    fake_accurev.random_delay()
    seen = []
    users = Users(includeGroupsList=True, includeDeactivated=True)

    assert await users.init_async(progress=seen.append)
    assert seen == [ 1, 2, 3 ]
    assert [ u.name for u in sorted(users) ] == [ "jim", "mary", "thomas" ]

    thomas = users.get_user("thomas")
    assert thomas.groups == ("CONTRACTORS", "DEV")
    assert thomas.get_groups() == "CONTRACTORS, DEV"
    assert thomas.status == PrncplStatus.Active
    assert users.get_user(9).status == PrncplStatus.Inactive
    assert users.get_user(9).get_groups() == ""
    assert users.get_workspace_owner("NEPTUNE_DEV_mary").number == 8
    assert users.get_workspace_owner("NEPTUNE_DEV_nobody") is None
    assert users.get_workspace_owner("NEPTUNE") is None


@pytest.mark.asyncio
async def test_users_limited_to_names_without_groups(fake_accurev):
    fake_accurev.add([ "show", "-fx", "users" ], USERS_XML)
    users = Users()

    assert await users.init_async(users=[ "mary" ])
    assert [ str(u) for u in users ] == [ "mary" ]
    assert users[0].groups is None
    assert users[0].get_groups() is None
    assert fake_accurev.count([ "show", "-fx", "-u" ]) == 0


@pytest.mark.asyncio
async def test_failing_group_listing_fails_the_build(fake_accurev):
    fake_accurev.add([ "show", "-fx", "users" ], USERS_XML)
    fake_accurev.add([ "show", "-fx", "-u" ], groups_of("DEV"))
    fake_accurev.add([ "show", "-fx", "-u", "mary", "groups" ], "", retval=1, stderr="Unknown user")
    users = Users(includeGroupsList=True)

    assert not await users.init_async()
    assert isinstance(users.error, ToolDomainError)
    assert len(users) == 3
    assert users.get_user("mary").groups is None


@pytest.mark.asyncio
async def test_users_enriched_from_the_directory(fake_accurev, mocker):
    fake_accurev.add([ "show", "-fx", "users" ], USERS_XML)
    profiles = {
        "thomas": DirectoryProfile(displayName="Thomas Anderson", emailAddress="thomas@example.com"),
        "mary": DirectoryProfile(displayName="Mary Shelley", emailAddress="mary@example.com"),
    }

    def lookup(domains, name, properties=None):
        if name == "jim":
            raise EnrichmentError("Directory lookup of 'jim' failed: ldap.example.com: timed out")
        return profiles.get(name)

    lookup_user = mocker.patch.object(directory, 'lookup_user', side_effect=lookup)
    users = Users(domains=[ "example.com" ])

    assert await users.init_async()
    assert lookup_user.call_count == 3

    thomas = users.get_user("thomas")
    assert thomas.displayName == "Thomas Anderson"
    assert thomas.emailAddress == "thomas@example.com"
    assert str(thomas) == "thomas (Thomas Anderson)"
    assert users.get_user("jim").profile is None
    assert users.get_user("jim").displayName is None
    assert [ u.name for u in sorted(users) ] == [ "jim", "mary", "thomas" ]


@pytest.mark.asyncio
async def test_unexpected_directory_errors_do_not_fail_the_build(fake_accurev, mocker, caplog):
    fake_accurev.add([ "show", "-fx", "users" ], USERS_XML)
    mocker.patch.object(directory, 'lookup_user', side_effect=RuntimeError("dc1 unreachable"))
    users = Users(domains=[ "example.com" ])

    assert await users.init_async()
    assert len(users) == 3
    assert all(u.profile is None for u in users)
    assert "directory lookup of 'thomas' failed: RuntimeError: dc1 unreachable" in caplog.text


def test_user_ordering_prefers_display_names():
    ann = User(Principal(number=1, name="zed"), DirectoryProfile(displayName="Ann"))
    bob = User(Principal(number=2, name="abe"), DirectoryProfile(displayName="Bob"))
    cid = User(Principal(number=3, name="cid"))

    assert sorted([ bob, ann ]) == [ ann, bob ]
    assert sorted([ cid, bob ]) == [ bob, cid ]
    assert ann == User(Principal(number=1, name="renamed"))


@pytest.mark.asyncio
async def test_groups_with_members(fake_accurev):
    fake_accurev.add([ "show", "-fx", "groups" ], GROUPS_XML)
    fake_accurev.add([ "show", "-fx", "-g", "DEV", "members" ], members_of("thomas", "mary", "thomas"))
    fake_accurev.add([ "show", "-fx", "-g", "CONTRACTORS", "members" ], members_of("mary"))
    groups = Groups(includeMembersList=True)

    assert await groups.init_async()
    assert groups.get_members("DEV") == "mary, thomas"
    assert groups.get_principal(3).members == ("mary",)
    assert groups.get_members("QA") is None


@pytest.mark.asyncio
async def test_groups_without_members(fake_accurev):
    fake_accurev.add([ "show", "-fix", "groups" ], GROUPS_XML)
    groups = Groups(includeDeactivated=True)

    assert await groups.init_async(groups=[ "DEV" ])
    assert [ g.name for g in groups ] == [ "DEV" ]
    assert groups.get_members("DEV") is None
    assert fake_accurev.count([ "show", "-fx", "-g" ]) == 0


@pytest.mark.asyncio
async def test_failed_member_listing_keeps_the_group(fake_accurev):
    fake_accurev.add([ "show", "-fx", "groups" ], GROUPS_XML)
    fake_accurev.add([ "show", "-fx", "-g", "DEV", "members" ], members_of("thomas"))
    fake_accurev.add([ "show", "-fx", "-g", "CONTRACTORS", "members" ], "", retval=1)
    groups = Groups(includeMembersList=True)

    assert not await groups.init_async()
    assert groups.get_principal("CONTRACTORS").members is None
    assert groups.get_members("DEV") == "thomas"


@pytest.mark.asyncio
async def test_is_member(fake_accurev):
    fake_accurev.add([ "ismember", "thomas", "DEV" ], "1\n")
    fake_accurev.add([ "ismember", "jim", "DEV" ], "0\n")
    fake_accurev.add([ "ismember", "nobody" ], "", retval=1, stderr="Unknown principal: nobody")

    assert await is_member_async("thomas", "DEV") is True
    assert await is_member_async("jim", "DEV") is False
    assert await is_member_async("nobody", "DEV") is None

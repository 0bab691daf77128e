import pytest

from acutils.obj import ElementType, Version
from acutils.stat import Element, Stat, ParseStatusIntoList
from acutils.errors import ParseError, ToolDomainError


STAT_XML = """<?xml version="1.0" encoding="utf-8"?>
<AcResponse Command="stat" Directory="/home/thomas/neptune" TaskId="70">
  <element location="/./src" dir="yes" executable="no" id="2" elemType="dir" modTime="0" hierType="parallel"
           Virtual="1/1" namedVersion="NEPTUNE/1" Real="1/1" status="(backed)"/>
  <element location="/./src/main.c" dir="no" executable="no" id="12" elemType="text" size="2048" modTime="1197389000" hierType="parallel"
           Virtual="3/5" namedVersion="NEPTUNE_DEV/5" Real="4/3" status="(kept)(member)"/>
  <element location="/./src/run.sh" dir="no" executable="yes" id="15" elemType="ptext" hierType="parallel"
           Virtual="3/2" namedVersion="NEPTUNE_DEV/2" Real="4/1" status="(overlap)(kept)(member)" overlapStream="NEPTUNE_MAINT"/>
  <element location="/./src/gone.c" status="(no such elem)"/>
</AcResponse>
"""


def test_status_tokens():
    assert ParseStatusIntoList("(kept)(member)") == [ "(kept)", "(member)" ]
    assert ParseStatusIntoList("") == []
    assert ParseStatusIntoList(None) is None
    with pytest.raises(ParseError):
        ParseStatusIntoList("(kept)member")


@pytest.mark.asyncio
async def test_stat_of_a_workspace(fake_accurev):
    fake_accurev.add([ "stat", "-p", "NEPTUNE", "-s", "NEPTUNE_DEV_thomas", "-a", "-fexv" ], STAT_XML)
    stat = Stat(depot="NEPTUNE")

    assert await stat.init_async("NEPTUNE_DEV_thomas", all=True)
    assert [ e.location for e in sorted(stat) ] == [ "/./src", "/./src/main.c", "/./src/run.sh" ]

    src = stat.get_element("/./src")
    assert src.dir and src.elemType == ElementType.dir
    assert src.modTime is None

    main = stat.get_element("/./src/main.c")
    assert (main.id, main.size, main.virtual, main.real) == (12, 2048, Version(3, 5), Version(4, 3))
    assert main.statusList == [ "(kept)", "(member)" ]
    assert main.namedVersion == "NEPTUNE_DEV/5"

    run = stat.get_element("/./src/run.sh")
    assert run.executable and run.elemType == ElementType.ptext
    assert run.size == 0
    assert run.overlapStream == "NEPTUNE_MAINT"
    assert stat.get_element("/./src/gone.c") is None


@pytest.mark.asyncio
async def test_stat_options_and_elements(fake_accurev):
    fake_accurev.add([ "stat" ], '<AcResponse Command="stat"/>')
    stat = Stat()

    assert await stat.init_async("NEPTUNE_DEV", dispBackingChain=True, defaultGroupOnly=True, defunctOnly=True, keptOnly=True,
                                 modifiedOnly=True, overlapOnly=True, elements=[ "/./src/main.c", "/./src/run.sh" ])
    assert fake_accurev.calls == [ ("stat", "-s", "NEPTUNE_DEV", "-B", "-d", "-D", "-k", "-m", "-o", "-fexv", "/./src/main.c", "/./src/run.sh") ]


@pytest.mark.asyncio
async def test_stat_failure(fake_accurev):
    fake_accurev.add([ "stat" ], "", retval=1, stderr="Not in a workspace")
    stat = Stat()

    assert not await stat.init_async("MARS")
    assert isinstance(stat.error, ToolDomainError)


def test_parse_rejects_other_responses():
    stat = Stat()

    assert stat.parse(STAT_XML)
    assert len(stat) == 3
    assert not stat.parse('<AcResponse Command="hist"/>')
    assert isinstance(stat.error, ParseError)


def test_element_identity():
    first = Element(location="/./src/main.c", id=12, real=Version(4, 3), status="(kept)")
    second = Element(location="/./src/main.c", id=12, real=Version(4, 3), status="(member)")

    assert first == second
    assert first != Element(location="/./src/main.c", id=12, real=Version(4, 4))

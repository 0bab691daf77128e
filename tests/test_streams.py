import datetime
import xml.etree.ElementTree as ElementTree

import pytest
import pytz

from acutils.depots import Depot
from acutils.streams import Stream, Streams, StreamType
from acutils.errors import ParseError, ToolDomainError

from acdata import NEPTUNE_STREAMS_XML


@pytest.fixture
def neptune():
    return Depot(number=3, name="NEPTUNE")


def test_stream_projection(neptune):
    streams = Streams(neptune).project(NEPTUNE_STREAMS_XML)

    assert [ s.name for s in streams ] == [ "NEPTUNE", "NEPTUNE_MAINT", "NEPTUNE_DEV", "NEPTUNE_DEV_thomas", "NEPTUNE_SNAP" ]

    root, maint, dev, thomas, snap = streams
    assert root.basis == '' and root.basisStreamNumber == -1
    assert (maint.basis, maint.basisStreamNumber) == ("NEPTUNE", 1)
    assert dev.hasDefaultGroup and not maint.hasDefaultGroup
    assert thomas.Type == StreamType.workspace and not thomas.isDynamic
    assert snap.time == datetime.datetime(2007, 12, 11, 16, 20, tzinfo=pytz.utc)
    assert maint.time is None
    assert root.depotName == "NEPTUNE"
    assert not any(s.hidden for s in streams)


def test_streams_are_equal_by_depot_and_number(neptune):
    first = Streams(neptune).project(NEPTUNE_STREAMS_XML)
    second = Streams(neptune).project(NEPTUNE_STREAMS_XML)

    assert first[1] == second[1]
    assert first[1] != first[2]
    assert len({ *first, *second }) == 5
    assert sorted(first)[0].name == "NEPTUNE"


def test_unknown_stream_type_is_rejected(neptune):
    xml = '<streams><stream name="NEPTUNE_X" streamNumber="9" depotName="NEPTUNE" type="virtual"/></streams>'

    with pytest.raises(ParseError):
        Streams(neptune).project(xml)


def test_unknown_sentinel_and_hidden_streams(neptune):
    xml = '<streams><stream name="NEPTUNE_OLD" streamNumber="9" depotName="NEPTUNE" type="* unknown *" hidden="true"/></streams>'

    stream, = Streams(neptune).project(xml)
    assert stream.Type == StreamType.unknown
    assert stream.hidden


def test_stream_requires_a_number(neptune):
    xml = '<streams><stream name="NEPTUNE_X" depotName="NEPTUNE" type="normal"/></streams>'

    with pytest.raises(ParseError):
        Streams(neptune).project(xml)


def test_non_stream_elements_are_not_streams(neptune):
    assert Stream.fromxmlelement(ElementTree.fromstring('<Element Name="NEPTUNE"/>'), neptune) is None
    assert Stream.fromxmlelement(None, neptune) is None


@pytest.mark.asyncio
async def test_init_with_a_list_file(fake_accurev, neptune):
    fake_accurev.add([ "show", "-fxg", "-p", "NEPTUNE", "-l", "/tmp/NEPTUNE.streams", "streams" ], NEPTUNE_STREAMS_XML)
    streams = Streams(neptune)

    assert await streams.init_async("/tmp/NEPTUNE.streams")
    assert len(streams) == 5
    assert streams.get_stream(3).name == "NEPTUNE_DEV"
    assert streams.get_stream("NEPTUNE_SNAP").Type == StreamType.snapshot
    assert streams.get_stream("MARS") is None


@pytest.mark.asyncio
async def test_hidden_streams_use_the_include_hidden_flag(fake_accurev, neptune):
    fake_accurev.add([ "show", "-fxig", "-p", "NEPTUNE", "streams" ], NEPTUNE_STREAMS_XML)
    streams = Streams(neptune, includeHidden=True)

    assert await streams.init_async()
    assert fake_accurev.calls == [ ("show", "-fxig", "-p", "NEPTUNE", "streams") ]


@pytest.mark.asyncio
async def test_failure_keeps_the_error(fake_accurev, neptune):
    fake_accurev.add([ "show", "-fxg", "-p", "NEPTUNE" ], "", retval=1, stderr="Unknown depot: NEPTUNE")
    streams = Streams(neptune)

    assert not await streams.init_async()
    assert isinstance(streams.error, ToolDomainError)
    assert "Unknown depot: NEPTUNE" in str(streams.error)
    assert len(streams) == 0

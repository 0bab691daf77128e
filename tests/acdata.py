# Canned accurev responses shared by the tests.

DEPOTS_XML = """<?xml version="1.0" encoding="utf-8"?>
<AcResponse Command="show depots" TaskId="12">
  <Element Number="3" Name="NEPTUNE" Slice="1" exclusiveLocking="false" case="sensitive" locWidth="128"/>
  <Element Number="5" Name="JUPITER" Slice="1" exclusiveLocking="true" case="insensitive" locWidth="128"/>
</AcResponse>
"""

NEPTUNE_STREAMS_XML = """<?xml version="1.0" encoding="utf-8"?>
<streams>
  <stream name="NEPTUNE" depotName="NEPTUNE" streamNumber="1" isDynamic="true" type="normal" startTime="1197383792"/>
  <stream name="NEPTUNE_MAINT" basis="NEPTUNE" basisStreamNumber="1" depotName="NEPTUNE" streamNumber="2" isDynamic="true" type="normal" startTime="1197383800"/>
  <stream name="NEPTUNE_DEV" basis="NEPTUNE_MAINT" basisStreamNumber="2" depotName="NEPTUNE" streamNumber="3" isDynamic="true" type="normal" hasDefaultGroup="true" startTime="1197383900"/>
  <stream name="NEPTUNE_DEV_thomas" basis="NEPTUNE_DEV" basisStreamNumber="3" depotName="NEPTUNE" streamNumber="4" isDynamic="false" type="workspace" startTime="1197384000"/>
  <stream name="NEPTUNE_SNAP" basis="NEPTUNE_MAINT" basisStreamNumber="2" depotName="NEPTUNE" streamNumber="5" isDynamic="false" type="snapshot" time="1197390000" startTime="1197390000"/>
</streams>
"""

JUPITER_STREAMS_XML = """<?xml version="1.0" encoding="utf-8"?>
<streams>
  <stream name="JUPITER" depotName="JUPITER" streamNumber="1" isDynamic="true" type="normal" startTime="1197383792"/>
  <stream name="JUPITER_DEV" basis="JUPITER" basisStreamNumber="1" depotName="JUPITER" streamNumber="2" isDynamic="true" type="normal" startTime="1197383800"/>
</streams>
"""

INFO_TEXT = """Shell:          /bin/bash
Principal:      thomas
Host:           build01
Domain:         (none)
Server name:    accurev.corp.com
Port:           5050
DB Encoding:    Unicode
ACCUREV_BIN:    /opt/accurev/bin
Client time:    2016/01/31 08:05:00 AEDT (1454187900)
Server time:    2016/01/31 08:05:00 AEDT (1454187900)
Depot:          NEPTUNE
Workspace/ref:  NEPTUNE_DEV_thomas
Basis:          NEPTUNE_DEV
Top:            /home/thomas/neptune
"""

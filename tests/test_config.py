import pytest

from acutils.config import Config
from acutils.errors import ParseError


CONFIG_XML = """<acutils>
  <accurev executable="/opt/accurev/bin/accurev" max-concurrent="4" timeout="120" username="build" password="secret" />
  <logging filename="acutils.log" level="debug" timezone="Australia/Sydney" />
  <depots dynamic-only="true" include-hidden="false">
    <depot name="NEPTUNE" />
    <depot name="JUPITER" />
  </depots>
  <streams> <stream name="NEPTUNE_DEV" /> </streams>
  <users> <user name="thomas" /> </users>
  <groups> <group name="DEV_LEADS" /> </groups>
  <activedir>
    <domains> <domain host="ldap://dc1.corp.com" path="dc=corp,dc=com" user="svc" password="pw" /> </domains>
    <properties>
      <property field="title" title="Title" />
      <property field="department" />
    </properties>
  </activedir>
</acutils>
"""


def test_full_configuration():
    config = Config.fromxmlstring(CONFIG_XML)

    assert config.accurev.executable == "/opt/accurev/bin/accurev"
    assert config.accurev.maxConcurrent == 4
    assert config.accurev.timeout == 120.0
    assert (config.accurev.username, config.accurev.password) == ("build", "secret")
    assert (config.logging.filename, config.logging.level, config.logging.timezone) == ("acutils.log", "DEBUG", "Australia/Sydney")
    assert config.depots == [ "NEPTUNE", "JUPITER" ]
    assert config.streams == [ "NEPTUNE_DEV" ]
    assert config.users == [ "thomas" ]
    assert config.groups == [ "DEV_LEADS" ]
    assert config.dynamicOnly and not config.includeHidden
    assert config.domains[0].host == "ldap://dc1.corp.com"
    assert [ (p.field, p.title) for p in config.properties ] == [ ("title", "Title"), ("department", "department") ]
    assert "secret" not in repr(config)


def test_minimal_configuration_has_defaults():
    config = Config.fromxmlstring("<acutils/>")

    assert config.accurev.executable is None
    assert config.accurev.timeout is None
    assert config.logging.level == "INFO"
    assert config.depots == [] and config.domains == []
    assert not config.dynamicOnly and not config.includeHidden


def test_other_root_is_not_a_configuration():
    assert Config.fromxmlstring("<ac2git/>") is None


@pytest.mark.parametrize("xml", [
    "<acutils><accurev timeout='soon'/></acutils>",
    "<acutils><accurev max-concurrent='many'/></acutils>",
    "<acutils><depots dynamic-only='maybe'/></acutils>",
    "<acutils><depots><depot/></depots></acutils>",
    "<acutils><activedir><domains><domain host='ldap://dc1'/></domains></activedir></acutils>",
    "<acutils><activedir><properties><property title='Title'/></properties></activedir></acutils>",
    "<acutils>",
])
def test_invalid_configuration(xml):
    with pytest.raises(ParseError):
        Config.fromxmlstring(xml)


def test_configuration_file(tmp_path):
    path = tmp_path / "acutils.config.xml"
    path.write_text(CONFIG_XML, encoding='utf-8')

    assert Config.fromfile(str(path)).depots == [ "NEPTUNE", "JUPITER" ]
    assert Config.fromfile(str(tmp_path / "missing.config.xml")) is None


def test_filename_from_script_name():
    assert Config.FilenameFromScriptName("/usr/local/bin/acutils.py") == "/usr/local/bin/acutils.config.xml"
    assert Config.FilenameFromScriptName("acutils") == "acutils.config.xml"

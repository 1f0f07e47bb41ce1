"""
Tests for entities and entity collections
"""

import uuid
from datetime import datetime, timezone
from urllib.parse import parse_qsl

import pytest

from splunk_sdk.applications import Application, ApplicationAttributes, ApplicationCollection
from splunk_sdk.configuration import ConfigurationCollection, ConfigurationStanza
from splunk_sdk.context import Namespace, ResourceName
from splunk_sdk.entity import split_entry_id
from splunk_sdk.exceptions import InvalidDataError, ResourceNotFoundError
from splunk_sdk.indexes import IndexAttributes, IndexCollection
from splunk_sdk.server import Server, ServerMessageCollection, ServerMessageSeverity
from splunk_sdk.storage_passwords import StoragePasswordCollection, storage_password_name
from splunk_sdk.transmitter import Transmitter


def form(body: bytes):
    return parse_qsl(body.decode(), keep_blank_values=True)


class TestSplitEntryId:

    def test_default_namespace(self):
        namespace, name = split_entry_id("https://localhost:8089/services/server/info/server-info")

        assert namespace == Namespace()
        assert name == ("server", "info", "server-info")

    def test_user_namespace(self):
        namespace, name = split_entry_id(
            "https://localhost:8089/servicesNS/admin/search/saved/searches/Security%20Alerts"
        )

        assert namespace == Namespace("admin", "search")
        assert name == ("saved", "searches", "Security Alerts")

    def test_unexpected(self):
        with pytest.raises(InvalidDataError):
            split_entry_id("https://localhost:8089/en-US/app/search")


class TestIndexes:
    """Test cases for the index collection"""

    @pytest.mark.asyncio
    async def test_get_all(self, context):
        context.respond_with("indexes.xml")
        indexes = IndexCollection(context)

        await indexes.get_all()

        assert context.requests[0][1] == "https://test-splunk.com:8089/services/data/indexes?count=0"
        assert len(indexes) == 2
        assert indexes.pagination.total_results == 2
        assert indexes.generator_version == (9, 1, 2)

        main = indexes[0]
        assert main.name == "main"
        assert main.namespace == Namespace("nobody", "search")
        assert main.current_db_size_mb == 1024
        assert main.total_event_count == 100000
        assert main.max_data_size == "auto_high_volume"
        assert main.compress_raw_data is True
        assert main.is_ready is True
        assert main.disabled is False
        assert main.max_time == datetime(2024, 1, 15, 9, 59, 58, tzinfo=timezone.utc)
        assert main.eai_acl.sharing == "global"
        assert main.eai_acl.perms.write == ["admin", "power"]

        assert indexes[1].disabled is True
        assert indexes[1].cold_path is None

    @pytest.mark.asyncio
    async def test_get_not_found(self, context, data):
        context.respond(404, data("error_not_found.xml"), "Not Found")
        indexes = IndexCollection(context)

        assert await indexes.get_or_none("missing") is None
        assert context.requests[0][1].endswith("/services/data/indexes/missing")

    @pytest.mark.asyncio
    async def test_create(self, context):
        context.respond_with("indexes.xml", status=201)
        indexes = IndexCollection(context)

        index = await indexes.create("main", IndexAttributes(max_hot_buckets=3), home_path="/data/main/db")

        assert index.name == "main"
        assert form(context.requests[0][3]) == [
            ("homePath", "/data/main/db"),
            ("name", "main"),
            ("maxHotBuckets", "3"),
        ]

    @pytest.mark.asyncio
    async def test_disable(self, context, data):
        context.respond_with("indexes.xml")
        indexes = IndexCollection(context)
        await indexes.get_all()

        context.respond(200)
        await indexes[0].disable()

        method, url, _, _ = context.requests[1]
        assert method == "POST"
        assert url == "https://test-splunk.com:8089/servicesNS/nobody/search/data/indexes/main/disable"

    @pytest.mark.asyncio
    async def test_remove(self, context):
        context.respond_with("indexes.xml")
        indexes = IndexCollection(context)
        await indexes.get_all()

        context.respond(404, b"", "Not Found")
        with pytest.raises(ResourceNotFoundError):
            await indexes[1].remove()

        assert context.requests[1][0] == "DELETE"


class TestApplications:
    """Test cases for the application collection"""

    @pytest.mark.asyncio
    async def test_get_all(self, context):
        context.respond_with("applications.xml")
        applications = ApplicationCollection(context)

        await applications.get_all()

        search = applications[0]
        assert isinstance(search, Application)
        assert search.name == "search"
        assert search.label == "Search & Reporting"
        assert search.author == "Splunk"
        assert search.visible is True
        assert search.check_for_updates is True
        assert search.links["package"] == "/servicesNS/nobody/system/apps/local/search/package"

        # Falls back to the entry author when content has none
        assert applications[1].author == "nobody"
        assert applications[1].visible is False

    @pytest.mark.asyncio
    async def test_create(self, context):
        context.respond_with("applications.xml", status=201)
        applications = ApplicationCollection(context)

        await applications.create("search", "barebones", ApplicationAttributes(label="Search"))

        assert form(context.requests[0][3]) == [
            ("explicit_appname", "search"),
            ("filename", "0"),
            ("name", "search"),
            ("template", "barebones"),
            ("label", "Search"),
        ]

    @pytest.mark.asyncio
    async def test_update(self, context):
        context.respond_with("applications.xml")
        applications = ApplicationCollection(context)
        await applications.get_all()

        context.respond_with("applications.xml")
        changed = await applications[0].update(ApplicationAttributes(visible=False))

        assert changed is True
        assert form(context.requests[1][3]) == [("visible", "0"), ("check_for_updates", "0")]

    @pytest.mark.asyncio
    async def test_package(self, context):
        context.respond_with("applications.xml")
        applications = ApplicationCollection(context)
        await applications.get_all()

        context.respond(200, """<entry xmlns="http://www.w3.org/2005/Atom" xmlns:s="http://dev.splunk.com/ns/rest">
  <title>search</title>
  <id>https://localhost:8089/servicesNS/nobody/system/apps/local/search/package</id>
  <content type="text/xml">
    <s:dict>
      <s:key name="name">search</s:key>
      <s:key name="path">/opt/splunk/etc/system/static/app-packages/search.spl</s:key>
      <s:key name="url">https://localhost:8000/static/app-packages/search.spl</s:key>
    </s:dict>
  </content>
</entry>""")

        info = await applications[0].package()

        assert context.requests[1][1].endswith("/servicesNS/nobody/system/apps/local/search/package")
        assert info.application_name == "search"
        assert info.path.endswith("search.spl")
        assert info.uri == "https://localhost:8000/static/app-packages/search.spl"


class TestServer:
    """Test cases for server endpoints"""

    @pytest.mark.asyncio
    async def test_get_info(self, context):
        context.respond_with("server_info.xml")

        info = await Server(context).get_info()

        assert context.requests[0][1] == "https://test-splunk.com:8089/services/server/info"
        assert info.server_name == "test-splunk"
        assert info.build == "64e843ea36b1"
        assert info.build_number == 0x64e843ea36b1
        assert info.version == (9, 1, 2)
        assert info.guid == uuid.UUID("9b3b1a4a-3c5b-4f4a-8e0b-7b0a1c2d3e4f")
        assert info.is_free is False
        assert info.is_realtime_search_enabled is True
        assert info.license_keys == ["A1B2C3"]
        assert info.license_state == "OK"
        assert info.number_of_cores == 8
        assert info.startup_time == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_messages(self, context):
        context.respond_with("server_messages.xml")
        messages = ServerMessageCollection(context)

        await messages.get_all()

        message = messages[0]
        assert message.name == "restart_required"
        assert message.severity == ServerMessageSeverity.WARNING
        assert message.text == "Splunk must be restarted for changes to take effect."
        assert message.time_created == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_create_message(self, context):
        context.respond_with("server_messages.xml", status=201)

        await ServerMessageCollection(context).create("restart_required", ServerMessageSeverity.WARNING, "Restart")

        assert form(context.requests[0][3]) == [
            ("name", "restart_required"),
            ("severity", "warn"),
            ("value", "Restart"),
        ]


class TestStoragePasswords:

    def test_name(self):
        assert storage_password_name("svc:reader", "db:prod") == "db\\:prod:svc\\:reader:"
        assert storage_password_name("admin") == ":admin:"

    @pytest.mark.asyncio
    async def test_get_by_user(self, context, data):
        body = data("storage_passwords.xml")
        context.respond(200, body)
        passwords = StoragePasswordCollection(context, Namespace("nobody", "search"))

        password = await passwords.get_by_user("svc:reader", "db:prod")

        assert context.requests[0][1] == (
            "https://test-splunk.com:8089/servicesNS/nobody/search/storage/passwords/db%5C%3Aprod%3Asvc%5C%3Areader%3A"
        )
        assert password.username == "svc:reader"
        assert password.realm == "db:prod"
        assert password.clear_password == "s3cret"
        assert password.encrypted_password == "$7$abcdef=="

    @pytest.mark.asyncio
    async def test_create(self, context):
        context.respond_with("storage_passwords.xml", status=201)

        password = await StoragePasswordCollection(context).create("s3cret", "svc:reader")

        assert password.name == "db\\:prod:svc\\:reader:"
        assert form(context.requests[0][3]) == [("name", "svc:reader"), ("password", "s3cret")]


class TestConfiguration:

    @pytest.mark.asyncio
    async def test_stanza_settings(self, context):
        context.respond_with("configuration_stanza.xml")

        configuration = await ConfigurationCollection(context, Namespace("nobody", "search")).get("props")
        assert configuration.resource_name == ("properties", "props")

        stanza = ConfigurationStanza(context, Namespace("nobody", "search"), ResourceName("properties", "props", "default"))
        context.respond_with("configuration_stanza.xml")
        await stanza.get_all()

        assert [setting.name for setting in stanza] == ["CHARSET", "TRUNCATE"]
        assert stanza[0].value == "UTF-8"

    @pytest.mark.asyncio
    async def test_get_value(self, context):
        context.respond(200, "10000")
        stanza = ConfigurationStanza(context, Namespace("nobody", "search"), ResourceName("properties", "props", "default"))

        assert await stanza.get_value("TRUNCATE") == "10000"
        assert context.requests[0][1].endswith("/servicesNS/nobody/search/properties/props/default/TRUNCATE")

    @pytest.mark.asyncio
    async def test_remove_stanza(self, context):
        context.respond(200)
        stanza = ConfigurationStanza(context, Namespace("nobody", "search"), ResourceName("properties", "props", "mytype"))

        await stanza.remove()

        method, url, _, _ = context.requests[0]
        assert method == "DELETE"
        assert url == "https://test-splunk.com:8089/servicesNS/nobody/search/configs/conf-props/mytype"


class TestTransmitter:

    @pytest.mark.asyncio
    async def test_send(self, context, data):
        context.respond(200, data("receivers_simple.xml"))

        result = await Transmitter(context).send("2024-01-15 10:00:00 hello", index="main", sourcetype="syslog")

        _, url, headers, body = context.requests[0]
        assert url == "https://test-splunk.com:8089/services/receivers/simple?index=main&sourcetype=syslog"
        assert body == b"2024-01-15 10:00:00 hello"
        assert result["_index"] == "main"
        assert result["bytes"] == "27"

"""Tests for execute(): login, operation and transport release."""

import logging

import httpx
import pytest

from graniteclient import (
    AsyncTransport,
    ClientConfig,
    CredentialStore,
    LogTaskListener,
    LoginError,
    PackageManagerClient,
    TaskListener,
    TransportFactory,
    UsernamePasswordCredential,
    execute,
    get_factory_instance,
    set_factory_instance,
)
from graniteclient.identity import key_id_resolver
from graniteclient.keys import build_keychain
from graniteclient.signing import Signer

from conftest import BASE_URL, key_credential


class CountingTransport(AsyncTransport):
    def __init__(self, client):
        super().__init__(client)
        self.close_calls = 0

    def close_asynchronously(self):
        self.close_calls += 1
        return super().close_asynchronously()


class CountingFactory(TransportFactory):
    def __init__(self, handler):
        super().__init__(transport=httpx.MockTransport(handler))
        self.created = []

    def new_instance(self, config):
        transport = CountingTransport(self.new_client(config))
        self.created.append(transport)
        return transport


class RecordingListener(TaskListener):
    def __init__(self):
        self.fatal = []

    def info(self, msg, *args):
        pass

    def error(self, msg, *args):
        pass

    def fatal_error(self, msg, *args):
        self.fatal.append(msg % args)


def registered_store(server, private_key, username="admin", **kwargs):
    credential = key_credential(private_key, username=username, **kwargs)
    keychain, usernames = build_keychain([credential])
    _, identity = Signer(keychain, key_id_resolver(usernames)).select_key()
    server.register(identity, private_key.public_key())
    return CredentialStore(keys=[credential])


def test_successful_login_runs_operation(config, server, ed25519_key):
    factory = CountingFactory(server)
    listener = RecordingListener()
    credentials = registered_store(server, ed25519_key)

    result = execute(lambda client: client.base_url, config, listener,
                     credentials=credentials, factory=factory)

    assert result == BASE_URL
    assert listener.fatal == []
    assert factory.created[0].close_calls == 1
    assert factory.created[0].closed


def test_failed_login_still_runs_operation(config, server, ed25519_key):
    factory = CountingFactory(server)
    listener = RecordingListener()
    credentials = CredentialStore(keys=[key_credential(ed25519_key)])
    seen = []

    def operation(client):
        seen.append(client)
        return "done"

    assert execute(operation, config, listener, credentials=credentials, factory=factory) == "done"

    assert isinstance(seen[0], PackageManagerClient)
    assert listener.fatal == [f"Failed to login to {BASE_URL}"]
    assert factory.created[0].close_calls == 1


def test_zero_keys_still_runs_operation(config, server):
    factory = CountingFactory(server)
    listener = RecordingListener()

    assert execute(lambda client: 42, config, listener, factory=factory) == 42

    assert server.requests == []
    assert len(listener.fatal) == 1
    assert factory.created[0].close_calls == 1


def test_operation_error_propagates_and_releases(config, server, ed25519_key):
    factory = CountingFactory(server)
    credentials = registered_store(server, ed25519_key)

    def operation(client):
        raise KeyError("boom")

    with pytest.raises(KeyError, match="boom"):
        execute(operation, config, RecordingListener(), credentials=credentials, factory=factory)

    assert factory.created[0].close_calls == 1


def test_login_error_propagates_and_releases(config, ed25519_key):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    factory = CountingFactory(handler)
    called = []

    with pytest.raises(LoginError):
        execute(called.append, config, RecordingListener(),
                credentials=CredentialStore(keys=[key_credential(ed25519_key)]), factory=factory)

    assert called == []
    assert factory.created[0].close_calls == 1


def test_keys_scoped_to_other_domain_are_not_used(config, server, ed25519_key):
    factory = CountingFactory(server)
    listener = RecordingListener()
    credentials = registered_store(server, ed25519_key, domain="*.other.org")

    execute(lambda client: None, config, listener, credentials=credentials, factory=factory)

    assert server.requests == []
    assert len(listener.fatal) == 1


def test_encrypted_key_logs_in(config, server, rsa_key):
    factory = CountingFactory(server)
    listener = RecordingListener()
    credentials = registered_store(server, rsa_key, passphrase="s3cret", domain="*.example.com")

    execute(lambda client: None, config, listener, credentials=credentials, factory=factory)

    assert listener.fatal == []


def test_password_credentials_are_not_used_for_login(config, server, caplog):
    factory = CountingFactory(server)
    credentials = CredentialStore(passwords=[UsernamePasswordCredential("admin", "admin")])

    with caplog.at_level(logging.DEBUG, logger="graniteclient.executor"):
        execute(lambda client: None, config, RecordingListener(), credentials=credentials, factory=factory)

    assert server.requests == []
    assert "1 password credential(s) available but unused" in caplog.text


def test_operation_requests_share_login_cookies(config, ed25519_key):
    def handler(request):
        if request.url.path == ClientConfig.DEFAULT_LOGIN_PATH:
            return httpx.Response(405, headers={"Set-Cookie": "login-token=abc; Path=/"})
        return httpx.Response(200, json={"cookie": request.headers.get("Cookie")})

    factory = CountingFactory(handler)
    credentials = CredentialStore(keys=[key_credential(ed25519_key)])

    response = execute(lambda client: client.request("GET", "/crx/packmgr/service/.json/"),
                       config, RecordingListener(), credentials=credentials, factory=factory)

    assert response.json() == {"cookie": "login-token=abc"}


def test_default_listener_logs_fatal(config, server, caplog):
    factory = CountingFactory(server)

    with caplog.at_level(logging.INFO, logger="graniteclient"):
        execute(lambda client: None, config, factory=factory)

    record = [r for r in caplog.records if r.levelno == logging.CRITICAL][0]
    assert record.getMessage() == f"Failed to login to {BASE_URL}"


def test_log_task_listener_levels(caplog):
    listener = LogTaskListener(logging.getLogger("graniteclient.test"), logging.WARNING)

    with caplog.at_level(logging.DEBUG, logger="graniteclient.test"):
        listener.info("step %d", 1)
        listener.error("bad %s", "thing")
        listener.fatal_error("fatal %s", "thing")

    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
        (logging.WARNING, "step 1"),
        (logging.ERROR, "bad thing"),
        (logging.CRITICAL, "fatal thing"),
    ]


def test_process_wide_factory_is_used(config, server):
    factory = CountingFactory(server)
    set_factory_instance(factory)
    try:
        assert get_factory_instance() is factory
        execute(lambda client: None, config, RecordingListener())
    finally:
        set_factory_instance(None)

    assert factory.created[0].close_calls == 1
    assert get_factory_instance() is not factory


def test_partial_listener_cannot_be_created():
    class OnlyFatal(TaskListener):
        def fatal_error(self, msg, *args):
            pass

    with pytest.raises(TypeError):
        OnlyFatal()

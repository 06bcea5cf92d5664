import pytest

from booker_tools.crypto.env_encryption_manager import (
    EnvironmentEncryptionManager,
    resolve_secret_key_from_environment,
)
from booker_tools.crypto.envelope import EncryptionEnvelope, is_already_encrypted
from booker_tools.crypto.errors import SecretKeyNotFound
from booker_tools.file_manager import FileAccessError

from .conftest import PASSPHRASE


SECRET_VAR = "UAT_SECRET_KEY"


@pytest.fixture
def manager(encryption_service, monkeypatch):
    monkeypatch.setenv(SECRET_VAR, PASSPHRASE)
    return EnvironmentEncryptionManager(encryption_service)


def _parse(path):
    return EnvironmentEncryptionManager.extract_environment_variables(
        path.read_text(encoding="utf-8").split("\n")
    )


@pytest.mark.parametrize(
    "line, expected",
    [
        ("KEY=value", ("KEY", "value")),
        ("  KEY = value  ", ("KEY", "value")),
        ("URL=https://x.test/?a=1&b=2", ("URL", "https://x.test/?a=1&b=2")),
        ("EMPTY=", ("EMPTY", "")),
        ("", None),
        ("   ", None),
        ("# COMMENT=1", None),
        ("no equals sign", None),
        ("=value", None),
    ],
)
def test_parse_environment_line(line, expected):
    assert EnvironmentEncryptionManager.parse_environment_line(line) == expected


def test_extract_keeps_last_value_for_repeated_key():
    variables = EnvironmentEncryptionManager.extract_environment_variables(
        ["A=1", "B=2", "A=3", "# A=4"]
    )
    assert variables == {"A": "3", "B": "2"}
    assert list(variables) == ["A", "B"]


def test_resolve_by_key_then_by_value(manager):
    all_variables = {"TOKEN_USERNAME": "admin", "TOKEN_PASSWORD": "password123", "OTHER": "admin"}

    targets = manager.resolve_variables_to_encrypt(all_variables, ["TOKEN_PASSWORD", "admin"])

    assert targets == {"TOKEN_PASSWORD": "password123", "TOKEN_USERNAME": "admin"}


def test_resolve_without_selectors_returns_everything(manager):
    all_variables = {"A": "1", "B": "2"}
    assert manager.resolve_variables_to_encrypt(all_variables) == all_variables
    assert manager.resolve_variables_to_encrypt(all_variables, []) == all_variables


def test_unmatched_selector_is_skipped_without_echo(manager, log_messages):
    targets = manager.resolve_variables_to_encrypt({"A": "1"}, ["plaintext-secret"])

    assert targets == {}
    assert not any("plaintext-secret" in message for message in log_messages)


def test_update_lines_replaces_in_place_or_appends():
    lines = ["# header", "A=1", "B=2", "A=duplicate"]

    assert EnvironmentEncryptionManager.update_environment_file_lines(lines, "A", "X") == [
        "# header",
        "A=X",
        "B=2",
        "A=X",
    ]
    assert EnvironmentEncryptionManager.update_environment_file_lines(lines, "C", "3")[-1] == "C=3"


@pytest.mark.asyncio
async def test_encrypts_selected_variables_in_place(manager, encryption_service, tmp_path):
    env_file = tmp_path / ".env.uat"
    env_file.write_text(
        "# credentials\nAPI_BASE_URL=https://restful-booker.herokuapp.com\n"
        "TOKEN_USERNAME=admin\n\nTOKEN_PASSWORD=password123\n",
        encoding="utf-8",
    )

    result = await manager.encrypt_and_update_environment_variables(
        tmp_path, ".env.uat", SECRET_VAR, ["TOKEN_USERNAME", "TOKEN_PASSWORD"]
    )

    assert result.encrypted == ["TOKEN_USERNAME", "TOKEN_PASSWORD"]
    assert result.encrypted_count == 2
    assert result.considered == 2

    lines = env_file.read_text(encoding="utf-8").split("\n")
    assert lines[0] == "# credentials"
    assert lines[1] == "API_BASE_URL=https://restful-booker.herokuapp.com"
    assert lines[3] == ""
    assert lines[-1] == ""

    variables = _parse(env_file)
    assert await encryption_service.decrypt(variables["TOKEN_USERNAME"], PASSPHRASE) == "admin"
    assert await encryption_service.decrypt(variables["TOKEN_PASSWORD"], PASSPHRASE) == "password123"


@pytest.mark.asyncio
async def test_encrypts_variable_found_by_value(manager, encryption_service, tmp_path):
    env_file = tmp_path / ".env.uat"
    env_file.write_text("A=1\nB=secretvalue\nC=3\n", encoding="utf-8")

    result = await manager.encrypt_and_update_environment_variables(
        tmp_path, ".env.uat", SECRET_VAR, ["secretvalue"]
    )

    assert result.encrypted == ["B"]
    lines = env_file.read_text(encoding="utf-8").split("\n")
    assert lines[0] == "A=1"
    assert lines[1].startswith("B={")
    assert lines[2] == "C=3"
    assert lines[3] == ""
    assert await encryption_service.decrypt(_parse(env_file)["B"], PASSPHRASE) == "secretvalue"


@pytest.mark.asyncio
async def test_crlf_line_endings_are_kept(manager, tmp_path):
    env_file = tmp_path / ".env.uat"
    env_file.write_bytes(b"# creds\r\nTOKEN_USERNAME=admin\r\nTOKEN_PASSWORD=password123\r\n")

    await manager.encrypt_and_update_environment_variables(
        tmp_path, ".env.uat", SECRET_VAR, ["TOKEN_PASSWORD"]
    )

    content = env_file.read_bytes().decode("utf-8")
    lines = content.split("\r\n")
    assert "\n" not in content.replace("\r\n", "")
    assert lines[0] == "# creds"
    assert lines[1] == "TOKEN_USERNAME=admin"
    assert is_already_encrypted(lines[2].split("=", 1)[1])
    assert lines[3] == ""


@pytest.mark.asyncio
async def test_second_run_is_a_no_op(manager, tmp_path):
    env_file = tmp_path / ".env.uat"
    env_file.write_text("TOKEN_PASSWORD=password123", encoding="utf-8")

    await manager.encrypt_and_update_environment_variables(tmp_path, ".env.uat", SECRET_VAR)
    after_first = env_file.read_text(encoding="utf-8")

    result = await manager.encrypt_and_update_environment_variables(tmp_path, ".env.uat", SECRET_VAR)

    assert result.encrypted == []
    assert result.skipped == ["TOKEN_PASSWORD"]
    assert env_file.read_text(encoding="utf-8") == after_first


@pytest.mark.asyncio
async def test_empty_values_are_skipped(manager, tmp_path):
    env_file = tmp_path / ".env.dev"
    env_file.write_text("EMPTY=\nNAME=bob", encoding="utf-8")

    result = await manager.encrypt_and_update_environment_variables(tmp_path, ".env.dev", SECRET_VAR)

    assert result.skipped == ["EMPTY"]
    assert result.encrypted == ["NAME"]
    assert env_file.read_text(encoding="utf-8").split("\n")[0] == "EMPTY="


@pytest.mark.asyncio
async def test_values_containing_equals_survive(manager, encryption_service, tmp_path):
    env_file = tmp_path / ".env.dev"
    env_file.write_text("QUERY=a=1&b=2", encoding="utf-8")

    await manager.encrypt_and_update_environment_variables(tmp_path, ".env.dev", SECRET_VAR)

    value = _parse(env_file)["QUERY"]
    assert is_already_encrypted(value)
    assert await encryption_service.decrypt(value, PASSPHRASE) == "a=1&b=2"


@pytest.mark.asyncio
async def test_file_untouched_when_nothing_to_encrypt(manager, tmp_path):
    env_file = tmp_path / ".env.dev"
    envelope = EncryptionEnvelope("c2FsdA==", "aXY=", "Y3Q=").to_json()
    original = f"TOKEN_PASSWORD={envelope}\r\n"
    env_file.write_bytes(original.encode("utf-8"))
    mtime = env_file.stat().st_mtime_ns

    result = await manager.encrypt_and_update_environment_variables(tmp_path, ".env.dev", SECRET_VAR)

    assert result.encrypted_count == 0
    assert env_file.read_bytes() == original.encode("utf-8")
    assert env_file.stat().st_mtime_ns == mtime


@pytest.mark.asyncio
async def test_missing_secret_key_leaves_file_unchanged(encryption_service, monkeypatch, tmp_path):
    monkeypatch.delenv(SECRET_VAR, raising=False)
    env_file = tmp_path / ".env.uat"
    env_file.write_text("TOKEN_PASSWORD=password123", encoding="utf-8")
    manager = EnvironmentEncryptionManager(encryption_service)

    with pytest.raises(SecretKeyNotFound):
        await manager.encrypt_and_update_environment_variables(tmp_path, ".env.uat", SECRET_VAR)

    assert env_file.read_text(encoding="utf-8") == "TOKEN_PASSWORD=password123"


@pytest.mark.asyncio
async def test_secret_key_not_needed_when_nothing_to_encrypt(encryption_service, monkeypatch, tmp_path):
    monkeypatch.delenv(SECRET_VAR, raising=False)
    (tmp_path / ".env.uat").write_text("EMPTY=", encoding="utf-8")
    manager = EnvironmentEncryptionManager(encryption_service)

    result = await manager.encrypt_and_update_environment_variables(tmp_path, ".env.uat", SECRET_VAR)

    assert result.skipped == ["EMPTY"]


@pytest.mark.asyncio
async def test_injected_secret_key_resolver(encryption_service, tmp_path):
    (tmp_path / ".env.uat").write_text("A=1", encoding="utf-8")
    requested = []

    def resolver(name):
        requested.append(name)
        return "injected"

    manager = EnvironmentEncryptionManager(encryption_service, resolver)
    await manager.encrypt_and_update_environment_variables(tmp_path, ".env.uat", SECRET_VAR)

    assert requested == [SECRET_VAR]
    value = _parse(tmp_path / ".env.uat")["A"]
    assert await encryption_service.decrypt(value, "injected") == "1"


@pytest.mark.asyncio
async def test_missing_file_raises_file_access_error(manager, tmp_path):
    with pytest.raises(FileAccessError):
        await manager.encrypt_and_update_environment_variables(tmp_path, ".env.prod", SECRET_VAR)


def test_resolve_secret_key_from_environment(monkeypatch):
    monkeypatch.setenv(SECRET_VAR, "  value  ")
    assert resolve_secret_key_from_environment(SECRET_VAR) == "value"

    monkeypatch.setenv(SECRET_VAR, "   ")
    with pytest.raises(SecretKeyNotFound, match=SECRET_VAR):
        resolve_secret_key_from_environment(SECRET_VAR)

    monkeypatch.delenv(SECRET_VAR)
    with pytest.raises(KeyError):
        resolve_secret_key_from_environment(SECRET_VAR)

import base64

import pytest

from booker_tools.crypto.coordinator import EnvironmentEncryptionCoordinator
from booker_tools.crypto.env_encryption_manager import EnvironmentEncryptionManager
from booker_tools.crypto.errors import SecretKeyNotFound
from booker_tools.environment.secret_file_manager import EnvironmentSecretFileManager


@pytest.fixture
def coordinator(encryption_service, tmp_path):
    return EnvironmentEncryptionCoordinator(
        EnvironmentSecretFileManager(env_dir=tmp_path, base_env_file=".env"),
        EnvironmentEncryptionManager(encryption_service),
    )


@pytest.mark.asyncio
async def test_generate_and_store_secret_key_creates_base_file(coordinator, tmp_path):
    stored = await coordinator.generate_and_store_secret_key(tmp_path, ".env", "UAT_SECRET_KEY")

    assert stored is True
    content = (tmp_path / ".env").read_text(encoding="utf-8")
    key, _, value = content.partition("=")
    assert key == "UAT_SECRET_KEY"
    assert len(base64.b64decode(value, validate=True)) == 32


@pytest.mark.asyncio
async def test_generate_is_idempotent(coordinator, tmp_path):
    await coordinator.generate_and_store_secret_key(tmp_path, ".env", "UAT_SECRET_KEY")
    first = (tmp_path / ".env").read_text(encoding="utf-8")

    stored = await coordinator.generate_and_store_secret_key(tmp_path, ".env", "UAT_SECRET_KEY")

    assert stored is False
    assert (tmp_path / ".env").read_text(encoding="utf-8") == first


@pytest.mark.asyncio
async def test_keys_for_several_stages_coexist(coordinator, tmp_path):
    await coordinator.generate_and_store_secret_key(tmp_path, ".env", "DEV_SECRET_KEY")
    await coordinator.generate_and_store_secret_key(tmp_path, ".env", "UAT_SECRET_KEY")

    lines = (tmp_path / ".env").read_text(encoding="utf-8").split("\n")
    assert [line.split("=", 1)[0] for line in lines] == ["DEV_SECRET_KEY", "UAT_SECRET_KEY"]


@pytest.mark.asyncio
async def test_generate_then_encrypt_then_decrypt(coordinator, encryption_service, monkeypatch, tmp_path):
    await coordinator.generate_and_store_secret_key(tmp_path, ".env", "UAT_SECRET_KEY")
    secret = (tmp_path / ".env").read_text(encoding="utf-8").partition("=")[2]
    monkeypatch.setenv("UAT_SECRET_KEY", secret)
    (tmp_path / ".env.uat").write_text("TOKEN_USERNAME=admin\nTOKEN_PASSWORD=password123", encoding="utf-8")

    result = await coordinator.orchestrate_environment_encryption(
        tmp_path, ".env.uat", "UAT_SECRET_KEY", ["TOKEN_USERNAME", "TOKEN_PASSWORD"]
    )

    assert result.encrypted == ["TOKEN_USERNAME", "TOKEN_PASSWORD"]
    variables = EnvironmentEncryptionManager.extract_environment_variables(
        (tmp_path / ".env.uat").read_text(encoding="utf-8").split("\n")
    )
    decrypted = await encryption_service.decrypt_multiple(
        [variables["TOKEN_USERNAME"], variables["TOKEN_PASSWORD"]], secret
    )
    assert decrypted == ["admin", "password123"]


@pytest.mark.asyncio
async def test_orchestration_propagates_errors(coordinator, monkeypatch, tmp_path):
    monkeypatch.delenv("PROD_SECRET_KEY", raising=False)
    (tmp_path / ".env.prod").write_text("TOKEN_PASSWORD=password123", encoding="utf-8")

    with pytest.raises(SecretKeyNotFound):
        await coordinator.orchestrate_environment_encryption(tmp_path, ".env.prod", "PROD_SECRET_KEY")

from pathlib import Path

import pytest

from vault_links.data_models import VaultMetadata


@pytest.fixture
def vault(tmp_path: Path) -> VaultMetadata:
    root = tmp_path.resolve()
    return VaultMetadata(name="test", path=root, description="test vault", exists=True)


@pytest.fixture
def write_note(vault: VaultMetadata):
    def _write(identity: str, content: str) -> Path:
        path = vault.path / f"{identity}.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write

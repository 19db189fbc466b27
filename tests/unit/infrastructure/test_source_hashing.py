from pathlib import Path

import pytest

from infrastructure.compute.hashing import hash_directory, hash_text
from tests.fixtures.handlers import write_handlers_project

pytestmark = pytest.mark.unit


def test_identical_trees_hash_identically(tmp_path: Path) -> None:
    first = write_handlers_project(tmp_path / "a")
    second = write_handlers_project(tmp_path / "b")
    assert hash_directory(first) == hash_directory(second)


def test_content_change_changes_hash(handlers_dir: Path) -> None:
    before = hash_directory(handlers_dir)
    (handlers_dir / "src/main/java/com/delivery/api/handlers/GetSlots.java").write_text("class GetSlots { int x; }\n")
    assert hash_directory(handlers_dir) != before


def test_rename_changes_hash(handlers_dir: Path) -> None:
    before = hash_directory(handlers_dir)
    (handlers_dir / "gradlew").rename(handlers_dir / "gradlew.sh")
    assert hash_directory(handlers_dir) != before


def test_build_outputs_do_not_affect_hash(handlers_dir: Path) -> None:
    """
    Given: a handlers tree whose build output changes between runs
    When: the tree is hashed
    Then: the hash only reflects sources, so no rebuild is triggered
    """
    before = hash_directory(handlers_dir)
    (handlers_dir / "build" / "distributions").mkdir(parents=True)
    (handlers_dir / "build" / "distributions" / "lambda.zip").write_bytes(b"new")
    assert hash_directory(handlers_dir) == before


def test_nested_build_package_is_hashed_as_source(handlers_dir: Path) -> None:
    """
    Given: a Java package directory named ``build`` below the source root
    When: a file inside it is edited
    Then: the hash changes, so the edited handler is rebuilt
    """
    package = handlers_dir / "src" / "main" / "java" / "com" / "delivery" / "api" / "build"
    package.mkdir(parents=True)
    source = package / "SlotBuilder.java"
    source.write_text("class SlotBuilder { int v = 1; }\n")
    before = hash_directory(handlers_dir)

    source.write_text("class SlotBuilder { int v = 2; }\n")

    assert hash_directory(handlers_dir) != before


def test_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        hash_directory(tmp_path / "absent")


def test_hash_text_is_sha256_hex() -> None:
    assert hash_text("") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    assert hash_text("a") != hash_text("b")

import logging
import os
from pathlib import Path

import pytest

from os_reinstall import storage
from os_reinstall.errors import ConfigurationError, StorageError
from os_reinstall.fstab import FstabTable


def make_volumes(config, *names):
    for name in names:
        Path(config.volume_group_dir, name).touch()


def fstab_lines(config):
    return Path(config.fstab_path).read_text().splitlines()


def test_volumes_map_to_srv_except_the_excluded_one(config):
    make_volumes(config, "lvol0", "data1", "backup2")
    table = FstabTable(config.fstab_path)

    added = storage.map_logical_volumes(config, table)

    vg = config.volume_group_dir
    srv = config.srv_root
    assert {entry.render() for entry in added} == {
        f"{vg}/data1 {srv}/data1 auto defaults 0 2",
        f"{vg}/backup2 {srv}/backup2 auto defaults 0 2",
    }
    assert os.path.isdir(os.path.join(srv, "data1"))
    assert os.path.isdir(os.path.join(srv, "backup2"))
    assert not os.path.exists(os.path.join(srv, "lvol0"))
    assert not any("lvol0" in line for line in fstab_lines(config))


def test_excluded_volume_alone_produces_nothing(config):
    make_volumes(config, "lvol0")
    before = fstab_lines(config)

    assert storage.map_logical_volumes(config, FstabTable(config.fstab_path)) == []
    assert fstab_lines(config) == before
    assert not os.path.exists(os.path.join(config.srv_root, "lvol0"))


def test_mapped_device_is_not_duplicated(config):
    make_volumes(config, "data1")
    device = os.path.join(config.volume_group_dir, "data1")
    with open(config.fstab_path, "a") as f:
        f.write(f"{device} /mnt/elsewhere ext4 defaults 0 2\n")

    added = storage.map_logical_volumes(config, FstabTable(config.fstab_path))

    assert added == []
    assert sum(line.startswith(device + " ") for line in fstab_lines(config)) == 1
    # The mount directory is still ensured.
    assert os.path.isdir(os.path.join(config.srv_root, "data1"))


def test_running_twice_adds_nothing_new(config):
    make_volumes(config, "data1", "backup2")
    table = FstabTable(config.fstab_path)

    storage.map_logical_volumes(config, table)
    first = fstab_lines(config)
    assert storage.map_logical_volumes(config, table) == []
    assert fstab_lines(config) == first


def test_device_mentioned_in_a_comment_is_not_mapped(config):
    make_volumes(config, "data1")
    device = os.path.join(config.volume_group_dir, "data1")
    with open(config.fstab_path, "a") as f:
        f.write(f"# {device} was retired\n")

    added = storage.map_logical_volumes(config, FstabTable(config.fstab_path))

    assert added == []
    assert not any(line.startswith(device + " ") for line in fstab_lines(config))


def test_longer_device_name_blocks_its_prefix(config):
    make_volumes(config, "data1")
    vg = config.volume_group_dir
    srv = config.srv_root
    with open(config.fstab_path, "a") as f:
        f.write(f"{vg}/data10 {srv}/data10 auto defaults 0 2\n")

    added = storage.map_logical_volumes(config, FstabTable(config.fstab_path))

    assert added == []
    assert f"{vg}/data1 {srv}/data1 auto defaults 0 2" not in fstab_lines(config)


def test_missing_volume_group_maps_nothing(config):
    os.rmdir(config.volume_group_dir)
    assert storage.map_logical_volumes(config, FstabTable(config.fstab_path)) == []


def test_home_volume_is_appended_once(config):
    table = FstabTable(config.fstab_path)

    entry = storage.map_home_volume(config, table)
    assert entry.render() == (
        f"{config.home_device} {config.home_mount} auto defaults 0 2"
    )
    assert storage.map_home_volume(config, table) is None
    assert sum(config.home_device in line for line in fstab_lines(config)) == 1


def test_existing_home_mount_with_other_device_blocks_home_mapping(config):
    with open(config.fstab_path, "a") as f:
        f.write(f"/dev/sda3 {config.home_mount} ext4 defaults 0 2\n")

    assert storage.map_home_volume(config, FstabTable(config.fstab_path)) is None
    assert not any(config.home_device in line for line in fstab_lines(config))


def test_deeper_path_under_home_blocks_home_mapping(config):
    with open(config.fstab_path, "a") as f:
        f.write(f"/dev/sdb1 {config.home_mount}/shared ext4 defaults 0 2\n")

    assert storage.map_home_volume(config, FstabTable(config.fstab_path)) is None
    assert not any(config.home_device in line for line in fstab_lines(config))


def test_mount_failure_aborts_before_mountpoint_check(config, commands):
    commands.fail("mount", "-a", returncode=32)

    with pytest.raises(StorageError) as excinfo:
        storage.enforce_mounts(config)

    assert excinfo.value.exit_code == 1
    assert not commands.ran("mountpoint")


def test_home_not_a_mountpoint_aborts(config, commands):
    commands.fail("mountpoint", returncode=32)

    with pytest.raises(StorageError):
        storage.enforce_mounts(config)

    assert commands.calls == [
        ["mount", "-a"],
        ["mountpoint", "-q", config.home_mount],
    ]


def test_mounts_verified(config, commands):
    storage.enforce_mounts(config)
    assert commands.ran("mount", "-a")
    assert commands.ran("mountpoint", "-q", config.home_mount)


def test_new_home_is_populated_from_skeleton(config):
    home = storage.bootstrap_user_home(config, "alice")

    assert home == Path(config.home_mount) / "alice"
    assert (home / ".profile").read_text() == "# profile\n"
    assert (home / ".config" / "user-dirs.dirs").exists()


def test_existing_home_is_left_alone(config):
    home = Path(config.home_mount) / "alice"
    home.mkdir()
    (home / ".profile").write_text("# mine\n")

    storage.bootstrap_user_home(config, "alice")

    assert (home / ".profile").read_text() == "# mine\n"
    assert not (home / ".config").exists()


def test_shell_config_download_failure_is_not_raised(config, commands):
    commands.fail("curl", returncode=22)

    assert storage.restore_shell_config(config, Path(config.home_mount)) is False


def test_shell_config_download_failure_is_logged_as_an_error(config, commands, caplog):
    commands.fail("curl", returncode=22)

    with caplog.at_level(logging.ERROR, logger="os_reinstall.storage"):
        storage.restore_shell_config(config, Path(config.home_mount))

    errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].startswith("Failed to download .bashrc")


def test_shell_config_downloaded_into_home(config, commands):
    home = Path(config.home_mount) / "alice"

    assert storage.restore_shell_config(config, home) is True
    assert commands.calls == [
        ["curl", "-fsSL", config.bashrc_url, "-o", str(home / ".bashrc")]
    ]


def test_groups_created_before_membership(config, commands):
    storage.assign_groups(config, "alice")

    assert commands.calls == [
        ["groupadd", "-f", "sudo"],
        ["usermod", "-aG", "sudo", "alice"],
        ["groupadd", "-f", "dialout"],
        ["usermod", "-aG", "dialout", "alice"],
        ["groupadd", "-f", "docker"],
        ["usermod", "-aG", "docker", "alice"],
    ]


def test_unknown_primary_uid(monkeypatch):
    def missing(uid):
        raise KeyError(uid)

    monkeypatch.setattr(storage.pwd, "getpwuid", missing)
    with pytest.raises(ConfigurationError):
        storage.resolve_primary_user(1000)


def test_configure_storage_runs_in_order(config, commands, monkeypatch):
    monkeypatch.setattr(storage, "resolve_primary_user", lambda uid: "alice")
    make_volumes(config, "data1")
    home = Path(config.home_mount) / "alice"

    storage.configure_storage(config)

    order = [
        commands.index("vgscan"),
        commands.index("vgchange", "-ay"),
        commands.index("mount", "-a"),
        commands.index("mountpoint"),
        commands.index("curl"),
        commands.index("chown", "-R", "alice:alice", str(home)),
        commands.index("groupadd"),
    ]
    assert order == sorted(order)
    assert home.is_dir()
    assert any(line.endswith("/srv/data1 auto defaults 0 2") for line in fstab_lines(config))


def test_configure_storage_survives_shell_config_failure(config, commands, monkeypatch):
    monkeypatch.setattr(storage, "resolve_primary_user", lambda uid: "alice")
    commands.fail("curl", returncode=6)

    storage.configure_storage(config)

    assert commands.ran("chown")
    assert commands.ran("usermod")


def test_configure_storage_never_touches_home_after_mount_failure(
    config, commands, monkeypatch
):
    monkeypatch.setattr(storage, "resolve_primary_user", lambda uid: "alice")
    commands.fail("mount", "-a")

    with pytest.raises(StorageError):
        storage.configure_storage(config)

    assert not (Path(config.home_mount) / "alice").exists()
    assert not commands.ran("chown")
    assert not commands.ran("usermod")

"""
VolumeManager - Node volume creation, ownership and file injection.
"""

import io
import tarfile
import time
from pathlib import PurePosixPath
from typing import Optional

import docker

from avabox.commands.constants import HELPER_IMAGE, VOLUME_MOUNT_DIR
from avabox.commands.managers.base import BaseManager
from avabox.commands.utils import console


def parse_uid_gid(uid_gid: str) -> tuple[int, int]:
    """Split a ``uid:gid`` string into integers."""
    uid, _, gid = uid_gid.partition(":")
    return int(uid), int(gid or uid)


def build_file_archive(
    rel_path: str, content: bytes, uid_gid: str, mode: int = 0o644
) -> bytes:
    """Build a tar archive holding ``content`` at ``rel_path``.

    Parent directories get their own entries so the daemon creates them with
    the same owner as the file.
    """
    uid, gid = parse_uid_gid(uid_gid)
    now = int(time.time())
    parts = PurePosixPath(rel_path).parts

    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for depth in range(1, len(parts)):
            directory = tarfile.TarInfo("/".join(parts[:depth]))
            directory.type = tarfile.DIRTYPE
            directory.mode = 0o755
            directory.uid, directory.gid = uid, gid
            directory.mtime = now
            tar.addfile(directory)

        info = tarfile.TarInfo(str(PurePosixPath(*parts)))
        info.size = len(content)
        info.mode = mode
        info.uid, info.gid = uid, gid
        info.mtime = now
        tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


class VolumeManager(BaseManager):
    """Manages the Docker volumes that hold node configuration."""

    def __init__(
        self,
        client: Optional[docker.DockerClient] = None,
        helper_image: str = HELPER_IMAGE,
    ):
        super().__init__(client)
        self.helper_image = helper_image

    def create_volume(self, name: str, labels: dict[str, str]):
        """Create a named volume carrying the given labels."""
        volume = self.client.volumes.create(name=name, labels=labels)
        console.print(f"[cyan]Created volume {name}[/cyan]")
        return volume

    def set_volume_owner(self, volume_name: str, image: str, uid_gid: str) -> None:
        """Chown the volume root to the user the node image runs as."""
        self.client.containers.run(
            image,
            entrypoint=["chown", "-R", uid_gid, VOLUME_MOUNT_DIR],
            user="0",
            volumes={volume_name: {"bind": VOLUME_MOUNT_DIR, "mode": "rw"}},
            remove=True,
        )

    def write_file(
        self,
        volume_name: str,
        rel_path: str,
        content: bytes,
        uid_gid: str,
        mode: int = 0o644,
    ) -> None:
        """Copy ``content`` into the volume at ``rel_path``.

        A short-lived helper container mounts the volume and receives the
        file through ``put_archive``; it is removed whether or not the copy
        worked.
        """
        if not self._ensure_image_pulled(self.helper_image):
            raise docker.errors.ImageNotFound(
                f"Helper image {self.helper_image} is not available"
            )

        archive = build_file_archive(rel_path, content, uid_gid, mode)
        container = self.client.containers.create(
            self.helper_image,
            command=["true"],
            volumes={volume_name: {"bind": VOLUME_MOUNT_DIR, "mode": "rw"}},
            labels={"avabox.helper": "true"},
        )
        try:
            if not container.put_archive(VOLUME_MOUNT_DIR, archive):
                raise docker.errors.APIError(
                    f"Failed to copy {rel_path} into volume {volume_name}"
                )
        finally:
            container.remove(force=True)

    def remove_volumes(self, label_filter: str) -> int:
        """Remove every volume matching ``label_filter``; return how many."""
        removed = 0
        for volume in self.client.volumes.list(filters={"label": label_filter}):
            try:
                volume.remove(force=True)
                removed += 1
            except docker.errors.APIError as e:
                console.print(
                    f"[yellow]⚠️  Could not remove volume {volume.name}: {str(e)}[/yellow]"
                )
        return removed

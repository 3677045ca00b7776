"""
Filesystem destroy orchestration.

A filesystem is in one of these states:

    present(no-deps)                    -> deleted unconditionally
    present(has-snapshots)              -> deleted with destroy_snapshots=True,
                                           otherwise the appliance refuses (EBUSY)
    present(has-snapshots-with-clones)  -> with destroy_snapshots=True and
                                           promote_most_recent_clone=True the newest
                                           clone takes over the snapshots first,
                                           otherwise the appliance refuses (EBUSY)

Promotion example:

    [fsSource]---+                       // source filesystem
                 |    [snapshot1]
                 `--->[snapshot2]<---+
                                     |
    [fsClone1]-----------------------+   // older clone of snapshot2
    [fsClone2]-----------------------+   // newer clone of snapshot2

After destroying fsSource with promotion:

    [fsClone1]<----------------------+   // still linked to snapshot2
    [fsClone2]---+                   |   // promoted, owns the snapshots now
                 |    [snapshot1]    |
                 `--->[snapshot2]<---+

The appliance does the dependency bookkeeping. This module only issues the
calls in the right order and surfaces the appliance's refusal unchanged.

Promotion is not rolled back. Promoting a clone only moves the snapshots up
to its origin, so when clones hang off several snapshots and the promoted
clone is not on the newest one, the second delete still fails with EBUSY
after the promotion has happened. The caller sees NefInUseError and the
promoted clone keeps the snapshots it took over.
"""

import logging
from typing import Any, List, Optional

from .errors import NefInUseError
from .models import Filesystem

logger = logging.getLogger(__name__)


def select_promotion_target(clones: List[Filesystem]) -> Optional[Filesystem]:
    """
    Pick the clone with the most recent creation time.

    Ties go to the lexicographically smallest path. Clones without a
    creation time rank oldest.
    """
    if not clones:
        return None

    def created(fs: Filesystem) -> float:
        return fs.creation_time.timestamp() if fs.creation_time else float('-inf')

    # max() keeps the first maximum, so sorting by path first settles ties
    return max(sorted(clones, key=lambda fs: fs.path), key=created)


class DestroyOrchestrator:
    """Sequences the delete, cascade and clone promotion calls of a provider."""

    def __init__(self, provider: Any):
        """
        Args:
            provider: Provider exposing delete_filesystem_request(), get_snapshots(),
                      get_filesystem() and promote_filesystem()
        """
        self.provider = provider

    def find_promotion_target(self, path: str) -> Optional[Filesystem]:
        """Most recent clone of any snapshot of the filesystem, or None."""
        clone_paths = set()
        for snapshot in self.provider.get_snapshots(path):
            clone_paths.update(snapshot.clones)

        clones = [self.provider.get_filesystem(clone_path) for clone_path in sorted(clone_paths)]
        return select_promotion_target(clones)

    def destroy(self, path: str, destroy_snapshots: bool = False, promote_most_recent_clone: bool = False):
        """
        Destroy a filesystem according to its dependency state.

        Raises:
            NefInUseError: If the filesystem has snapshots or clones the flags
                           do not allow to remove or hand over
        """
        try:
            self.provider.delete_filesystem_request(path, destroy_snapshots, promote_most_recent_clone)
            logger.debug(f"filesystem '{path}' destroyed")
            return
        except NefInUseError:
            if not (destroy_snapshots and promote_most_recent_clone):
                raise
            target = self.find_promotion_target(path)
            if target is None:
                raise

        logger.info(f"promoting clone '{target.path}' to take over snapshots of '{path}'")
        self.provider.promote_filesystem(target.path)
        self.provider.delete_filesystem_request(path, True, False)
        logger.debug(f"filesystem '{path}' destroyed after promoting '{target.path}'")

"""
Zebi provider: IntelliFlash positional RPC API.

Every call is a POST to /zebi/api/v2/<method> whose body is a JSON array of
positional arguments. Shares live in projects, so paths have the form
pool/Local/project/share. listShares has no server-side slicing; windows are
cut from the full listing.
"""

import logging
from typing import Any, List, Optional, Sequence

from .. import endpoints
from ..errors import NefDecodeError, NefError, NefNotFoundError, NefValidationError
from ..models import (
    ACLRuleSet,
    Filesystem,
    NfsRule,
    Pool,
    Project,
    Snapshot,
    ZebiPool,
    ZebiShare,
    ZebiShareDetails,
)
from ..pagination import window
from ..session import BasicAuthSession
from .base import Provider, decode_model, decode_models, require, split_snapshot_path

logger = logging.getLogger(__name__)

# removes the quota in modifyShareProperties
NO_QUOTA = -1


def split_path(path: str, parts: int, name: str) -> List[str]:
    """
    Split a slash separated path into exactly `parts` elements.

    Raises:
        NefValidationError: If the element count differs
    """
    elements = path.split("/") if path else []
    if len(elements) != parts or not all(elements):
        raise NefValidationError(f"Parameter '{name}' is invalid: {path!r}")
    return elements


def host_acls(rules: Optional[Sequence[NfsRule]], access_mode: str, root_access: Optional[bool] = None) -> List[dict]:
    acls = []
    for rule in rules or ():
        acl = {
            'hostType': rule.host_type(),
            'host': rule.host(),
            'accessMode': access_mode,
        }
        if root_access is not None:
            acl['rootAccessForNFS'] = root_access
        acls.append(acl)
    return acls


def snapshot_names(results: Any) -> List[str]:
    """Check that a listSnapshots result is a list of names."""
    if not isinstance(results, list) or not all(isinstance(item, str) for item in results):
        raise NefDecodeError(f"Response of '{endpoints.ZEBI_LIST_SNAPSHOTS}' is not a list of names: {results!r}")
    return results


class ZebiProvider(Provider):
    """Provider for IntelliFlash appliances (HTTP basic auth on every call)."""

    session_class = BasicAuthSession

    def _call(self, method_name: str, params: Any = None):
        return self._send_request('POST', endpoints.ZEBI_API_PREFIX + method_name, params)

    def _call_with_struct(self, method_name: str, params: Any = None) -> Any:
        return self._send_request_with_struct('POST', endpoints.ZEBI_API_PREFIX + method_name, params)

    # =========================================================================
    # Pools and projects
    # =========================================================================

    def get_pools(self) -> List[Pool]:
        response = self._call_with_struct(endpoints.ZEBI_LIST_POOLS)
        pools = decode_models(ZebiPool, response, endpoints.ZEBI_LIST_POOLS)
        return [Pool(name=pool.name) for pool in pools]

    def get_project(self, path: str) -> Project:
        """Get a project by its pool/Local/project path."""
        require(path, "Project path is required")
        pool, _, name = split_path(path, 3, 'path')
        response = self._call_with_struct(endpoints.ZEBI_GET_PROJECT, [pool, name, True])
        return decode_model(Project, response, endpoints.ZEBI_GET_PROJECT)

    def create_project(self, path: str):
        require(path, "Project path is required")
        pool, _, name = split_path(path, 3, 'path')
        self._call(endpoints.ZEBI_CREATE_PROJECT, [{
            'poolName': pool,
            'projectName': name,
            'intendedProtocolList': ['NFS', 'SMB', 'iSCSI'],
        }])

    def delete_project(self, path: str):
        require(path, "Project path is required")
        self._call(endpoints.ZEBI_DELETE_PROJECT, [path])

    # =========================================================================
    # Filesystems
    # =========================================================================

    def _get_share(self, path: str) -> ZebiShareDetails:
        require(path, "Filesystem path is empty")
        response = self._call_with_struct(endpoints.ZEBI_GET_SHARE, [path])
        return decode_model(ZebiShareDetails, response, endpoints.ZEBI_GET_SHARE)

    def create_filesystem(self, path: str, referenced_quota_size: int = 0):
        require(path, "Parameter 'path' is required")
        pool, _, project, name = split_path(path, 4, 'path')

        options = {}
        if referenced_quota_size:
            options['quota'] = referenced_quota_size
        permissions = [{'sharePermissionEnum': 0, 'sharePermissionMode': 0}]

        self._call(endpoints.ZEBI_CREATE_SHARE, [pool, project, name, options, permissions])

    def update_filesystem(self, path: str, referenced_quota_size: int = 0):
        """Set the share quota; 0 removes it."""
        require(path, "Parameter 'path' is required")
        quota = referenced_quota_size or NO_QUOTA
        self._call(endpoints.ZEBI_MODIFY_SHARE, [path, {'quota': quota}])

    def get_filesystem(self, path: str) -> Filesystem:
        return self._get_share(path).to_filesystem()

    def get_referenced_quota_size(self, path: str) -> int:
        return self._get_share(path).quota_size

    def _get_filesystems_slice(self, parent: str, limit: int, offset: int) -> List[Filesystem]:
        pool, _, project = split_path(parent, 3, 'parent')
        response = self._call_with_struct(endpoints.ZEBI_LIST_SHARES, [pool, project, True])
        shares = decode_models(ZebiShare, response, endpoints.ZEBI_LIST_SHARES)
        return [share.to_filesystem() for share in window(shares, limit, offset)]

    def delete_filesystem_request(self, path: str, destroy_snapshots: bool, promote_most_recent_clone: bool = False):
        # [path, recursive, errorIfNotFound, promote]
        self._call(endpoints.ZEBI_DELETE_SHARE, [path, destroy_snapshots, False, promote_most_recent_clone])

    def promote_filesystem(self, path: str):
        raise NefError(
            f"Promoting '{path}' is not supported on zebi appliances, "
            "deleteShare promotes the most recent clone itself",
            code="ENOTSUP",
        )

    def set_filesystem_acl(self, path: str, rule_set: ACLRuleSet):
        raise NefError("Filesystem ACLs are not supported on zebi appliances", code="ENOTSUP")

    # =========================================================================
    # Shares
    # =========================================================================

    def create_nfs_share(
        self,
        filesystem: str,
        read_write_list: Optional[Sequence[NfsRule]] = None,
        read_only_list: Optional[Sequence[NfsRule]] = None
    ):
        require(filesystem, "Parameter 'filesystem' is required")
        self._call(endpoints.ZEBI_SET_NFS_SHARING, [filesystem, True])

        acls = host_acls(read_write_list, 'rw', root_access=True)
        acls += host_acls(read_only_list, 'ro', root_access=True)
        self._call(endpoints.ZEBI_SET_NFS_ACLS, [filesystem, acls])

    def delete_nfs_share(self, path: str):
        require(path, "Filesystem path is empty")
        self._call(endpoints.ZEBI_REMOVE_NFS_ACLS, [path])

    def create_smb_share(
        self,
        filesystem: str,
        share_name: str = "",
        read_write_list: Optional[Sequence[NfsRule]] = None,
        read_only_list: Optional[Sequence[NfsRule]] = None
    ):
        """Share over SMB; leave share_name empty to derive it from the path."""
        require(filesystem, "Parameter 'filesystem' is required")

        name = share_name or Filesystem(path=filesystem).default_smb_share_name()
        # [path, enabled, name, guest]
        self._call(endpoints.ZEBI_SET_SMB_SHARING, [filesystem, True, name, False])

        acls = host_acls(read_write_list, 'rw') + host_acls(read_only_list, 'ro')
        self._call(endpoints.ZEBI_SET_SMB_ACLS, [filesystem, acls])

    def delete_smb_share(self, path: str):
        require(path, "Filesystem path is empty")
        self._call(endpoints.ZEBI_REMOVE_SMB_ACLS, [path])

    def get_smb_share_name(self, path: str) -> str:
        return self._get_share(path).share_name

    # =========================================================================
    # Snapshots
    # =========================================================================

    @staticmethod
    def _wire_snapshot_path(path: str) -> str:
        parent, name = split_snapshot_path(path)
        return f"{parent}@{endpoints.ZEBI_SNAPSHOT_PREFIX}{name}"

    def create_snapshot(self, path: str):
        require(path, "Parameter 'path' is required")
        parent, name = split_snapshot_path(path)
        pool, _, project, share = split_path(parent, 4, 'path')

        share_ref = {'poolName': pool, 'projectName': project, 'name': share, 'local': True}
        # [share, name, quiesce]
        self._call(endpoints.ZEBI_CREATE_SNAPSHOT, [share_ref, name, False])

    def get_snapshot(self, path: str) -> Snapshot:
        require(path, "Snapshot path is empty")
        parent, name = split_snapshot_path(path)

        results = snapshot_names(self._call_with_struct(
            endpoints.ZEBI_LIST_SNAPSHOTS,
            [parent, f"{endpoints.ZEBI_SNAPSHOT_PREFIX}{name}"],
        ))
        if len(results) != 1:
            raise NefNotFoundError(f"Snapshot '{path}' not found", code="ENOENT")

        return Snapshot(path=path, name=name, parent=parent)

    def get_snapshots(self, parent: str, recursive: bool = False) -> List[Snapshot]:
        """
        List the snapshots of a share.

        listSnapshots returns bare names, so clones and creation times are
        not known for zebi snapshots.
        """
        require(parent, "Parent path is empty")
        results = snapshot_names(self._call_with_struct(endpoints.ZEBI_LIST_SNAPSHOTS, [parent, ".*"]))

        snapshots = []
        for item in results:
            name = item[len(endpoints.ZEBI_SNAPSHOT_PREFIX):] \
                if item.startswith(endpoints.ZEBI_SNAPSHOT_PREFIX) else item
            snapshots.append(Snapshot(path=f"{parent}@{name}", name=name, parent=parent))
        return snapshots

    def destroy_snapshot(self, path: str):
        require(path, "Snapshot path is required")
        # [path, recursive]
        self._call(endpoints.ZEBI_DELETE_SNAPSHOT, [self._wire_snapshot_path(path), False])

    def clone_snapshot(self, path: str, target_path: str, referenced_quota_size: int = 0):
        require(path, "Snapshot path is required")
        require(target_path, "Parameter 'target_path' is required")
        target_name = split_path(target_path, 4, 'target_path')[3]

        # [snapshot, clone name, inherit]
        self._call(endpoints.ZEBI_CLONE_SNAPSHOT, [self._wire_snapshot_path(path), target_name, False])

        if referenced_quota_size:
            self._call(endpoints.ZEBI_MODIFY_SHARE, [target_path, {'quota': referenced_quota_size}])

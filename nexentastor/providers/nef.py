"""
NEF provider: NexentaStor keyed REST API.

Resources are addressed with HTTP verbs; collections answer
{"data": [...]} and support server-side limit/offset slicing.
"""

import logging
from typing import List, Optional, Sequence

from .. import endpoints
from ..models import ACLRuleSet, Filesystem, NfsRule, Pool, SmbShare, Snapshot
from ..session import TokenSession
from .base import Provider, decode_model, escape, format_bool, require, split_snapshot_path

logger = logging.getLogger(__name__)

FILESYSTEM_FIELDS = (
    "path,mountPoint,sharedOverNfs,sharedOverSmb,bytesAvailable,bytesUsed,"
    "referencedQuotaSize,creationTime"
)
SNAPSHOT_FIELDS = "path,name,parent,clones,creationTxg,creationTime"


class NefProvider(Provider):
    """Provider for NexentaStor appliances (bearer token sessions)."""

    session_class = TokenSession

    # =========================================================================
    # Pools
    # =========================================================================

    def get_pools(self) -> List[Pool]:
        return self._get_data(Pool, endpoints.NEF_POOLS, {'fields': 'poolName'})

    # =========================================================================
    # Filesystems
    # =========================================================================

    def create_filesystem(self, path: str, referenced_quota_size: int = 0):
        require(path, "Parameter 'path' is required")

        payload = {'path': path}
        if referenced_quota_size:
            payload['referencedQuotaSize'] = referenced_quota_size

        self._send_request('POST', endpoints.NEF_FILESYSTEMS, payload)

    def update_filesystem(self, path: str, referenced_quota_size: int = 0):
        """Set the referenced quota; 0 removes it."""
        require(path, "Parameter 'path' is required")
        self._send_request(
            'PUT',
            endpoints.NEF_FILESYSTEM.format(path=escape(path)),
            {'referencedQuotaSize': referenced_quota_size},
        )

    def get_filesystem(self, path: str) -> Filesystem:
        require(path, "Filesystem path is empty")
        return self._get_single(
            Filesystem,
            endpoints.NEF_FILESYSTEMS,
            {'path': path, 'fields': FILESYSTEM_FIELDS},
            "Filesystem",
            path,
        )

    def _get_filesystems_slice(self, parent: str, limit: int, offset: int) -> List[Filesystem]:
        return self._get_data(Filesystem, endpoints.NEF_FILESYSTEMS, {
            'parent': parent,
            'limit': limit,
            'offset': offset,
            'fields': FILESYSTEM_FIELDS,
        })

    def delete_filesystem_request(self, path: str, destroy_snapshots: bool, promote_most_recent_clone: bool = False):
        uri = self.rest_client.build_uri(
            endpoints.NEF_FILESYSTEM.format(path=escape(path)),
            {'snapshots': format_bool(destroy_snapshots)},
        )
        self._send_request('DELETE', uri)

    def promote_filesystem(self, path: str):
        require(path, "Filesystem path is required")
        self._send_request('POST', endpoints.NEF_FILESYSTEM_PROMOTE.format(path=escape(path)))

    def set_filesystem_acl(self, path: str, rule_set: ACLRuleSet):
        """
        Grant everyone@ read or full access, inherited by files and directories.

        Lets NFS clients write without the appliance checking the UNIX uid.
        """
        require(path, "Filesystem path is required")

        permissions = ["read_set"] if rule_set == ACLRuleSet.READ_ONLY else ["full_set"]
        self._send_request(
            'POST',
            endpoints.NEF_FILESYSTEM_ACL.format(path=escape(path)),
            {
                'type': 'allow',
                'principal': 'everyone@',
                'flags': ['file_inherit', 'dir_inherit'],
                'permissions': permissions,
            },
        )

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

        security_context = {'securityModes': ['sys']}
        if read_write_list:
            security_context['readWriteList'] = [rule.model_dump() for rule in read_write_list]
        if read_only_list:
            security_context['readOnlyList'] = [rule.model_dump() for rule in read_only_list]

        self._send_request('POST', endpoints.NEF_NFS, {
            'filesystem': filesystem,
            'anon': 'root',
            'securityContexts': [security_context],
        })

    def delete_nfs_share(self, path: str):
        require(path, "Filesystem path is empty")
        self._send_request('DELETE', endpoints.NEF_NFS_SHARE.format(path=escape(path)))

    def create_smb_share(
        self,
        filesystem: str,
        share_name: str = "",
        read_write_list: Optional[Sequence[NfsRule]] = None,
        read_only_list: Optional[Sequence[NfsRule]] = None
    ):
        """
        Share a filesystem over SMB.

        Leave share_name empty to use the name derived from the path. NEF
        controls SMB access through filesystem ACLs, so host lists are not sent.
        """
        require(filesystem, "Parameter 'filesystem' is required")

        if read_write_list or read_only_list:
            logger.debug(f"SMB host lists for '{filesystem}' are not applied on NEF, use set_filesystem_acl()")

        name = share_name or Filesystem(path=filesystem).default_smb_share_name()
        self._send_request('POST', endpoints.NEF_SMB, {'filesystem': filesystem, 'shareName': name})

    def delete_smb_share(self, path: str):
        require(path, "Filesystem path is empty")
        self._send_request('DELETE', endpoints.NEF_SMB_SHARE.format(path=escape(path)))

    def get_smb_share_name(self, path: str) -> str:
        require(path, "Filesystem path is required")
        uri = endpoints.NEF_SMB_SHARE.format(path=escape(path))
        response = self._send_request_with_struct('GET', uri)
        return decode_model(SmbShare, response, f"GET {uri}").share_name

    # =========================================================================
    # Snapshots
    # =========================================================================

    def create_snapshot(self, path: str):
        require(path, "Parameter 'path' is required")
        split_snapshot_path(path)
        self._send_request('POST', endpoints.NEF_SNAPSHOTS, {'path': path})

    def get_snapshot(self, path: str) -> Snapshot:
        require(path, "Snapshot path is empty")
        return self._get_single(
            Snapshot,
            endpoints.NEF_SNAPSHOTS,
            {'path': path, 'fields': SNAPSHOT_FIELDS},
            "Snapshot",
            path,
        )

    def get_snapshots(self, parent: str, recursive: bool = False) -> List[Snapshot]:
        require(parent, "Parent path is empty")
        return self._get_data(Snapshot, endpoints.NEF_SNAPSHOTS, {
            'parent': parent,
            'recursive': format_bool(recursive),
            'fields': SNAPSHOT_FIELDS,
        })

    def destroy_snapshot(self, path: str):
        require(path, "Snapshot path is required")
        self._send_request('DELETE', endpoints.NEF_SNAPSHOT.format(path=escape(path)))

    def clone_snapshot(self, path: str, target_path: str, referenced_quota_size: int = 0):
        require(path, "Snapshot path is required")
        require(target_path, "Parameter 'target_path' is required")

        payload = {'targetPath': target_path}
        if referenced_quota_size:
            payload['referencedQuotaSize'] = referenced_quota_size

        self._send_request('POST', endpoints.NEF_SNAPSHOT_CLONE.format(path=escape(path)), payload)

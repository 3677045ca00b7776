"""Canonical appliance endpoints used by the providers.

Both wire dialects are listed here so the providers never drift away from the
supported appliance contract. NEF paths are REST resources addressed with HTTP
verbs and keyed JSON bodies; zebi entries are RPC method names POSTed below
ZEBI_API_PREFIX with positional JSON arrays.
"""

import re
from typing import Optional

# NEF (keyed REST)
NEF_AUTH_LOGIN = "/auth/login"
NEF_POOLS = "/storage/pools"
NEF_FILESYSTEMS = "/storage/filesystems"
NEF_FILESYSTEM = "/storage/filesystems/{path}"
NEF_FILESYSTEM_ACL = "/storage/filesystems/{path}/acl"
NEF_FILESYSTEM_PROMOTE = "/storage/filesystems/{path}/promote"
NEF_SNAPSHOTS = "/storage/snapshots"
NEF_SNAPSHOT = "/storage/snapshots/{path}"
NEF_SNAPSHOT_CLONE = "/storage/snapshots/{path}/clone"
NEF_NFS = "/nas/nfs"
NEF_NFS_SHARE = "/nas/nfs/{path}"
NEF_SMB = "/nas/smb"
NEF_SMB_SHARE = "/nas/smb/{path}"

# Block storage resources, identical on both appliance lines
VOLUMES = "/storage/volumes"
VOLUME = "/storage/volumes/{path}"
VOLUME_GROUPS = "/storage/volumeGroups"
LUN_MAPPINGS = "/san/lunMappings"
LUN_MAPPING = "/san/lunMappings/{id}"
ISCSI_TARGETS = "/san/iscsi/targets"
TARGET_GROUPS = "/san/targetgroups"
TARGET_GROUP = "/san/targetgroups/{name}"

# zebi (positional RPC)
ZEBI_API_PREFIX = "/zebi/api/v2/"
ZEBI_LIST_POOLS = "listPools"
ZEBI_GET_PROJECT = "getProject"
ZEBI_CREATE_PROJECT = "createProject"
ZEBI_DELETE_PROJECT = "deleteProject"
ZEBI_GET_SHARE = "getShare"
ZEBI_LIST_SHARES = "listShares"
ZEBI_CREATE_SHARE = "createShare"
ZEBI_MODIFY_SHARE = "modifyShareProperties"
ZEBI_DELETE_SHARE = "deleteShare"
ZEBI_SET_NFS_SHARING = "setNFSSharingOnShare"
ZEBI_SET_NFS_ACLS = "setNFSNetworkACLsOnShare"
ZEBI_REMOVE_NFS_ACLS = "removeAllNFSNetworkACLsOnShare"
ZEBI_SET_SMB_SHARING = "setSMBSharingOnShare"
ZEBI_SET_SMB_ACLS = "setSMBNetworkACLsOnShare"
ZEBI_REMOVE_SMB_ACLS = "removeAllSMBNetworkACLsOnShare"
ZEBI_CREATE_SNAPSHOT = "createShareSnapshot"
ZEBI_LIST_SNAPSHOTS = "listSnapshots"
ZEBI_DELETE_SNAPSHOT = "deleteShareSnapshot"
ZEBI_CLONE_SNAPSHOT = "cloneShareSnapshot"

# Snapshot names carry this prefix on zebi appliances
ZEBI_SNAPSHOT_PREFIX = "Manual-S-"

CANONICAL_NEF_ENDPOINTS = {
    NEF_AUTH_LOGIN,
    NEF_POOLS,
    NEF_FILESYSTEMS,
    NEF_FILESYSTEM,
    NEF_FILESYSTEM_ACL,
    NEF_FILESYSTEM_PROMOTE,
    NEF_SNAPSHOTS,
    NEF_SNAPSHOT,
    NEF_SNAPSHOT_CLONE,
    NEF_NFS,
    NEF_NFS_SHARE,
    NEF_SMB,
    NEF_SMB_SHARE,
    VOLUMES,
    VOLUME,
    VOLUME_GROUPS,
    LUN_MAPPINGS,
    LUN_MAPPING,
    ISCSI_TARGETS,
    TARGET_GROUPS,
    TARGET_GROUP,
}

CANONICAL_ZEBI_METHODS = {
    ZEBI_LIST_POOLS,
    ZEBI_GET_PROJECT,
    ZEBI_CREATE_PROJECT,
    ZEBI_DELETE_PROJECT,
    ZEBI_GET_SHARE,
    ZEBI_LIST_SHARES,
    ZEBI_CREATE_SHARE,
    ZEBI_MODIFY_SHARE,
    ZEBI_DELETE_SHARE,
    ZEBI_SET_NFS_SHARING,
    ZEBI_SET_NFS_ACLS,
    ZEBI_REMOVE_NFS_ACLS,
    ZEBI_SET_SMB_SHARING,
    ZEBI_SET_SMB_ACLS,
    ZEBI_REMOVE_SMB_ACLS,
    ZEBI_CREATE_SNAPSHOT,
    ZEBI_LIST_SNAPSHOTS,
    ZEBI_DELETE_SNAPSHOT,
    ZEBI_CLONE_SNAPSHOT,
}

_PLACEHOLDER = re.compile(r"\{\w+\}")


def _template_pattern(template: str) -> re.Pattern:
    return re.compile("[^/]+".join(re.escape(piece) for piece in _PLACEHOLDER.split(template)))


_NEF_PATTERNS = {template: _template_pattern(template) for template in CANONICAL_NEF_ENDPOINTS}


def canonical_endpoint(path: str) -> Optional[str]:
    """
    Map a request path back to the catalogued endpoint it was built from.

    Path parameters must be escaped to a single segment and the query string
    is ignored. Zebi calls map to their full RPC path.

    Returns:
        NEF template or zebi RPC path, None if the path is not catalogued
    """
    path = path.split("?", 1)[0]

    if path.startswith(ZEBI_API_PREFIX):
        return path if path[len(ZEBI_API_PREFIX):] in CANONICAL_ZEBI_METHODS else None

    for template, pattern in _NEF_PATTERNS.items():
        if pattern.fullmatch(path):
            return template
    return None

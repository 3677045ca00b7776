"""
Pydantic models for appliance resources.

Field aliases are the appliance's camelCase wire names; attributes are
snake_case. Unknown wire fields are ignored.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NefModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ACLRuleSet(str, Enum):
    READ_ONLY = "read_only"
    READ_WRITE = "read_write"


class Pool(NefModel):
    """Storage pool."""
    name: str = Field(alias="poolName")


class Project(NefModel):
    """Zebi project, the container of shares (path pool/Local/project)."""
    pool: str = Field("", alias="poolName")
    name: str = Field("", alias="projectName")


class Filesystem(NefModel):
    """Filesystem (NEF) or share (zebi)."""
    path: str
    mount_point: str = Field("", alias="mountPoint")
    shared_over_nfs: bool = Field(False, alias="sharedOverNfs")
    shared_over_smb: bool = Field(False, alias="sharedOverSmb")
    bytes_available: int = Field(0, alias="bytesAvailable")
    bytes_used: int = Field(0, alias="bytesUsed")
    referenced_quota_size: int = Field(0, alias="referencedQuotaSize")
    creation_time: Optional[datetime] = Field(None, alias="creationTime")

    def __str__(self):
        return self.path

    def default_smb_share_name(self) -> str:
        """Converts '/pool/dataset/fs' to 'pool_dataset_fs'"""
        return self.path.lstrip("/").replace("/", "_")


class Snapshot(NefModel):
    """Snapshot; path is <filesystem>@<name>."""
    path: str
    name: str = ""
    parent: str = ""
    clones: List[str] = []
    creation_txg: str = Field("", alias="creationTxg")
    creation_time: Optional[datetime] = Field(None, alias="creationTime")

    def __str__(self):
        return self.path


class Volume(NefModel):
    """Block volume (zvol)."""
    path: str
    bytes_available: int = Field(0, alias="bytesAvailable")
    bytes_used: int = Field(0, alias="bytesUsed")
    volume_size: int = Field(0, alias="volumeSize")

    def __str__(self):
        return self.path


class VolumeGroup(NefModel):
    """Parent container of volumes."""
    path: str
    bytes_available: int = Field(0, alias="bytesAvailable")
    bytes_used: int = Field(0, alias="bytesUsed")


class SmbShare(NefModel):
    """SMB share of a filesystem."""
    filesystem: str = ""
    share_name: str = Field(alias="shareName")


class LunMapping(NefModel):
    """Mapping of a volume to a host group / target group pair."""
    id: str
    volume: str = ""
    target_group: str = Field("", alias="targetGroup")
    host_group: str = Field("", alias="hostGroup")
    lun: int = 0


class Portal(NefModel):
    """iSCSI portal."""
    address: str
    port: int = 3260


class NfsRule(NefModel):
    """Host entry of an NFS/SMB access list."""
    etype: str = "network"  # network, fqdn, domain
    entity: str
    mask: int = 0

    def host(self) -> str:
        if self.etype in ("fqdn", "domain"):
            return self.entity
        if self.mask > 0:
            return f"{self.entity}/{self.mask}"
        return self.entity

    def host_type(self) -> str:
        return "FQDN" if self.etype in ("fqdn", "domain") else "IP"


# zebi wire shapes


class ZebiPool(NefModel):
    name: str
    available_size: int = Field(0, alias="availableSize")
    total_size: int = Field(0, alias="totalSize")


class ZebiShare(NefModel):
    """Share entry as returned by listShares."""
    pool_name: str = Field("", alias="poolName")
    project_name: str = Field("", alias="projectName")
    name: str = ""
    path: str = Field("", alias="datasetPath")
    mount_point: str = Field("", alias="mountpoint")
    available_size: int = Field(0, alias="availableSize")
    total_size: int = Field(0, alias="totalSize")
    local: bool = True

    def to_filesystem(self) -> Filesystem:
        return Filesystem(
            path=self.path,
            mount_point=self.mount_point,
            bytes_available=self.available_size,
            bytes_used=self.total_size,
        )


class ZebiShareDetails(NefModel):
    """Share as returned by getShare."""
    pool_name: str = Field("", alias="poolName")
    project_name: str = Field("", alias="projectName")
    name: str = ""
    path: str = Field("", alias="zfsDataSetName")
    mount_point: str = Field("", alias="mountPoint")
    share_name: str = Field("", alias="cifsDisplayName")
    share_nfs: str = Field("off", alias="sharenfs")
    share_smb: str = Field("off", alias="sharesmb")
    available_size: int = Field(0, alias="availableSize")
    total_size: int = Field(0, alias="totalSize")
    quota_size: int = Field(0, alias="quotaInByte")

    def to_filesystem(self) -> Filesystem:
        return Filesystem(
            path=self.path,
            mount_point=self.mount_point,
            shared_over_nfs=self.share_nfs != "off",
            shared_over_smb=self.share_smb != "off",
            bytes_available=self.available_size,
            bytes_used=self.total_size,
            referenced_quota_size=self.quota_size,
        )

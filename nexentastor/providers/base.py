"""
NexentaStor Provider base class

Defines the operation surface shared by both appliance dialects. Dialect
specific calls (filesystems, shares, snapshots) are abstract; block storage
and iSCSI resources use the same keyed REST endpoints on both appliance lines
and are implemented here.

Listing, pagination and filesystem destroy sequencing are built once on top of
the dialect's slice fetcher and delete primitives.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Tuple, Type, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from .. import endpoints
from ..destroy import DestroyOrchestrator
from ..errors import NefAlreadyExistsError, NefDecodeError, NefNotFoundError, NefValidationError
from ..executor import ApplianceResponse, RequestExecutor
from ..models import (
    ACLRuleSet,
    Filesystem,
    LunMapping,
    NfsRule,
    Pool,
    Portal,
    Snapshot,
    Volume,
    VolumeGroup,
)
from ..pagination import DEFAULT_PAGE_LIMIT, list_after_token, list_all, validate_slice

logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)


def decode_model(model: Type[ModelT], data: Any, source: str) -> ModelT:
    """
    Validate one decoded response item.

    Raises:
        NefDecodeError: If the item does not have the shape of the model
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise NefDecodeError(f"Response of '{source}' is not a valid {model.__name__}: {e}") from e


def decode_models(model: Type[ModelT], data: Any, source: str) -> List[ModelT]:
    """Validate a decoded response list; a missing or non-list document is a decode error."""
    if not isinstance(data, list):
        raise NefDecodeError(f"Response of '{source}' is not a list: {data!r}")
    return [decode_model(model, item, source) for item in data]


def escape(path: str) -> str:
    """Escape a dataset path for use as one URL path segment."""
    return quote(path, safe='')


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def require(value: Any, message: str):
    if not value:
        raise NefValidationError(message)


def split_snapshot_path(path: str) -> Tuple[str, str]:
    """Split 'pool/fs@snapshot' into ('pool/fs', 'snapshot')."""
    parent, sep, name = path.partition("@")
    if not sep or not parent or not name or "@" in name:
        raise NefValidationError(f"Snapshot path is invalid: {path!r}")
    return parent, name


class Provider(ABC):
    """
    Operations against one appliance.

    Instances are safe to share between threads; every call is an independent
    request/response exchange and no resource state is cached.
    """

    # session class used by create_provider() for this dialect
    session_class = None

    def __init__(
        self,
        executor: RequestExecutor,
        page_limit: int = DEFAULT_PAGE_LIMIT,
        wait_for_async_jobs: bool = True
    ):
        """
        Args:
            executor: RequestExecutor bound to this appliance's session
            page_limit: Appliance maximum page size
            wait_for_async_jobs: Block mutating calls until 202 jobs finish
        """
        self.executor = executor
        self.page_limit = page_limit
        self.wait_for_async_jobs = wait_for_async_jobs
        self.destroyer = DestroyOrchestrator(self)

    @property
    def address(self) -> str:
        return self.executor.rest_client.address

    @property
    def rest_client(self):
        return self.executor.rest_client

    def __str__(self):
        return self.address

    def close(self):
        self.executor.rest_client.close()

    # =========================================================================
    # Request helpers
    # =========================================================================

    def _send_request(self, method: str, path: str, data: Any = None) -> ApplianceResponse:
        response = self.executor.execute(method, path, data)
        if response.job is not None and self.wait_for_async_jobs:
            response.job.wait()
        return response

    def _send_request_with_struct(self, method: str, path: str, data: Any = None) -> Any:
        return self.executor.execute_json(method, path, data)

    def _get_data(self, model: Type[ModelT], path: str, params: dict) -> List[ModelT]:
        """
        GET a collection resource and validate its "data" list.

        Raises:
            NefDecodeError: If the document is not {"data": [...]} or an item
                does not match the model
        """
        response = self._send_request_with_struct('GET', self.rest_client.build_uri(path, params))
        if not isinstance(response, dict) or not isinstance(response.get('data'), list):
            raise NefDecodeError(f"Response of 'GET {path}' has no data list: {response!r}")
        return decode_models(model, response['data'], f"GET {path}")

    def _get_single(self, model: Type[ModelT], path: str, params: dict, kind: str, name: str) -> ModelT:
        data = self._get_data(model, path, params)
        if not data:
            raise NefNotFoundError(f"{kind} '{name}' not found", code="ENOENT")
        return data[0]

    # =========================================================================
    # Pools
    # =========================================================================

    @abstractmethod
    def get_pools(self) -> List[Pool]:
        ...

    # =========================================================================
    # Filesystems
    # =========================================================================

    @abstractmethod
    def create_filesystem(self, path: str, referenced_quota_size: int = 0):
        ...

    @abstractmethod
    def update_filesystem(self, path: str, referenced_quota_size: int = 0):
        ...

    @abstractmethod
    def get_filesystem(self, path: str) -> Filesystem:
        ...

    @abstractmethod
    def _get_filesystems_slice(self, parent: str, limit: int, offset: int) -> List[Filesystem]:
        ...

    @abstractmethod
    def delete_filesystem_request(self, path: str, destroy_snapshots: bool, promote_most_recent_clone: bool = False):
        """Issue the single delete call for a filesystem."""

    @abstractmethod
    def promote_filesystem(self, path: str):
        """Make a clone the owner of its origin's snapshot chain."""

    def get_filesystems_slice(self, parent: str, limit: int, offset: int) -> List[Filesystem]:
        """
        Return filesystems [offset, offset+limit) of a parent.

        Raises:
            NefValidationError: If not 1 <= limit < page_limit, or offset < 0
        """
        validate_slice('get_filesystems_slice', limit, offset, self.page_limit)
        return self._get_filesystems_slice(parent, limit, offset)

    def get_filesystems(self, parent: str) -> List[Filesystem]:
        """Return all filesystems of a parent."""
        return list_all(self.get_filesystems_slice, parent, self.page_limit)

    def get_filesystems_with_starting_token(
        self,
        parent: str,
        starting_token: str = "",
        limit: int = 0
    ) -> Tuple[List[Filesystem], str]:
        """
        Return filesystems after starting_token and the next token.

        Args:
            parent: Parent path
            starting_token: Path of the filesystem to start AFTER, empty for the first one
            limit: Maximum count of filesystems to return, 0 for all remaining
        """
        return list_after_token(
            self.get_filesystems_slice, parent, starting_token, limit, self.page_limit
        )

    def destroy_filesystem(
        self,
        path: str,
        destroy_snapshots: bool = False,
        promote_most_recent_clone: bool = False
    ):
        """
        Destroy a filesystem, optionally with its snapshots.

        Args:
            path: Filesystem path
            destroy_snapshots: Also destroy the filesystem's snapshots
            promote_most_recent_clone: If snapshots have clones, promote the most
                recently created clone to take over the snapshots first

        Raises:
            NefInUseError: If snapshots or clones block the deletion
        """
        require(path, "Filesystem path is required")
        self.destroyer.destroy(path, destroy_snapshots, promote_most_recent_clone)

    def get_filesystem_available_capacity(self, path: str) -> int:
        return self.get_filesystem(path).bytes_available

    def get_referenced_quota_size(self, path: str) -> int:
        return self.get_filesystem(path).referenced_quota_size

    # =========================================================================
    # Shares
    # =========================================================================

    @abstractmethod
    def create_nfs_share(
        self,
        filesystem: str,
        read_write_list: Optional[Sequence[NfsRule]] = None,
        read_only_list: Optional[Sequence[NfsRule]] = None
    ):
        ...

    @abstractmethod
    def delete_nfs_share(self, path: str):
        ...

    @abstractmethod
    def create_smb_share(
        self,
        filesystem: str,
        share_name: str = "",
        read_write_list: Optional[Sequence[NfsRule]] = None,
        read_only_list: Optional[Sequence[NfsRule]] = None
    ):
        ...

    @abstractmethod
    def delete_smb_share(self, path: str):
        ...

    @abstractmethod
    def get_smb_share_name(self, path: str) -> str:
        ...

    @abstractmethod
    def set_filesystem_acl(self, path: str, rule_set: ACLRuleSet):
        ...

    # =========================================================================
    # Snapshots
    # =========================================================================

    @abstractmethod
    def create_snapshot(self, path: str):
        ...

    @abstractmethod
    def get_snapshot(self, path: str) -> Snapshot:
        ...

    @abstractmethod
    def get_snapshots(self, parent: str, recursive: bool = False) -> List[Snapshot]:
        ...

    @abstractmethod
    def destroy_snapshot(self, path: str):
        ...

    @abstractmethod
    def clone_snapshot(self, path: str, target_path: str, referenced_quota_size: int = 0):
        ...

    # =========================================================================
    # Volumes
    # =========================================================================

    def create_volume(self, path: str, volume_size: int):
        require(path, f"Parameter 'path' is required, received: {path!r}")
        self._send_request('POST', endpoints.VOLUMES, {'path': path, 'volumeSize': volume_size})

    def get_volume(self, path: str) -> Volume:
        require(path, "Volume path is empty")
        return self._get_single(Volume, endpoints.VOLUMES, {'path': path}, "Volume", path)

    def update_volume(self, path: str, volume_size: int):
        require(path, "Parameter 'path' is required")
        self._send_request('PUT', endpoints.VOLUME.format(path=escape(path)), {'volumeSize': volume_size})

    def destroy_volume(self, path: str, destroy_snapshots: bool = False):
        require(path, "Volume path is required")
        uri = self.rest_client.build_uri(
            endpoints.VOLUME.format(path=escape(path)),
            {'snapshots': format_bool(destroy_snapshots)},
        )
        self._send_request('DELETE', uri)

    def get_volume_group(self, path: str) -> VolumeGroup:
        require(path, "VolumeGroup path is empty")
        return self._get_single(VolumeGroup, endpoints.VOLUME_GROUPS, {'path': path}, "VolumeGroup", path)

    def get_volumes_slice(self, parent: str, limit: int, offset: int) -> List[Volume]:
        """
        Return volumes [offset, offset+limit) of a volume group.

        Slicing is done by the appliance.
        """
        validate_slice('get_volumes_slice', limit, offset, self.page_limit)
        return self._get_data(Volume, endpoints.VOLUMES, {'parent': parent, 'limit': limit, 'offset': offset})

    def get_volumes(self, parent: str) -> List[Volume]:
        return list_all(self.get_volumes_slice, parent, self.page_limit)

    def get_volumes_with_starting_token(
        self,
        parent: str,
        starting_token: str = "",
        limit: int = 0
    ) -> Tuple[List[Volume], str]:
        return list_after_token(
            self.get_volumes_slice, parent, starting_token, limit, self.page_limit
        )

    # =========================================================================
    # iSCSI
    # =========================================================================

    def create_iscsi_target(self, name: str, portals: Sequence[Portal] = ()):
        """Create an iSCSI target; an existing target counts as success."""
        require(name, f"Parameter 'name' is required, received: {name!r}")
        payload = {
            'name': name,
            'portals': [portal.model_dump() for portal in portals],
        }
        try:
            self._send_request('POST', endpoints.ISCSI_TARGETS, payload)
        except NefAlreadyExistsError:
            logger.debug(f"iSCSI target '{name}' already exists")

    def create_update_target_group(self, name: str, members: Sequence[str]):
        """Create a target group, or replace the members of an existing one."""
        if not name or not members:
            raise NefValidationError(
                f"Parameters 'name' and 'members' are required, received: {name!r}, {members!r}"
            )
        try:
            self._send_request('POST', endpoints.TARGET_GROUPS, {'name': name, 'members': list(members)})
        except NefAlreadyExistsError:
            logger.debug(f"target group '{name}' already exists, updating members")
            self._send_request(
                'PUT',
                endpoints.TARGET_GROUP.format(name=escape(name)),
                {'members': list(members)},
            )

    def create_lun_mapping(self, host_group: str, volume: str, target_group: str):
        """Map a volume; an existing mapping counts as success."""
        if not host_group or not volume or not target_group:
            raise NefValidationError(
                "Parameters 'host_group', 'volume' and 'target_group' are required, "
                f"received: {host_group!r}, {volume!r}, {target_group!r}"
            )
        payload = {'hostGroup': host_group, 'volume': volume, 'targetGroup': target_group}
        try:
            self._send_request('POST', endpoints.LUN_MAPPINGS, payload)
        except NefAlreadyExistsError:
            logger.debug(f"LUN mapping of '{volume}' to '{target_group}' already exists")

    def get_lun_mapping(self, volume: str) -> LunMapping:
        require(volume, "Volume path is empty")
        return self._get_single(
            LunMapping,
            endpoints.LUN_MAPPINGS,
            {'volume': volume, 'fields': 'id,volume,targetGroup,hostGroup,lun'},
            "LUN mapping",
            volume,
        )

    def destroy_lun_mapping(self, mapping_id: str):
        require(mapping_id, "LunMapping id is required")
        self._send_request('DELETE', endpoints.LUN_MAPPING.format(id=escape(mapping_id)))

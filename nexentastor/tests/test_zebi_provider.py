import unittest
from unittest.mock import MagicMock

from nexentastor.errors import (
    NefAlreadyExistsError,
    NefDecodeError,
    NefError,
    NefInUseError,
    NefNotFoundError,
    NefValidationError,
)
from nexentastor.executor import RequestExecutor
from nexentastor.models import ACLRuleSet, NfsRule
from nexentastor.providers import ZebiProvider, create_provider
from nexentastor.tests.fake_appliance import FakeZebiAppliance

SHARE = "pool/Local/proj/fs"


class ZebiProviderTestCase(unittest.TestCase):
    def setUp(self):
        self.appliance = FakeZebiAppliance()
        self.appliance.add_project("pool", "proj")
        self.provider = create_provider(rest_client=self.appliance, api_variant="zebi")

    def calls(self, method_name):
        path = f"/zebi/api/v2/{method_name}"
        return [data for _, p, data in self.appliance.requests if p == path]


class ProjectTests(ZebiProviderTestCase):
    def test_provider_type(self):
        self.assertIsInstance(self.provider, ZebiProvider)

    def test_pools(self):
        self.assertEqual([p.name for p in self.provider.get_pools()], ["pool"])

    def test_project_lifecycle(self):
        self.provider.create_project("pool/Local/data")
        self.assertEqual(self.calls("createProject")[0], [{
            'poolName': "pool",
            'projectName': "data",
            'intendedProtocolList': ["NFS", "SMB", "iSCSI"],
        }])

        project = self.provider.get_project("pool/Local/data")
        self.assertEqual((project.pool, project.name), ("pool", "data"))
        self.assertEqual(self.calls("getProject")[0], ["pool", "data", True])

        self.provider.delete_project("pool/Local/data")
        with self.assertRaises(NefNotFoundError):
            self.provider.get_project("pool/Local/data")

    def test_project_with_shares_is_in_use(self):
        self.appliance.add_share(SHARE)
        with self.assertRaises(NefInUseError):
            self.provider.delete_project("pool/Local/proj")

    def test_invalid_project_path(self):
        with self.assertRaises(NefValidationError):
            self.provider.create_project("pool/data")
        self.assertEqual(self.appliance.requests, [])


class ShareFilesystemTests(ZebiProviderTestCase):
    def test_create_with_quota(self):
        self.provider.create_filesystem(SHARE, referenced_quota_size=4096)

        self.assertEqual(self.calls("createShare")[0], [
            "pool", "proj", "fs", {'quota': 4096},
            [{'sharePermissionEnum': 0, 'sharePermissionMode': 0}],
        ])
        filesystem = self.provider.get_filesystem(SHARE)
        self.assertEqual(filesystem.path, SHARE)
        self.assertEqual(filesystem.referenced_quota_size, 4096)
        self.assertEqual(self.provider.get_referenced_quota_size(SHARE), 4096)

    def test_create_existing_share(self):
        self.appliance.add_share(SHARE)
        with self.assertRaises(NefAlreadyExistsError):
            self.provider.create_filesystem(SHARE)

    def test_share_path_needs_four_elements(self):
        for path in ("pool/proj/fs", "pool/Local/proj/fs/x", "pool//proj/fs"):
            with self.subTest(path=path):
                with self.assertRaises(NefValidationError):
                    self.provider.create_filesystem(path)

    def test_update_zero_quota_removes_it(self):
        self.appliance.add_share(SHARE, quota=100)

        self.provider.update_filesystem(SHARE, 0)

        self.assertEqual(self.calls("modifyShareProperties")[-1], [SHARE, {'quota': -1}])
        self.assertEqual(self.provider.get_referenced_quota_size(SHARE), 0)

    def test_promotion_and_acl_are_not_supported(self):
        with self.assertRaises(NefError) as ctx:
            self.provider.promote_filesystem(SHARE)
        self.assertEqual(ctx.exception.code, "ENOTSUP")

        with self.assertRaises(NefError):
            self.provider.set_filesystem_acl(SHARE, ACLRuleSet.READ_WRITE)


class ZebiShareTests(ZebiProviderTestCase):
    def setUp(self):
        super().setUp()
        self.appliance.add_share(SHARE)

    def test_nfs_acls(self):
        self.provider.create_nfs_share(
            SHARE,
            read_write_list=[NfsRule(entity="10.1.0.0", mask=16)],
            read_only_list=[NfsRule(etype="domain", entity="example.com"), NfsRule(entity="10.2.0.5")],
        )

        self.assertEqual(self.calls("setNFSSharingOnShare"), [[SHARE, True]])
        self.assertEqual(self.appliance.shares[SHARE]['nfsAcls'], [
            {'hostType': "IP", 'host': "10.1.0.0/16", 'accessMode': "rw", 'rootAccessForNFS': True},
            {'hostType': "FQDN", 'host': "example.com", 'accessMode': "ro", 'rootAccessForNFS': True},
            {'hostType': "IP", 'host': "10.2.0.5", 'accessMode': "ro", 'rootAccessForNFS': True},
        ])
        self.assertTrue(self.provider.get_filesystem(SHARE).shared_over_nfs)

        self.provider.delete_nfs_share(SHARE)
        self.assertEqual(self.calls("removeAllNFSNetworkACLsOnShare"), [[SHARE]])
        self.assertFalse(self.provider.get_filesystem(SHARE).shared_over_nfs)

    def test_smb_share(self):
        self.provider.create_smb_share(SHARE, read_write_list=[NfsRule(entity="10.1.0.9")])

        self.assertEqual(self.calls("setSMBSharingOnShare"), [[SHARE, True, "pool_Local_proj_fs", False]])
        self.assertEqual(
            self.appliance.shares[SHARE]['smbAcls'],
            [{'hostType': "IP", 'host': "10.1.0.9", 'accessMode': "rw"}],
        )
        self.assertEqual(self.provider.get_smb_share_name(SHARE), "pool_Local_proj_fs")

        self.provider.delete_smb_share(SHARE)
        self.assertEqual(self.provider.get_smb_share_name(SHARE), "")

    def test_sharing_failure_propagates(self):
        with self.assertRaises(NefNotFoundError):
            self.provider.create_nfs_share("pool/Local/proj/missing")
        self.assertEqual(self.calls("setNFSNetworkACLsOnShare"), [])


class ZebiSnapshotTests(ZebiProviderTestCase):
    def setUp(self):
        super().setUp()
        self.appliance.add_share(SHARE)

    def test_snapshot_names_carry_prefix_on_the_wire(self):
        self.provider.create_snapshot(f"{SHARE}@daily")

        share_ref = {'poolName': "pool", 'projectName': "proj", 'name': "fs", 'local': True}
        self.assertEqual(self.calls("createShareSnapshot"), [[share_ref, "daily", False]])
        self.assertIn(f"{SHARE}@Manual-S-daily", self.appliance.snapshots)

        snapshot = self.provider.get_snapshot(f"{SHARE}@daily")
        self.assertEqual((snapshot.path, snapshot.name, snapshot.parent), (f"{SHARE}@daily", "daily", SHARE))
        self.assertEqual(self.calls("listSnapshots")[-1], [SHARE, "Manual-S-daily"])

        self.assertEqual([s.name for s in self.provider.get_snapshots(SHARE)], ["daily"])

        self.provider.destroy_snapshot(f"{SHARE}@daily")
        self.assertEqual(self.calls("deleteShareSnapshot"), [[f"{SHARE}@Manual-S-daily", False]])
        with self.assertRaises(NefNotFoundError):
            self.provider.get_snapshot(f"{SHARE}@daily")

    def test_clone_sets_quota_on_new_share(self):
        self.appliance.add_snapshot(SHARE, "s1")

        self.provider.clone_snapshot(f"{SHARE}@s1", "pool/Local/proj/copy", referenced_quota_size=512)

        self.assertEqual(self.calls("cloneShareSnapshot"), [[f"{SHARE}@Manual-S-s1", "copy", False]])
        self.assertEqual(self.calls("modifyShareProperties"), [["pool/Local/proj/copy", {'quota': 512}]])
        self.assertEqual(self.provider.get_referenced_quota_size("pool/Local/proj/copy"), 512)

    def test_clone_without_quota_is_one_call(self):
        self.appliance.add_snapshot(SHARE, "s1")
        self.provider.clone_snapshot(f"{SHARE}@s1", "pool/Local/proj/copy")
        self.assertEqual(self.calls("modifyShareProperties"), [])

    def test_invalid_snapshot_path(self):
        for path in ("pool/Local/proj/fs", "@s1", f"{SHARE}@", f"{SHARE}@a@b"):
            with self.subTest(path=path):
                with self.assertRaises(NefValidationError):
                    self.provider.destroy_snapshot(path)


def provider_answering(body):
    """ZebiProvider whose appliance answers every call with 200 and body."""
    session = MagicMock()
    session.rest_client.send.return_value = (200, body)
    return ZebiProvider(RequestExecutor(session))


class MalformedResponseTests(unittest.TestCase):
    def test_share_document_must_be_an_object(self):
        for body in (b'null', b'[]', b'{"quotaInByte": "none"}'):
            with self.subTest(body=body):
                with self.assertRaises(NefDecodeError):
                    provider_answering(body).get_filesystem(SHARE)

    def test_listings_must_be_lists_of_objects(self):
        calls = (
            lambda provider: provider.get_pools(),
            lambda provider: provider.get_filesystems("pool/Local/proj"),
        )
        for body in (b'{"name": "pool"}', b'null', b'[42]'):
            for call in calls:
                with self.subTest(body=body, call=call):
                    with self.assertRaises(NefDecodeError):
                        call(provider_answering(body))

    def test_project_document_must_be_an_object(self):
        with self.assertRaises(NefDecodeError):
            provider_answering(b'"proj"').get_project("pool/Local/proj")

    def test_snapshot_listing_must_be_names(self):
        for body in (b'[1, 2]', b'{"names": []}', b'null'):
            with self.subTest(body=body):
                with self.assertRaises(NefDecodeError):
                    provider_answering(body).get_snapshots(SHARE)
                with self.assertRaises(NefDecodeError):
                    provider_answering(body).get_snapshot(f"{SHARE}@s1")

    def test_empty_snapshot_listing_is_not_found(self):
        with self.assertRaises(NefNotFoundError):
            provider_answering(b'[]').get_snapshot(f"{SHARE}@s1")


if __name__ == '__main__':
    unittest.main()
